from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.common.validators import validate_ruc, validate_ubigeo


class CompanyBase(BaseModel):
    razon_social: str = Field(..., min_length=1, max_length=255)
    nombre_comercial: Optional[str] = Field(None, max_length=255)
    direccion: Optional[str] = Field(None, max_length=255)
    ubigeo: Optional[str] = None
    email: Optional[EmailStr] = None
    telefono: Optional[str] = Field(None, max_length=20)
    usuario_sol: Optional[str] = Field(None, max_length=50)
    clave_sol: Optional[str] = Field(None, max_length=100)
    modo_produccion: bool = False

    @field_validator('ubigeo')
    @classmethod
    def validate_ubigeo_code(cls, v):
        if v is not None and not validate_ubigeo(v):
            raise ValueError('Ubigeo inválido. Debe tener 6 dígitos')
        return v


class CompanyCreate(CompanyBase):
    ruc: str

    @field_validator('ruc')
    @classmethod
    def validate_ruc_number(cls, v):
        if not validate_ruc(v):
            raise ValueError('RUC inválido. Debe tener 11 dígitos y un dígito verificador correcto')
        return v.strip()


class CompanyUpdate(BaseModel):
    razon_social: Optional[str] = Field(None, min_length=1, max_length=255)
    nombre_comercial: Optional[str] = Field(None, max_length=255)
    direccion: Optional[str] = Field(None, max_length=255)
    ubigeo: Optional[str] = None
    email: Optional[EmailStr] = None
    telefono: Optional[str] = Field(None, max_length=20)
    usuario_sol: Optional[str] = Field(None, max_length=50)
    clave_sol: Optional[str] = Field(None, max_length=100)
    modo_produccion: Optional[bool] = None
    activo: Optional[bool] = None

    @field_validator('ubigeo')
    @classmethod
    def validate_ubigeo_code(cls, v):
        if v is not None and not validate_ubigeo(v):
            raise ValueError('Ubigeo inválido. Debe tener 6 dígitos')
        return v


class CompanyOut(BaseModel):
    """Las credenciales SOL nunca se serializan."""
    id: UUID
    ruc: str
    razon_social: str
    nombre_comercial: Optional[str] = None
    direccion: Optional[str] = None
    ubigeo: Optional[str] = None
    email: Optional[str] = None
    telefono: Optional[str] = None
    modo_produccion: bool
    activo: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
