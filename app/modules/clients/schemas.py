"""
Schemas Pydantic para el módulo de Clientes
"""
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional, Literal
from uuid import UUID
from datetime import datetime

from app.common.validators import validate_documento_identidad, validate_ubigeo

TipoDocumento = Literal["0", "1", "4", "6", "7"]


def _check_ubigeo(v: Optional[str]) -> Optional[str]:
    if v is not None and not validate_ubigeo(v):
        raise ValueError('Ubigeo inválido. Debe tener 6 dígitos')
    return v


class ClientBase(BaseModel):
    tipo_documento: TipoDocumento = Field(..., description="1=DNI, 4=CE, 6=RUC, 7=Pasaporte, 0=Sin documento")
    numero_documento: str = Field(..., min_length=1, max_length=20)
    razon_social: str = Field(..., min_length=1, max_length=255)
    nombre_comercial: Optional[str] = Field(None, max_length=255)
    direccion: Optional[str] = Field(None, max_length=255)
    ubigeo: Optional[str] = None
    distrito: Optional[str] = Field(None, max_length=100)
    provincia: Optional[str] = Field(None, max_length=100)
    departamento: Optional[str] = Field(None, max_length=100)
    telefono: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None

    @field_validator('numero_documento')
    @classmethod
    def strip_numero(cls, v):
        return v.strip()

    @field_validator('ubigeo')
    @classmethod
    def validate_ubigeo_code(cls, v):
        return _check_ubigeo(v)

    @model_validator(mode='after')
    def validate_documento(self):
        error = validate_documento_identidad(self.tipo_documento, self.numero_documento)
        if error:
            raise ValueError(error)
        return self


class ClientCreate(ClientBase):
    company_id: Optional[UUID] = None
    activo: bool = True


class ClientUpdate(BaseModel):
    """Actualización parcial. Si cambia el documento se valida el par tipo/número."""
    company_id: Optional[UUID] = None
    tipo_documento: Optional[TipoDocumento] = None
    numero_documento: Optional[str] = Field(None, min_length=1, max_length=20)
    razon_social: Optional[str] = Field(None, min_length=1, max_length=255)
    nombre_comercial: Optional[str] = Field(None, max_length=255)
    direccion: Optional[str] = Field(None, max_length=255)
    ubigeo: Optional[str] = None
    distrito: Optional[str] = Field(None, max_length=100)
    provincia: Optional[str] = Field(None, max_length=100)
    departamento: Optional[str] = Field(None, max_length=100)
    telefono: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    activo: Optional[bool] = None

    @field_validator('ubigeo')
    @classmethod
    def validate_ubigeo_code(cls, v):
        return _check_ubigeo(v)


class ClientOut(BaseModel):
    id: UUID
    company_id: UUID
    tipo_documento: str
    numero_documento: str
    razon_social: str
    nombre_comercial: Optional[str] = None
    direccion: Optional[str] = None
    ubigeo: Optional[str] = None
    distrito: Optional[str] = None
    provincia: Optional[str] = None
    departamento: Optional[str] = None
    telefono: Optional[str] = None
    email: Optional[str] = None
    activo: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
