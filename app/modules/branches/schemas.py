from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.common.validators import validate_ubigeo


class BranchBase(BaseModel):
    nombre: str = Field(..., min_length=1, max_length=255)
    direccion: Optional[str] = Field(None, max_length=255)
    ubigeo: Optional[str] = None
    distrito: Optional[str] = Field(None, max_length=100)
    provincia: Optional[str] = Field(None, max_length=100)
    departamento: Optional[str] = Field(None, max_length=100)
    telefono: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None

    @field_validator('ubigeo')
    @classmethod
    def validate_ubigeo_code(cls, v):
        if v is not None and not validate_ubigeo(v):
            raise ValueError('Ubigeo inválido. Debe tener 6 dígitos')
        return v


class BranchCreate(BranchBase):
    company_id: Optional[UUID] = None  # Se inyecta la empresa del usuario si no se envía
    codigo: str = Field("0000", pattern=r'^\d{4}$')


class BranchUpdate(BaseModel):
    company_id: Optional[UUID] = None
    codigo: Optional[str] = Field(None, pattern=r'^\d{4}$')
    nombre: Optional[str] = Field(None, min_length=1, max_length=255)
    direccion: Optional[str] = Field(None, max_length=255)
    ubigeo: Optional[str] = None
    distrito: Optional[str] = Field(None, max_length=100)
    provincia: Optional[str] = Field(None, max_length=100)
    departamento: Optional[str] = Field(None, max_length=100)
    telefono: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None

    @field_validator('ubigeo')
    @classmethod
    def validate_ubigeo_code(cls, v):
        if v is not None and not validate_ubigeo(v):
            raise ValueError('Ubigeo inválido. Debe tener 6 dígitos')
        return v


class BranchOut(BaseModel):
    id: UUID
    company_id: UUID
    codigo: str
    nombre: str
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
