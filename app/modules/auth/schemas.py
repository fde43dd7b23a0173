import re
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from app.modules.auth.roles import RoleName, UserType, has_ability


def _validate_strong_password(v: str) -> str:
    if len(v) < 8:
        raise ValueError('La contraseña debe tener al menos 8 caracteres')
    if not re.search(r'[a-z]', v) or not re.search(r'[A-Z]', v):
        raise ValueError('La contraseña debe contener letras mayúsculas y minúsculas')
    if not re.search(r'\d', v):
        raise ValueError('La contraseña debe contener al menos un número')
    return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SystemInitialize(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return _validate_strong_password(v)


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role_name: RoleName
    company_id: Optional[UUID] = None
    user_type: UserType

    @model_validator(mode='after')
    def validate_company(self):
        if self.role_name is not RoleName.SUPER_ADMIN and self.company_id is None:
            raise ValueError('company_id es obligatorio para usuarios que no son super administradores')
        return self


class RoleOut(BaseModel):
    id: UUID
    name: str
    display_name: str

    class Config:
        from_attributes = True


class UserOut(BaseModel):
    id: UUID
    name: str
    email: EmailStr
    user_type: str
    active: bool
    company_id: Optional[UUID] = None
    role: Optional[RoleOut] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    """Datos del usuario devueltos al iniciar sesión."""
    id: UUID
    name: str
    email: EmailStr
    role: str
    company_id: Optional[UUID] = None
    permissions: List[str] = []


class TokenResponse(BaseModel):
    user: UserSummary
    access_token: str
    token_type: str = "Bearer"
    expires_at: datetime


class AuthContext(BaseModel):
    """
    Claims explícitos del usuario autenticado. Se resuelven una vez por request
    y se pasan a cada handler; no existe un "usuario actual" global.
    """
    user_id: UUID
    token_id: UUID
    company_id: Optional[UUID] = None
    role: Optional[RoleName] = None
    user_type: str
    abilities: List[str] = []

    @property
    def is_super_admin(self) -> bool:
        return self.role is RoleName.SUPER_ADMIN

    def can(self, ability: str) -> bool:
        return has_ability(self.abilities, ability)
