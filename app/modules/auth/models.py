from sqlalchemy import Column, String, Boolean, ForeignKey, DateTime, Integer, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from uuid import uuid4
from datetime import datetime, timezone
from typing import Optional
from app.database.database import Base
from app.common.mixins import TimestampMixin
from app.modules.auth.roles import RoleName


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normaliza fechas leídas sin zona horaria (p.ej. SQLite) a UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class Role(Base, TimestampMixin):
    __tablename__ = "roles"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(50), unique=True, nullable=False)
    display_name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    permissions = Column(JSON, nullable=False, default=list)

    users = relationship("User", back_populates="role")

    @property
    def role_name(self) -> Optional[RoleName]:
        try:
            return RoleName(self.name)
        except ValueError:
            return None

    @property
    def is_super_admin(self) -> bool:
        return self.role_name is RoleName.SUPER_ADMIN

    def get_all_permissions(self) -> list[str]:
        return list(self.permissions or [])


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String, nullable=False)
    company_id = Column(UUID(as_uuid=True), ForeignKey("companies.id"), nullable=True, index=True)
    role_id = Column(UUID(as_uuid=True), ForeignKey("roles.id"), nullable=True)
    user_type = Column(String(20), nullable=False, default="user")  # system, user, api_client
    active = Column(Boolean, nullable=False, default=True)
    email_verified_at = Column(DateTime(timezone=True), nullable=True)

    # Bloqueo por intentos fallidos
    failed_login_attempts = Column(Integer, nullable=False, default=0)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    last_login_ip = Column(String(45), nullable=True)

    # Relationships
    role = relationship("Role", back_populates="users")
    company = relationship("Company", back_populates="users")
    tokens = relationship("AccessToken", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_super_admin(self) -> bool:
        return bool(self.role and self.role.is_super_admin)

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        locked_until = as_utc(self.locked_until)
        if locked_until is None:
            return False
        return locked_until > (now or datetime.now(timezone.utc))

    def get_all_permissions(self) -> list[str]:
        return self.role.get_all_permissions() if self.role else []


class AccessToken(Base):
    """Registro de cada token emitido. El ``id`` viaja como ``jti`` en el JWT."""
    __tablename__ = "access_tokens"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    abilities = Column(JSON, nullable=False, default=list)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="tokens")

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None
