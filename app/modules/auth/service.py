import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import text
from sqlalchemy.orm import Session, selectinload

from app.common.exceptions import AuthenticationError, AuthorizationError
from app.core.config import settings
from app.modules.auth.models import User, Role, AccessToken
from app.modules.auth.roles import RoleName, UserType, WILDCARD, seed_roles_and_permissions
from app.modules.auth.schemas import (
    AuthContext, SystemInitialize, UserCreate, UserSummary, TokenResponse
)
from app.modules.auth.utils import (
    DUMMY_PASSWORD_HASH, hash_password, verify_password, token_lifetime, create_access_token
)
from app.modules.company.models import Company

logger = logging.getLogger(__name__)


class AuthService:
    """
    Servicio de autenticación: emisión y revocación de tokens,
    inicialización del sistema y administración de usuarios.
    """

    def __init__(self, db: Session):
        self.db = db

    # ===== TOKENS =====

    def issue_token(self, user: User, name: str, abilities: list[str]) -> Tuple[str, datetime]:
        """
        Emitir un token para el usuario. Abilities y expiración quedan fijados
        en este momento según el rol y el tipo de usuario.
        """
        expires_at = datetime.now(timezone.utc) + token_lifetime(user.user_type)
        record = AccessToken(
            user_id=user.id,
            name=name,
            abilities=list(abilities),
            expires_at=expires_at,
        )
        self.db.add(record)
        self.db.flush()

        token = create_access_token(
            token_id=record.id,
            user_id=user.id,
            abilities=record.abilities,
            expires_at=expires_at,
            extra={
                "user_type": user.user_type,
                "company_id": str(user.company_id) if user.company_id else None,
            },
        )
        return token, expires_at

    def revoke_token(self, token_id: UUID) -> None:
        token = self.db.get(AccessToken, token_id)
        if token and token.revoked_at is None:
            token.revoked_at = datetime.now(timezone.utc)
            self.db.commit()

    def revoke_all_tokens(self, user_id: UUID) -> int:
        """Revocar todos los tokens activos de un usuario."""
        now = datetime.now(timezone.utc)
        revoked = self.db.query(AccessToken).filter(
            AccessToken.user_id == user_id,
            AccessToken.revoked_at.is_(None)
        ).update({"revoked_at": now}, synchronize_session=False)
        self.db.commit()
        logger.info(f"Revoked {revoked} tokens for user {user_id}")
        return revoked

    # ===== LOGIN =====

    def _register_failed_attempt(self, user: User) -> None:
        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
        if user.failed_login_attempts >= settings.MAX_LOGIN_ATTEMPTS:
            user.locked_until = datetime.now(timezone.utc) + timedelta(minutes=settings.LOCKOUT_MINUTES)
            user.failed_login_attempts = 0
            logger.warning(f"User {user.email} locked after repeated failed logins")
        self.db.commit()

    def login(self, email: str, password: str, ip_address: Optional[str] = None) -> TokenResponse:
        """
        Login de usuario. Email desconocido y contraseña incorrecta producen
        la misma respuesta; cuenta inactiva y cuenta bloqueada son distinguibles.
        """
        user = self.db.query(User).options(
            selectinload(User.role)
        ).filter(User.email == email).first()

        # Un email desconocido también paga el costo de bcrypt
        password_ok = verify_password(password, user.password if user else DUMMY_PASSWORD_HASH)
        if not user or not password_ok:
            if user:
                self._register_failed_attempt(user)
            logger.warning(f"Failed login attempt for {email}")
            raise AuthenticationError("Credenciales incorrectas", error="invalid_credentials")

        if not user.active:
            raise AuthenticationError("Usuario inactivo", error="user_inactive")

        if user.is_locked():
            raise AuthenticationError("Usuario bloqueado", error="user_locked")

        user.failed_login_attempts = 0
        user.locked_until = None
        user.last_login_at = datetime.now(timezone.utc)
        user.last_login_ip = ip_address

        abilities = user.get_all_permissions()
        token, expires_at = self.issue_token(user, "API_ACCESS_TOKEN", abilities)
        self.db.commit()

        logger.info(f"User {user.email} logged in ({user.user_type})")
        return TokenResponse(
            user=UserSummary(
                id=user.id,
                name=user.name,
                email=user.email,
                role=user.role.display_name if user.role else "Sin rol",
                company_id=user.company_id,
                permissions=abilities,
            ),
            access_token=token,
            expires_at=expires_at,
        )

    # ===== INICIALIZACIÓN =====

    def is_initialized(self) -> bool:
        return self.db.query(User.id).first() is not None

    def initialize(self, data: SystemInitialize) -> dict:
        """
        Inicializar el sistema: roles, primer super administrador y token
        sin restricciones. Solo es posible mientras no exista ningún usuario.
        """
        if self.is_initialized():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Sistema ya inicializado"
            )

        seed_roles_and_permissions(self.db)
        super_admin_role = self.db.query(Role).filter(Role.name == RoleName.SUPER_ADMIN.value).one()

        user = User(
            name=data.name,
            email=data.email,
            password=hash_password(data.password),
            role=super_admin_role,
            user_type=UserType.SYSTEM.value,
            active=True,
            email_verified_at=datetime.now(timezone.utc),
        )
        self.db.add(user)
        self.db.flush()

        token, expires_at = self.issue_token(user, "API_INIT_TOKEN", [WILDCARD])
        self.db.commit()

        logger.info(f"System initialized by {user.email}")
        return {
            "user": {
                "id": user.id,
                "name": user.name,
                "email": user.email,
                "role": super_admin_role.display_name,
            },
            "access_token": token,
            "token_type": "Bearer",
            "expires_at": expires_at,
        }

    # ===== ADMINISTRACIÓN DE USUARIOS =====

    def _get_user(self, user_id: UUID) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Usuario no encontrado"
            )
        return user

    def get_user(self, user_id: UUID) -> User:
        return self._get_user(user_id)

    def create_user(self, data: UserCreate) -> User:
        if self.db.query(User).filter(User.email == data.email).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Este email ya está registrado"
            )

        role = self.db.query(Role).filter(Role.name == data.role_name.value).first()
        if not role:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Rol {data.role_name.value} no encontrado"
            )

        if data.company_id is not None and not self.db.get(Company, data.company_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="La empresa especificada no existe"
            )

        user = User(
            name=data.name,
            email=data.email,
            password=hash_password(data.password),
            role=role,
            company_id=data.company_id,
            user_type=data.user_type.value,
            active=True,
            email_verified_at=datetime.now(timezone.utc),
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)

        logger.info(f"User {user.email} created with role {role.name}")
        return user

    def deactivate_user(self, user_id: UUID) -> User:
        user = self._get_user(user_id)
        if user.is_super_admin:
            raise AuthorizationError("No se puede desactivar un super administrador")

        user.active = False
        self.db.commit()
        self.revoke_all_tokens(user.id)

        logger.warning(f"User {user.email} deactivated")
        return user

    def activate_user(self, user_id: UUID) -> User:
        user = self._get_user(user_id)
        user.active = True
        user.failed_login_attempts = 0
        user.locked_until = None
        self.db.commit()

        logger.info(f"User {user.email} activated")
        return user

    # ===== SISTEMA =====

    def system_info(self) -> dict:
        try:
            self.db.execute(text("SELECT 1"))
            database_connected = True
        except Exception as e:
            logger.error(f"Database connectivity check failed: {e}")
            database_connected = False

        user_count = self.db.query(User).count() if database_connected else 0
        return {
            "system_initialized": user_count > 0,
            "user_count": user_count,
            "roles_count": self.db.query(Role).count() if database_connected else 0,
            "app_name": settings.APP_NAME,
            "app_env": settings.ENVIRONMENT,
            "app_debug": settings.DEBUG,
            "database_connected": database_connected,
        }

    def describe(self, auth: AuthContext) -> dict:
        """Información del usuario autenticado."""
        user = self.db.query(User).options(
            selectinload(User.role), selectinload(User.company)
        ).filter(User.id == auth.user_id).one()
        return {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "user_type": user.user_type,
            "role": user.role.display_name if user.role else "Sin rol",
            "company": user.company.razon_social if user.company else None,
            "company_id": user.company_id,
            "permissions": user.get_all_permissions(),
            "abilities": auth.abilities,
            "last_login_at": user.last_login_at,
            "created_at": user.created_at,
        }
