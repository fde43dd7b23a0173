"""
Dependencias de autenticación para FastAPI.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session, selectinload

from app.common.exceptions import AuthenticationError, AuthorizationError
from app.database.database import get_db
from app.modules.auth.models import User, AccessToken
from app.modules.auth.schemas import AuthContext
from app.modules.auth.utils import decode_access_token

logger = logging.getLogger(__name__)

# auto_error=False: la ausencia de token se reporta como 401 con el envelope
security = HTTPBearer(auto_error=False)


class AuthDependencies:
    """Dependencias de autenticación reutilizables."""

    @staticmethod
    def get_auth_context(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        db: Session = Depends(get_db)
    ) -> AuthContext:
        """
        Resolver el contexto del usuario a partir del bearer token.
        Las abilities se leen del registro del token, nunca del rol actual.
        """
        if credentials is None:
            raise AuthenticationError("No autenticado")

        try:
            payload = decode_access_token(credentials.credentials)
            token_id = UUID(payload["jti"])
            user_id = UUID(payload["sub"])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token expirado", error="token_expired")
        except (jwt.PyJWTError, ValueError):
            raise AuthenticationError("No se pudieron validar las credenciales", error="invalid_token")

        token = db.get(AccessToken, token_id)
        if token is None or token.is_revoked or token.user_id != user_id:
            raise AuthenticationError("Token revocado o inexistente", error="invalid_token")

        user = db.query(User).options(selectinload(User.role)).filter(User.id == user_id).first()
        if user is None or not user.active:
            raise AuthenticationError("No se pudieron validar las credenciales", error="invalid_token")

        token.last_used_at = datetime.now(timezone.utc)
        db.commit()

        return AuthContext(
            user_id=user.id,
            token_id=token.id,
            company_id=user.company_id,
            role=user.role.role_name if user.role else None,
            user_type=user.user_type,
            abilities=list(token.abilities or []),
        )

    @staticmethod
    def require_ability(ability: str):
        """
        Dependencia para requerir una ability del token.
        """
        def ability_checker(auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)) -> AuthContext:
            if not auth_context.can(ability):
                logger.warning(f"User {auth_context.user_id} denied ability {ability}")
                raise AuthorizationError(
                    "No tiene permisos para realizar esta acción",
                    error="insufficient_ability"
                )
            return auth_context
        return ability_checker

    @staticmethod
    def require_super_admin():
        """Dependencia para endpoints reservados al super administrador."""
        def super_admin_checker(auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)) -> AuthContext:
            if not auth_context.is_super_admin:
                raise AuthorizationError(
                    "Solo un super administrador puede realizar esta acción",
                    error="super_admin_required"
                )
            return auth_context
        return super_admin_checker


# Instancias de dependencias
get_auth_context = AuthDependencies.get_auth_context
require_ability = AuthDependencies.require_ability
require_super_admin = AuthDependencies.require_super_admin
