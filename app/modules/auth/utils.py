from passlib.context import CryptContext
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
import jwt
from app.core.config import settings
from app.modules.auth.roles import UserType

SECRET_KEY = settings.APP_SECRET_STRING
ALGORITHM = settings.ALGORITHM

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)

def verify_password(plain: str, hashed: str) -> bool:
    """Verify a hashed password against a plain password."""
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


# Hash de referencia para verificar contra algo cuando el email no existe
DUMMY_PASSWORD_HASH = hash_password("usuario-inexistente")


def token_lifetime(user_type: Optional[str]) -> timedelta:
    """
    Duración del token según el tipo de usuario:
    system 7 días, api_client 24 horas, user 12 horas.
    Cualquier otro tipo usa ACCESS_TOKEN_EXPIRE_MINUTES.
    """
    if user_type == UserType.SYSTEM.value:
        return timedelta(days=settings.SYSTEM_TOKEN_EXPIRE_DAYS)
    if user_type == UserType.API_CLIENT.value:
        return timedelta(hours=settings.API_CLIENT_TOKEN_EXPIRE_HOURS)
    if user_type == UserType.USER.value:
        return timedelta(hours=settings.USER_TOKEN_EXPIRE_HOURS)
    return timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def create_access_token(
    token_id: UUID,
    user_id: UUID,
    abilities: list[str],
    expires_at: datetime,
    extra: Optional[dict] = None,
) -> str:
    """
    Create a JWT access token. Abilities and expiry are fixed here and never
    re-derived when the token is presented.
    """
    to_encode = dict(extra or {})
    to_encode.update({
        "sub": str(user_id),
        "jti": str(token_id),
        "abilities": list(abilities),
        "iat": datetime.now(timezone.utc),
        "exp": expires_at,
        "type": "access",
    })
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT access token.

    Raises:
        jwt.ExpiredSignatureError: token expirado
        jwt.InvalidTokenError: firma o formato inválido
    """
    payload = jwt.decode(
        token,
        SECRET_KEY,
        algorithms=[ALGORITHM],
        options={"require": ["exp", "sub", "jti"]},
    )
    if payload.get("type") != "access":
        raise jwt.InvalidTokenError("Unexpected token type")
    return payload
