from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from uuid import UUID

from app.common.responses import success_response
from app.database.database import get_db
from app.modules.auth.service import AuthService
from app.modules.auth.dependencies import get_auth_context, require_super_admin
from app.modules.auth.schemas import AuthContext, SystemInitialize, UserCreate, UserLogin, UserOut

auth_router = APIRouter()
system_router = APIRouter()


@auth_router.post("/login")
def login(credentials: UserLogin, request: Request, db: Session = Depends(get_db)):
    """
    Login con email y contraseña. El token emitido lleva las abilities del rol
    y una expiración según el tipo de usuario.
    """
    ip_address = request.client.host if request.client else None
    token = AuthService(db).login(credentials.email, credentials.password, ip_address)
    return success_response(data=token, message="Login exitoso")


@auth_router.post("/initialize")
def initialize_system(data: SystemInitialize, db: Session = Depends(get_db)):
    """
    Inicializar el sistema creando el primer super administrador.
    Solo funciona mientras no exista ningún usuario.
    """
    result = AuthService(db).initialize(data)
    return success_response(
        data=result,
        message="Sistema inicializado exitosamente",
        status_code=status.HTTP_201_CREATED,
    )


@auth_router.post("/logout")
def logout(auth: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    AuthService(db).revoke_token(auth.token_id)
    return success_response(message="Sesión cerrada exitosamente")


@auth_router.get("/me")
def get_current_user_info(auth: AuthContext = Depends(get_auth_context), db: Session = Depends(get_db)):
    return success_response(data=AuthService(db).describe(auth))


# ===== ADMINISTRACIÓN DE USUARIOS (super administrador) =====

@auth_router.post("/users", dependencies=[Depends(require_super_admin())])
def create_user(user_data: UserCreate, db: Session = Depends(get_db)):
    user = AuthService(db).create_user(user_data)
    return success_response(
        data=UserOut.model_validate(user),
        message="Usuario creado exitosamente",
        status_code=status.HTTP_201_CREATED,
    )


@auth_router.post("/users/{user_id}/deactivate", dependencies=[Depends(require_super_admin())])
def deactivate_user(user_id: UUID, db: Session = Depends(get_db)):
    """Desactiva el usuario y revoca todos sus tokens."""
    user = AuthService(db).deactivate_user(user_id)
    return success_response(
        data=UserOut.model_validate(user),
        message="Usuario desactivado exitosamente",
    )


@auth_router.post("/users/{user_id}/activate", dependencies=[Depends(require_super_admin())])
def activate_user(user_id: UUID, db: Session = Depends(get_db)):
    user = AuthService(db).activate_user(user_id)
    return success_response(
        data=UserOut.model_validate(user),
        message="Usuario activado exitosamente",
    )


@auth_router.post("/users/{user_id}/revoke-tokens", dependencies=[Depends(require_super_admin())])
def revoke_user_tokens(user_id: UUID, db: Session = Depends(get_db)):
    service = AuthService(db)
    user = service.get_user(user_id)
    revoked = service.revoke_all_tokens(user.id)
    return success_response(
        data={"revoked_tokens": revoked},
        message="Tokens revocados exitosamente",
    )


@system_router.get("/info")
def system_info(db: Session = Depends(get_db)):
    """Estado público del sistema."""
    return success_response(data=AuthService(db).system_info())
