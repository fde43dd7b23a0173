"""
Aislamiento multi-tenant por empresa.

Dos capas, ambas basadas en el ``AuthContext`` explícito del request:

* ``enforce_tenant_scope``: dependencia a nivel de router que se ejecuta antes
  de cada handler y rechaza cualquier ``company_id`` (query string o cuerpo
  JSON) distinto al del usuario.
* ``TenantScope``: política que los servicios usan para resolver el filtro de
  lectura, el ``company_id`` de escritura y para autorizar cada registro
  cargado por id.

El super administrador omite todas las verificaciones.
"""
import json
import logging
from typing import Any, Optional, TypeVar
from uuid import UUID

from fastapi import Depends, Request, status

from app.common.exceptions import ApiError, AuthorizationError
from app.modules.auth.dependencies import get_auth_context
from app.modules.auth.schemas import AuthContext

logger = logging.getLogger(__name__)

WRITE_METHODS = ("POST", "PUT", "PATCH")

T = TypeVar("T")


def parse_company_id(value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ApiError(
            status_code=422,
            message="company_id inválido",
            error="invalid_company_id",
        )


class TenantScope:
    """Política de acceso por empresa para el usuario autenticado."""

    def __init__(self, auth: AuthContext):
        self.auth = auth

    @property
    def is_super_admin(self) -> bool:
        return self.auth.is_super_admin

    @property
    def company_id(self) -> Optional[UUID]:
        return self.auth.company_id

    def ensure_company_assigned(self) -> None:
        if not self.is_super_admin and self.company_id is None:
            raise AuthorizationError(
                "Usuario sin empresa asignada. Contacte al administrador.",
                error="company_not_assigned"
            )

    def _deny(self, message: str, requested: Any = None) -> None:
        logger.warning(
            f"Tenant access denied: user={self.auth.user_id} "
            f"company={self.company_id} requested={requested}"
        )
        raise AuthorizationError(message, error="tenant_mismatch")

    def resolve_read(self, requested: Optional[Any] = None) -> Optional[UUID]:
        """
        Filtro de empresa para lecturas. Sin filtro explícito se fuerza la
        empresa del usuario; para el super administrador ``None`` significa
        todas las empresas.
        """
        requested_id = parse_company_id(requested) if requested is not None else None
        if self.is_super_admin:
            return requested_id

        self.ensure_company_assigned()
        if requested_id is not None and requested_id != self.company_id:
            self._deny("No tiene permisos para acceder a los datos de otra empresa", requested_id)
        return self.company_id

    def resolve_write(self, requested: Optional[Any] = None) -> Optional[UUID]:
        """
        ``company_id`` efectivo para creaciones y actualizaciones. Si no se
        envía, se inyecta la empresa del usuario.
        """
        requested_id = parse_company_id(requested) if requested is not None else None
        if self.is_super_admin:
            return requested_id

        self.ensure_company_assigned()
        if requested_id is not None and requested_id != self.company_id:
            self._deny("No puede crear o modificar datos de otra empresa", requested_id)
        return self.company_id

    def require_write_company(self, requested: Optional[Any] = None) -> UUID:
        """Como ``resolve_write`` pero la empresa es obligatoria."""
        company_id = self.resolve_write(requested)
        if company_id is None:
            raise ApiError(
                status_code=422,
                message="El campo company_id es obligatorio",
                error="company_id_required",
            )
        return company_id

    def require_read_company(self, requested: Optional[Any] = None) -> UUID:
        """Como ``resolve_read`` para consultas que exigen una empresa concreta."""
        company_id = self.resolve_read(requested)
        if company_id is None:
            raise ApiError(
                status_code=422,
                message="El campo company_id es obligatorio",
                error="company_id_required",
            )
        return company_id

    def authorize_company(self, company_id: Any) -> UUID:
        """Verificar acceso a una empresa identificada en la ruta."""
        company_id = parse_company_id(company_id)
        if self.is_super_admin:
            return company_id

        self.ensure_company_assigned()
        if company_id != self.company_id:
            self._deny("No tiene permisos para acceder a este recurso", company_id)
        return company_id

    def authorize(self, record: T) -> T:
        """Verificar que un registro cargado por id pertenece a la empresa del usuario."""
        if self.is_super_admin:
            return record

        self.ensure_company_assigned()
        if getattr(record, "company_id", None) is None:
            raise ApiError(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                message="El recurso no tiene información de empresa",
            )
        if record.company_id != self.company_id:
            self._deny("No tiene permisos para acceder a este recurso", record.company_id)
        return record


def get_tenant_scope(auth: AuthContext = Depends(get_auth_context)) -> TenantScope:
    return TenantScope(auth)


async def _json_company_id(request: Request) -> Optional[Any]:
    raw = await request.body()
    if not raw:
        return None
    try:
        body = json.loads(raw)
    except ValueError:
        # El endpoint reporta el cuerpo inválido como error de validación
        return None
    if isinstance(body, dict):
        return body.get("company_id")
    return None


async def enforce_tenant_scope(
    request: Request,
    scope: TenantScope = Depends(get_tenant_scope),
) -> TenantScope:
    """
    Verificación previa a cualquier handler de un router multi-tenant.
    """
    if scope.is_super_admin:
        return scope

    scope.ensure_company_assigned()

    query_company = request.query_params.get("company_id")
    if query_company is not None:
        scope.resolve_read(query_company)

    if request.method in WRITE_METHODS:
        body_company = await _json_company_id(request)
        if body_company is not None:
            scope.resolve_write(body_company)

    return scope
