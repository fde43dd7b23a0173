"""
Catálogo cerrado de roles, tipos de usuario y permisos (abilities).

Los permisos se expresan como ``<recurso>.<acción>``. ``*`` concede todo y
``<recurso>.*`` concede todas las acciones sobre un recurso.
"""
import enum
import logging
from typing import Iterable

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

WILDCARD = "*"


class RoleName(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    COMPANY_ADMIN = "company_admin"
    COMPANY_USER = "company_user"
    API_CLIENT = "api_client"
    READ_ONLY = "read_only"

    @property
    def is_super_admin(self) -> bool:
        return self is RoleName.SUPER_ADMIN


class UserType(str, enum.Enum):
    SYSTEM = "system"
    USER = "user"
    API_CLIENT = "api_client"


DOCUMENT_RESOURCES = ("invoices", "boletas", "credit_notes")

PERMISSIONS = [
    "companies.view", "companies.create", "companies.update",
    "branches.view", "branches.create", "branches.update", "branches.delete",
    "clients.view", "clients.create", "clients.update", "clients.delete",
    *[f"{r}.{a}" for r in DOCUMENT_RESOURCES for a in ("view", "create", "send", "download")],
    "boletas.summaries",
    "users.manage",
]


def _all_except(*excluded: str) -> list[str]:
    return [p for p in PERMISSIONS if p not in excluded]


ROLE_DEFINITIONS = {
    RoleName.SUPER_ADMIN: {
        "display_name": "Super Administrador",
        "description": "Acceso total a todas las empresas del sistema",
        "permissions": [WILDCARD],
    },
    RoleName.COMPANY_ADMIN: {
        "display_name": "Administrador de Empresa",
        "description": "Gestión completa de su empresa",
        "permissions": _all_except("companies.create", "users.manage"),
    },
    RoleName.COMPANY_USER: {
        "display_name": "Usuario de Empresa",
        "description": "Emisión de comprobantes y gestión de clientes",
        "permissions": [
            "companies.view", "branches.view",
            "clients.view", "clients.create", "clients.update",
            *[f"{r}.{a}" for r in DOCUMENT_RESOURCES for a in ("view", "create", "send", "download")],
            "boletas.summaries",
        ],
    },
    RoleName.API_CLIENT: {
        "display_name": "Cliente API",
        "description": "Integración de sistemas externos para emisión",
        "permissions": [
            "branches.view", "clients.view", "clients.create",
            *[f"{r}.{a}" for r in DOCUMENT_RESOURCES for a in ("view", "create", "send", "download")],
        ],
    },
    RoleName.READ_ONLY: {
        "display_name": "Solo Lectura",
        "description": "Consulta de comprobantes y catálogos",
        "permissions": [p for p in PERMISSIONS if p.endswith((".view", ".download"))],
    },
}


def has_ability(abilities: Iterable[str], ability: str) -> bool:
    """Verifica si un conjunto de abilities concede la ability pedida."""
    granted = set(abilities or [])
    if WILDCARD in granted or ability in granted:
        return True
    resource = ability.split(".", 1)[0]
    return f"{resource}.{WILDCARD}" in granted


def seed_roles_and_permissions(db: Session) -> int:
    """
    Crea o actualiza los roles del catálogo. Idempotente.

    Returns:
        int: número de roles creados
    """
    from app.modules.auth.models import Role

    created = 0
    for name, definition in ROLE_DEFINITIONS.items():
        role = db.query(Role).filter(Role.name == name.value).first()
        if role is None:
            role = Role(name=name.value)
            db.add(role)
            created += 1
        role.display_name = definition["display_name"]
        role.description = definition["description"]
        role.permissions = list(definition["permissions"])
    db.flush()

    logger.info(f"Roles sincronizados ({created} nuevos)")
    return created
