from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.common.responses import success_response
from app.common.tenancy import TenantScope, enforce_tenant_scope, get_tenant_scope
from app.core.config import settings
from app.database.database import get_db
from app.modules.auth.dependencies import require_ability
from app.modules.clients.schemas import ClientCreate, ClientUpdate, ClientOut, TipoDocumento
from app.modules.clients.service import ClientService

router = APIRouter(
    prefix="/clients",
    tags=["Clients"],
    dependencies=[Depends(enforce_tenant_scope)],
    responses={404: {"description": "Not found"}}
)


@router.get("/", dependencies=[Depends(require_ability("clients.view"))])
def list_clients(
    company_id: Optional[UUID] = Query(None, description="Filtrar por empresa"),
    tipo_documento: Optional[TipoDocumento] = Query(None),
    search: Optional[str] = Query(None, description="Número de documento, razón social o nombre comercial"),
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    items, pagination = ClientService(db).list_clients(
        scope, page, per_page, company_id=company_id, tipo_documento=tipo_documento, search=search
    )
    return success_response(
        data={"items": [ClientOut.model_validate(c) for c in items], "pagination": pagination},
        message="Clientes obtenidos correctamente",
    )


@router.post("/", dependencies=[Depends(require_ability("clients.create"))])
def create_client(
    client_data: ClientCreate,
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    client = ClientService(db).create_client(client_data, scope)
    return success_response(
        data=ClientOut.model_validate(client),
        message="Cliente creado exitosamente",
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/search", dependencies=[Depends(require_ability("clients.view"))])
def search_client_by_document(
    tipo_documento: TipoDocumento = Query(...),
    numero_documento: str = Query(..., min_length=1, max_length=20),
    company_id: Optional[UUID] = Query(None),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    client = ClientService(db).search_by_document(scope, tipo_documento, numero_documento, company_id)
    return success_response(data=ClientOut.model_validate(client))


@router.get("/company/{company_id}", dependencies=[Depends(require_ability("clients.view"))])
def get_clients_by_company(
    company_id: UUID = Path(..., description="ID de la empresa"),
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    result = ClientService(db).clients_by_company(company_id, scope, page, per_page)
    return success_response(
        data={"items": [ClientOut.model_validate(c) for c in result["items"]], "pagination": result["pagination"]},
        meta=result["meta"],
    )


@router.get("/{client_id}", dependencies=[Depends(require_ability("clients.view"))])
def get_client(
    client_id: UUID = Path(..., description="ID del cliente"),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    client = ClientService(db).get_client(client_id, scope)
    return success_response(data=ClientOut.model_validate(client))


@router.put("/{client_id}", dependencies=[Depends(require_ability("clients.update"))])
def update_client(
    client_data: ClientUpdate,
    client_id: UUID = Path(..., description="ID del cliente"),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    client = ClientService(db).update_client(client_id, client_data, scope)
    return success_response(
        data=ClientOut.model_validate(client),
        message="Cliente actualizado exitosamente",
    )


@router.delete("/{client_id}", dependencies=[Depends(require_ability("clients.delete"))])
def delete_client(
    client_id: UUID = Path(..., description="ID del cliente"),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    """Desactivar cliente (los comprobantes emitidos siguen referenciándolo)."""
    ClientService(db).set_active(client_id, False, scope)
    return success_response(message="Cliente desactivado exitosamente")


@router.post("/{client_id}/activate", dependencies=[Depends(require_ability("clients.update"))])
def activate_client(
    client_id: UUID = Path(..., description="ID del cliente"),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    client = ClientService(db).set_active(client_id, True, scope)
    return success_response(
        data=ClientOut.model_validate(client),
        message="Cliente activado exitosamente",
    )
