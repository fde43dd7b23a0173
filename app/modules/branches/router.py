"""
Router para sucursales. Todos los endpoints están scoped por company_id.
"""
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.common.responses import success_response
from app.common.tenancy import TenantScope, enforce_tenant_scope, get_tenant_scope
from app.core.config import settings
from app.database.database import get_db
from app.modules.auth.dependencies import require_ability
from app.modules.branches.schemas import BranchCreate, BranchUpdate, BranchOut
from app.modules.branches.service import BranchService

router = APIRouter(
    prefix="/branches",
    tags=["Branches"],
    dependencies=[Depends(enforce_tenant_scope)],
    responses={404: {"description": "Not found"}}
)


@router.get("/", dependencies=[Depends(require_ability("branches.view"))])
def list_branches(
    company_id: Optional[UUID] = Query(None, description="Filtrar por empresa"),
    activo: Optional[bool] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    items, pagination = BranchService(db).list_branches(scope, company_id, page, per_page, activo)
    return success_response(
        data={"items": [BranchOut.model_validate(b) for b in items], "pagination": pagination},
        message="Sucursales obtenidas correctamente",
    )


@router.post("/", dependencies=[Depends(require_ability("branches.create"))])
def create_branch(
    branch_data: BranchCreate,
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    branch = BranchService(db).create_branch(branch_data, scope)
    return success_response(
        data=BranchOut.model_validate(branch),
        message="Sucursal creada exitosamente",
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/company/{company_id}", dependencies=[Depends(require_ability("branches.view"))])
def get_branches_by_company(
    company_id: UUID = Path(..., description="ID de la empresa"),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    result = BranchService(db).branches_by_company(company_id, scope)
    return success_response(
        data=[BranchOut.model_validate(b) for b in result["items"]],
        meta=result["meta"],
    )


@router.get("/{branch_id}", dependencies=[Depends(require_ability("branches.view"))])
def get_branch(
    branch_id: UUID = Path(..., description="ID de la sucursal"),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    branch = BranchService(db).get_branch(branch_id, scope)
    return success_response(data=BranchOut.model_validate(branch))


@router.put("/{branch_id}", dependencies=[Depends(require_ability("branches.update"))])
def update_branch(
    branch_data: BranchUpdate,
    branch_id: UUID = Path(..., description="ID de la sucursal"),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    branch = BranchService(db).update_branch(branch_id, branch_data, scope)
    return success_response(
        data=BranchOut.model_validate(branch),
        message="Sucursal actualizada exitosamente",
    )


@router.delete("/{branch_id}", dependencies=[Depends(require_ability("branches.delete"))])
def delete_branch(
    branch_id: UUID = Path(..., description="ID de la sucursal"),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    """Las sucursales no se eliminan: se desactivan."""
    BranchService(db).set_active(branch_id, False, scope)
    return success_response(message="Sucursal desactivada exitosamente")


@router.post("/{branch_id}/activate", dependencies=[Depends(require_ability("branches.update"))])
def activate_branch(
    branch_id: UUID = Path(..., description="ID de la sucursal"),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    branch = BranchService(db).set_active(branch_id, True, scope)
    return success_response(
        data=BranchOut.model_validate(branch),
        message="Sucursal activada exitosamente",
    )
