from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from uuid import UUID

from app.common.responses import success_response
from app.common.tenancy import TenantScope, enforce_tenant_scope, get_tenant_scope
from app.core.config import settings
from app.database.database import get_db
from app.modules.auth.dependencies import require_ability, require_super_admin
from app.modules.company.schemas import CompanyCreate, CompanyUpdate, CompanyOut
from app.modules.company.service import CompanyService

company_router = APIRouter(dependencies=[Depends(enforce_tenant_scope)])


@company_router.post("/", dependencies=[Depends(require_super_admin())])
def create_company(company_data: CompanyCreate, db: Session = Depends(get_db)):
    """Registrar una empresa emisora (solo super administrador)."""
    company = CompanyService(db).create_company(company_data)
    return success_response(
        data=CompanyOut.model_validate(company),
        message="Empresa creada exitosamente",
        status_code=status.HTTP_201_CREATED,
    )


@company_router.get("/", dependencies=[Depends(require_ability("companies.view"))])
def list_companies(
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    items, pagination = CompanyService(db).list_companies(scope, page, per_page)
    return success_response(
        data={"items": [CompanyOut.model_validate(c) for c in items], "pagination": pagination},
        message="Empresas obtenidas correctamente",
    )


@company_router.get("/{company_id}", dependencies=[Depends(require_ability("companies.view"))])
def get_company(
    company_id: UUID,
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    company = CompanyService(db).get_company(company_id, scope)
    return success_response(data=CompanyOut.model_validate(company))


@company_router.put("/{company_id}", dependencies=[Depends(require_ability("companies.update"))])
def update_company(
    company_id: UUID,
    company_data: CompanyUpdate,
    scope: TenantScope = Depends(get_tenant_scope),
    db: Session = Depends(get_db)
):
    company = CompanyService(db).update_company(company_id, company_data, scope)
    return success_response(
        data=CompanyOut.model_validate(company),
        message="Empresa actualizada exitosamente",
    )
