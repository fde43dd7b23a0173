from datetime import date
from fastapi import APIRouter, Depends, Query, Path, status
from typing import Optional
from uuid import UUID

from app.common.responses import success_response
from app.common.tenancy import TenantScope, enforce_tenant_scope, get_tenant_scope
from app.modules.auth.dependencies import require_ability
from app.modules.documents.dependencies import get_document_service
from app.modules.documents.models import Boleta
from app.modules.documents.router import register_document_routes
from app.modules.documents.schemas import BoletaCreate, BoletaOut, DailySummaryCreate, DailySummaryOut
from app.modules.documents.service import DocumentService

router = APIRouter(
    prefix="/boletas",
    tags=["Boletas"],
    dependencies=[Depends(enforce_tenant_scope)],
    responses={404: {"description": "Not found"}}
)

summaries = [Depends(require_ability("boletas.summaries"))]


@router.post("/", dependencies=[Depends(require_ability("boletas.create"))])
def create_boleta(
    boleta_data: BoletaCreate,
    scope: TenantScope = Depends(get_tenant_scope),
    service: DocumentService = Depends(get_document_service)
):
    """Registrar una boleta de venta (serie B###)."""
    boleta = service.create_boleta(boleta_data, scope)
    return success_response(
        data=BoletaOut.model_validate(boleta),
        message="Boleta creada correctamente",
        status_code=status.HTTP_201_CREATED,
    )


# ===== RESUMEN DIARIO =====

@router.get("/pending-summary", dependencies=summaries)
def get_boletas_pending_for_summary(
    branch_id: UUID = Query(...),
    fecha_emision: date = Query(...),
    company_id: Optional[UUID] = Query(None),
    scope: TenantScope = Depends(get_tenant_scope),
    service: DocumentService = Depends(get_document_service)
):
    boletas = service.pending_boletas(scope, branch_id, fecha_emision, company_id)
    return success_response(
        data=[BoletaOut.model_validate(b) for b in boletas],
        message="Boletas pendientes obtenidas correctamente",
        total=len(boletas),
    )


@router.post("/summary", dependencies=summaries)
def create_daily_summary(
    summary_data: DailySummaryCreate,
    scope: TenantScope = Depends(get_tenant_scope),
    service: DocumentService = Depends(get_document_service)
):
    """Crear el resumen diario con las boletas pendientes de una sucursal y fecha."""
    summary = service.create_summary_from_boletas(summary_data, scope)
    return success_response(
        data=DailySummaryOut.model_validate(summary),
        message="Resumen diario creado correctamente",
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/summary/{summary_id}/send-sunat", dependencies=summaries)
def send_summary_to_sunat(
    summary_id: UUID = Path(...),
    scope: TenantScope = Depends(get_tenant_scope),
    service: DocumentService = Depends(get_document_service)
):
    summary = service.send_daily_summary(service.get_summary(summary_id, scope))
    return success_response(
        data=DailySummaryOut.model_validate(summary),
        message="Resumen enviado correctamente a SUNAT",
        ticket=summary.ticket,
    )


@router.get("/summary/{summary_id}/status", dependencies=summaries)
def check_summary_status(
    summary_id: UUID = Path(...),
    scope: TenantScope = Depends(get_tenant_scope),
    service: DocumentService = Depends(get_document_service)
):
    summary = service.check_summary_status(service.get_summary(summary_id, scope))
    return success_response(
        data=DailySummaryOut.model_validate(summary),
        message="Estado del resumen consultado correctamente",
    )


register_document_routes(router, Boleta, "boletas")
