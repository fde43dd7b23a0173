from datetime import date
from fastapi import APIRouter, Depends, Query, status
from typing import Literal, Optional
from uuid import UUID

from app.common.responses import success_response
from app.common.tenancy import TenantScope, enforce_tenant_scope, get_tenant_scope
from app.core.config import settings
from app.modules.auth.dependencies import require_ability
from app.modules.documents.dependencies import get_document_service
from app.modules.documents.models import CreditNote, EstadoSunat
from app.modules.documents.router import register_document_routes
from app.modules.documents.schemas import CreditNoteCreate, CreditNoteOut, MOTIVOS_NOTA_CREDITO
from app.modules.documents.service import DocumentService

router = APIRouter(
    prefix="/credit-notes",
    tags=["Credit Notes"],
    dependencies=[Depends(enforce_tenant_scope)],
    responses={404: {"description": "Not found"}}
)


@router.get("/", dependencies=[Depends(require_ability("credit_notes.view"))])
def list_credit_notes(
    company_id: Optional[UUID] = Query(None),
    branch_id: Optional[UUID] = Query(None),
    estado_sunat: Optional[EstadoSunat] = Query(None),
    tipo_doc_afectado: Optional[Literal["01", "03"]] = Query(None, description="01=Factura, 03=Boleta"),
    fecha_desde: Optional[date] = Query(None),
    fecha_hasta: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    scope: TenantScope = Depends(get_tenant_scope),
    service: DocumentService = Depends(get_document_service)
):
    items, pagination = service.list_documents(
        CreditNote, scope, page, per_page,
        company_id=company_id, branch_id=branch_id, estado_sunat=estado_sunat,
        fecha_desde=fecha_desde, fecha_hasta=fecha_hasta,
        tipo_doc_afectado=tipo_doc_afectado,
    )
    return success_response(
        data={"items": [CreditNoteOut.model_validate(n) for n in items], "pagination": pagination}
    )


@router.post("/", dependencies=[Depends(require_ability("credit_notes.create"))])
def create_credit_note(
    credit_note_data: CreditNoteCreate,
    scope: TenantScope = Depends(get_tenant_scope),
    service: DocumentService = Depends(get_document_service)
):
    credit_note = service.create_credit_note(credit_note_data, scope)
    return success_response(
        data=CreditNoteOut.model_validate(credit_note),
        message="Nota de crédito creada correctamente",
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/motivos", dependencies=[Depends(require_ability("credit_notes.view"))])
def get_motivos():
    """Catálogo 09 de SUNAT: motivos de nota de crédito."""
    return success_response(
        data=[{"code": code, "name": name} for code, name in MOTIVOS_NOTA_CREDITO.items()],
        message="Motivos de nota de crédito obtenidos correctamente",
    )


register_document_routes(router, CreditNote, "credit_notes", include_list=False)
