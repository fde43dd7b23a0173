from fastapi import APIRouter, Depends, status

from app.common.responses import success_response
from app.common.tenancy import TenantScope, enforce_tenant_scope, get_tenant_scope
from app.modules.auth.dependencies import require_ability
from app.modules.documents.dependencies import get_document_service
from app.modules.documents.models import Invoice
from app.modules.documents.router import register_document_routes
from app.modules.documents.schemas import InvoiceCreate, InvoiceOut
from app.modules.documents.service import DocumentService

router = APIRouter(
    prefix="/invoices",
    tags=["Invoices"],
    dependencies=[Depends(enforce_tenant_scope)],
    responses={404: {"description": "Not found"}}
)


@router.post("/", dependencies=[Depends(require_ability("invoices.create"))])
def create_invoice(
    invoice_data: InvoiceCreate,
    scope: TenantScope = Depends(get_tenant_scope),
    service: DocumentService = Depends(get_document_service)
):
    """Registrar una factura (serie F###). El correlativo se asigna automáticamente."""
    invoice = service.create_invoice(invoice_data, scope)
    return success_response(
        data=InvoiceOut.model_validate(invoice),
        message="Factura creada correctamente",
        status_code=status.HTTP_201_CREATED,
    )


register_document_routes(router, Invoice, "invoices")
