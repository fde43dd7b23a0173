"""
Endpoints comunes a facturas, boletas y notas de crédito.

Cada módulo crea su propio router (con sus endpoints específicos declarados
antes que las rutas ``/{document_id}``) y luego registra aquí los comunes.
"""
from datetime import date
from typing import Optional, Type
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, Response

from app.common.responses import success_response
from app.common.tenancy import TenantScope, get_tenant_scope
from app.core.config import settings
from app.modules.auth.dependencies import require_ability
from app.modules.documents.dependencies import get_document_service
from app.modules.documents.models import DocumentMixin, EstadoSunat
from app.modules.documents.schemas import serialize_document
from app.modules.documents.service import DocumentService


def _file_response(content: bytes, filename: str, media_type: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def register_document_routes(
    router: APIRouter,
    model: Type[DocumentMixin],
    resource: str,
    include_list: bool = True,
) -> None:
    label = model.DISPLAY_NAME
    view = [Depends(require_ability(f"{resource}.view"))]
    download = [Depends(require_ability(f"{resource}.download"))]

    if include_list:
        @router.get("/", dependencies=view)
        def list_documents(
            company_id: Optional[UUID] = Query(None),
            branch_id: Optional[UUID] = Query(None),
            estado_sunat: Optional[EstadoSunat] = Query(None),
            fecha_desde: Optional[date] = Query(None),
            fecha_hasta: Optional[date] = Query(None),
            page: int = Query(1, ge=1),
            per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
            scope: TenantScope = Depends(get_tenant_scope),
            service: DocumentService = Depends(get_document_service)
        ):
            items, pagination = service.list_documents(
                model, scope, page, per_page,
                company_id=company_id, branch_id=branch_id, estado_sunat=estado_sunat,
                fecha_desde=fecha_desde, fecha_hasta=fecha_hasta,
            )
            return success_response(
                data={"items": [serialize_document(d) for d in items], "pagination": pagination}
            )

    @router.get("/{document_id}", dependencies=view)
    def get_document(
        document_id: UUID = Path(...),
        scope: TenantScope = Depends(get_tenant_scope),
        service: DocumentService = Depends(get_document_service)
    ):
        document = service.get_document(model, document_id, scope)
        return success_response(data=serialize_document(document))

    @router.post("/{document_id}/send-sunat", dependencies=[Depends(require_ability(f"{resource}.send"))])
    def send_document_to_sunat(
        document_id: UUID = Path(...),
        scope: TenantScope = Depends(get_tenant_scope),
        service: DocumentService = Depends(get_document_service)
    ):
        document = service.send_to_sunat(service.get_document(model, document_id, scope))
        return success_response(
            data=serialize_document(document),
            message=f"{label.capitalize()} enviada exitosamente a SUNAT",
        )

    @router.get("/{document_id}/download-xml", dependencies=download)
    def download_document_xml(
        document_id: UUID = Path(...),
        scope: TenantScope = Depends(get_tenant_scope),
        service: DocumentService = Depends(get_document_service)
    ):
        document = service.get_document(model, document_id, scope)
        return _file_response(*service.download(document, "xml"))

    @router.get("/{document_id}/download-cdr", dependencies=download)
    def download_document_cdr(
        document_id: UUID = Path(...),
        scope: TenantScope = Depends(get_tenant_scope),
        service: DocumentService = Depends(get_document_service)
    ):
        document = service.get_document(model, document_id, scope)
        return _file_response(*service.download(document, "cdr"))

    @router.get("/{document_id}/download-pdf", dependencies=download)
    def download_document_pdf(
        document_id: UUID = Path(...),
        scope: TenantScope = Depends(get_tenant_scope),
        service: DocumentService = Depends(get_document_service)
    ):
        document = service.get_document(model, document_id, scope)
        return _file_response(*service.download(document, "pdf"))

    @router.post("/{document_id}/generate-pdf", dependencies=[Depends(require_ability(f"{resource}.send"))])
    def generate_document_pdf(
        document_id: UUID = Path(...),
        scope: TenantScope = Depends(get_tenant_scope),
        service: DocumentService = Depends(get_document_service)
    ):
        document = service.generate_pdf(service.get_document(model, document_id, scope))
        return success_response(
            data=serialize_document(document),
            message="PDF generado correctamente",
        )
