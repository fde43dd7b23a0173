"""
Servicio de comprobantes electrónicos: creación, envío a SUNAT,
resúmenes diarios y descarga de artefactos (XML, CDR, PDF).
"""
import logging
from datetime import date
from typing import Optional, Type
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.common.exceptions import UpstreamError
from app.common.responses import paginate
from app.common.tenancy import TenantScope
from app.modules.branches.models import Branch
from app.modules.clients.models import Client
from app.modules.company.models import Company
from app.modules.company.service import get_active_company
from app.modules.documents.models import (
    DocumentMixin, Invoice, Boleta, CreditNote, DailySummary, EstadoSunat
)
from app.modules.documents.schemas import (
    DocumentCreate, InvoiceCreate, BoletaCreate, CreditNoteCreate, DailySummaryCreate,
    serialize_document
)
from app.modules.files.service import FileStorage
from app.modules.sunat.client import SunatGateway, SunatGatewayError, SubmissionResult

logger = logging.getLogger(__name__)

ARTIFACTS = {
    "xml": ("xml_path", "XML no encontrado", "application/xml"),
    "cdr": ("cdr_path", "CDR no encontrado", "application/zip"),
    "pdf": ("pdf_path", "PDF no encontrado", "application/pdf"),
}


def _company_payload(company: Company) -> dict:
    return {
        "ruc": company.ruc,
        "razon_social": company.razon_social,
        "nombre_comercial": company.nombre_comercial,
        "direccion": company.direccion,
        "ubigeo": company.ubigeo,
        "usuario_sol": company.usuario_sol,
        "clave_sol": company.clave_sol,
        "modo_produccion": company.modo_produccion,
    }


def _amount(value) -> str:
    return str(value if value is not None else 0)


class DocumentService:
    """
    Operaciones sobre facturas, boletas y notas de crédito. El gateway SUNAT
    y el almacenamiento se inyectan para poder reemplazarlos en pruebas.
    """

    def __init__(
        self,
        db: Session,
        gateway: Optional[SunatGateway] = None,
        storage: Optional[FileStorage] = None,
    ):
        self.db = db
        self.gateway = gateway
        self.storage = storage

    # ===== CONSULTAS =====

    def list_documents(
        self,
        model: Type[DocumentMixin],
        scope: TenantScope,
        page: int,
        per_page: int,
        company_id: Optional[UUID] = None,
        branch_id: Optional[UUID] = None,
        estado_sunat: Optional[EstadoSunat] = None,
        fecha_desde: Optional[date] = None,
        fecha_hasta: Optional[date] = None,
        **filters,
    ):
        query = self.db.query(model)

        company_filter = scope.resolve_read(company_id)
        if company_filter is not None:
            query = query.filter(model.company_id == company_filter)
        if branch_id:
            query = query.filter(model.branch_id == branch_id)
        if estado_sunat:
            query = query.filter(model.estado_sunat == estado_sunat)
        if fecha_desde:
            query = query.filter(model.fecha_emision >= fecha_desde)
        if fecha_hasta:
            query = query.filter(model.fecha_emision <= fecha_hasta)
        for field, value in filters.items():
            if value is not None:
                query = query.filter(getattr(model, field) == value)

        return paginate(query.order_by(model.created_at.desc()), page, per_page)

    def get_document(self, model: Type[DocumentMixin], document_id: UUID, scope: TenantScope):
        document = self.db.get(model, document_id)
        if not document:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{model.DISPLAY_NAME.capitalize()} no encontrada"
            )
        return scope.authorize(document)

    # ===== CREACIÓN =====

    def _resolve_owner(self, company_id: UUID, branch_id: UUID, client_id: Optional[UUID] = None):
        company = get_active_company(self.db, company_id)

        branch = self.db.query(Branch).filter(
            Branch.id == branch_id,
            Branch.company_id == company.id,
            Branch.activo == True
        ).first()
        if not branch:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="La sucursal no existe o no pertenece a la empresa"
            )

        if client_id is not None:
            client = self.db.query(Client).filter(
                Client.id == client_id,
                Client.company_id == company.id
            ).first()
            if not client:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND,
                    detail="El cliente no existe o no pertenece a la empresa"
                )
        return company, branch

    def _next_correlativo(self, model: Type[DocumentMixin], company_id: UUID, serie: str) -> int:
        current = self.db.query(func.max(model.correlativo)).filter(
            model.company_id == company_id,
            model.serie == serie
        ).scalar()
        return (current or 0) + 1

    def _create(self, model: Type[DocumentMixin], data: DocumentCreate, scope: TenantScope):
        company_id = scope.require_write_company(data.company_id)
        self._resolve_owner(company_id, data.branch_id, data.client_id)

        values = data.model_dump(exclude={"company_id", "detalles"})
        document = model(
            **values,
            company_id=company_id,
            tipo_documento=model.TIPO_DOCUMENTO,
            correlativo=self._next_correlativo(model, company_id, data.serie),
            detalles=[line.model_dump(mode="json") for line in data.detalles],
            estado_sunat=EstadoSunat.PENDIENTE,
        )
        self.db.add(document)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"El correlativo de la serie {data.serie} ya fue asignado, intente nuevamente"
            )
        self.db.refresh(document)

        logger.info(f"{model.__name__} {document.numero_completo} created for company {company_id}")
        return document

    def create_invoice(self, data: InvoiceCreate, scope: TenantScope) -> Invoice:
        return self._create(Invoice, data, scope)

    def create_boleta(self, data: BoletaCreate, scope: TenantScope) -> Boleta:
        return self._create(Boleta, data, scope)

    def create_credit_note(self, data: CreditNoteCreate, scope: TenantScope) -> CreditNote:
        return self._create(CreditNote, data, scope)

    # ===== ENVÍO A SUNAT =====

    def build_payload(self, document: DocumentMixin) -> dict:
        payload = {
            "tipo_documento": document.tipo_documento,
            "serie": document.serie,
            "correlativo": document.correlativo,
            "fecha_emision": document.fecha_emision.isoformat(),
            "moneda": document.moneda,
            "tipo_operacion": document.tipo_operacion,
            "mto_oper_gravadas": _amount(document.mto_oper_gravadas),
            "mto_oper_exoneradas": _amount(document.mto_oper_exoneradas),
            "mto_oper_inafectas": _amount(document.mto_oper_inafectas),
            "mto_igv": _amount(document.mto_igv),
            "mto_imp_venta": _amount(document.mto_imp_venta),
            "detalles": document.detalles or [],
            "company": _company_payload(document.company),
            "branch": {
                "codigo": document.branch.codigo,
                "direccion": document.branch.direccion,
                "ubigeo": document.branch.ubigeo,
            },
            "client": {
                "tipo_documento": document.client.tipo_documento,
                "numero_documento": document.client.numero_documento,
                "razon_social": document.client.razon_social,
                "direccion": document.client.direccion,
            },
        }
        if isinstance(document, CreditNote):
            payload.update({
                "tipo_doc_afectado": document.tipo_doc_afectado,
                "num_doc_afectado": document.num_doc_afectado,
                "cod_motivo": document.cod_motivo,
                "des_motivo": document.des_motivo,
            })
        return payload

    def _artifact_path(self, document, company: Company, extension: str, prefix: str = "") -> str:
        if isinstance(document, DailySummary):
            folder, name = "summary", f"{company.ruc}-{document.identificador}"
        else:
            folder, name = document.KIND, f"{company.ruc}-{document.tipo_documento}-{document.numero_completo}"
        return f"{company.ruc}/{folder}/{prefix}{name}.{extension}"

    def _store_artifacts(self, document, result: SubmissionResult) -> None:
        if result.xml:
            document.xml_path = self.storage.put(
                self._artifact_path(document, document.company, "xml"),
                result.xml.encode("utf-8"),
                "application/xml",
            )
        if result.cdr:
            document.cdr_path = self.storage.put(
                self._artifact_path(document, document.company, "zip", prefix="R-"),
                result.cdr,
                "application/zip",
            )

    def _reject(self, document, result: SubmissionResult, message: str):
        """
        Registrar un envío fallido y lanzar el error. Un error de negocio deja
        el documento RECHAZADO; un fallo de transporte no cambia su estado.
        """
        error = result.error
        if not error.is_transport:
            document.estado_sunat = EstadoSunat.RECHAZADO
            document.respuesta_sunat = result.response_data()
            self.db.commit()
            self.db.refresh(document)

        raise UpstreamError(
            f"{message}: {error.message}",
            error_code=error.code,
            data=serialize_document(document),
        )

    def send_to_sunat(self, document: DocumentMixin) -> DocumentMixin:
        if isinstance(document, Boleta) and document.daily_summary_id is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="La boleta forma parte de un resumen diario y se informa a SUNAT con él"
            )
        if document.estado_sunat == EstadoSunat.ACEPTADO:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"La {document.DISPLAY_NAME} ya fue aceptada por SUNAT"
            )

        result = self.gateway.submit(document.KIND, self.build_payload(document))
        if not result.success:
            logger.warning(f"{document.KIND} {document.numero_completo} not accepted: {result.error.code}")
            self._reject(document, result, "Error al enviar a SUNAT")

        self._store_artifacts(document, result)
        document.hash_cpe = result.hash
        document.respuesta_sunat = result.response_data()
        document.estado_sunat = EstadoSunat.ACEPTADO
        self.db.commit()
        self.db.refresh(document)

        logger.info(f"{document.KIND} {document.numero_completo} accepted by SUNAT (cdr {result.cdr_code})")
        return document

    # ===== ARTEFACTOS =====

    def download(self, document, artifact: str) -> tuple[bytes, str, str]:
        """Retorna (contenido, nombre de archivo, media type)."""
        attribute, not_found, media_type = ARTIFACTS[artifact]
        path = getattr(document, attribute, None)
        content = self.storage.download(path) if path else None
        if content is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
        return content, path.rsplit("/", 1)[-1], media_type

    def generate_pdf(self, document: DocumentMixin) -> DocumentMixin:
        try:
            content = self.gateway.render_pdf(document.KIND, self.build_payload(document))
        except SunatGatewayError as e:
            raise UpstreamError(e.message, error_code=e.code, data=serialize_document(document))

        document.pdf_path = self.storage.put(
            self._artifact_path(document, document.company, "pdf"),
            content,
            "application/pdf",
        )
        self.db.commit()
        self.db.refresh(document)

        logger.info(f"PDF generated for {document.KIND} {document.numero_completo}")
        return document

    # ===== RESUMEN DIARIO DE BOLETAS =====

    def pending_boletas(
        self,
        scope: TenantScope,
        branch_id: UUID,
        fecha_emision: date,
        company_id: Optional[UUID] = None,
    ) -> list[Boleta]:
        """Boletas PENDIENTE de una sucursal y fecha que aún no están en un resumen."""
        company_id = scope.require_read_company(company_id)
        return self.db.query(Boleta).filter(
            Boleta.company_id == company_id,
            Boleta.branch_id == branch_id,
            Boleta.fecha_emision == fecha_emision,
            Boleta.estado_sunat == EstadoSunat.PENDIENTE,
            Boleta.daily_summary_id.is_(None)
        ).order_by(Boleta.serie, Boleta.correlativo).all()

    def get_summary(self, summary_id: UUID, scope: TenantScope) -> DailySummary:
        summary = self.db.get(DailySummary, summary_id)
        if not summary:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Resumen diario no encontrado"
            )
        return scope.authorize(summary)

    def create_summary_from_boletas(self, data: DailySummaryCreate, scope: TenantScope) -> DailySummary:
        company_id = scope.require_write_company(data.company_id)
        self._resolve_owner(company_id, data.branch_id)

        boletas = self.pending_boletas(scope, data.branch_id, data.fecha_resumen, company_id)
        if not boletas:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No hay boletas pendientes para la sucursal y fecha indicadas"
            )

        today = date.today()
        current = self.db.query(func.max(DailySummary.correlativo)).filter(
            DailySummary.company_id == company_id,
            DailySummary.fecha_generacion == today
        ).scalar()
        correlativo = (current or 0) + 1

        summary = DailySummary(
            company_id=company_id,
            branch_id=data.branch_id,
            fecha_resumen=data.fecha_resumen,
            fecha_generacion=today,
            correlativo=correlativo,
            identificador=f"RC-{today.strftime('%Y%m%d')}-{correlativo}",
            estado_sunat=EstadoSunat.PENDIENTE,
        )
        self.db.add(summary)
        self.db.flush()
        for boleta in boletas:
            boleta.daily_summary_id = summary.id

        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="El identificador del resumen ya fue asignado, intente nuevamente"
            )
        self.db.refresh(summary)

        logger.info(f"Daily summary {summary.identificador} created with {len(boletas)} boletas")
        return summary

    def _summary_payload(self, summary: DailySummary) -> dict:
        return {
            "identificador": summary.identificador,
            "correlativo": summary.correlativo,
            "fecha_resumen": summary.fecha_resumen.isoformat(),
            "fecha_generacion": summary.fecha_generacion.isoformat(),
            "company": _company_payload(summary.company),
            "detalles": [
                {
                    "tipo_documento": boleta.tipo_documento,
                    "serie_numero": boleta.numero_completo,
                    "cliente_tipo": boleta.client.tipo_documento,
                    "cliente_numero": boleta.client.numero_documento,
                    "moneda": boleta.moneda,
                    "mto_oper_gravadas": _amount(boleta.mto_oper_gravadas),
                    "mto_oper_exoneradas": _amount(boleta.mto_oper_exoneradas),
                    "mto_oper_inafectas": _amount(boleta.mto_oper_inafectas),
                    "mto_igv": _amount(boleta.mto_igv),
                    "total": _amount(boleta.mto_imp_venta),
                    "estado": "1",  # Adición
                }
                for boleta in summary.boletas
            ],
        }

    def send_daily_summary(self, summary: DailySummary) -> DailySummary:
        if summary.estado_sunat == EstadoSunat.ACEPTADO:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El resumen ya fue aceptado por SUNAT"
            )
        if not summary.boletas:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El resumen no tiene boletas, genere un nuevo resumen"
            )

        result = self.gateway.submit_summary(self._summary_payload(summary))
        if not result.success:
            self._reject(summary, result, "Error al enviar resumen a SUNAT")

        if result.xml:
            summary.xml_path = self.storage.put(
                self._artifact_path(summary, summary.company, "xml"),
                result.xml.encode("utf-8"),
                "application/xml",
            )
        summary.ticket = result.ticket
        summary.respuesta_sunat = result.response_data()
        summary.estado_sunat = EstadoSunat.ENVIADO
        for boleta in summary.boletas:
            boleta.estado_sunat = EstadoSunat.ENVIADO
        self.db.commit()
        self.db.refresh(summary)

        logger.info(f"Daily summary {summary.identificador} sent, ticket {summary.ticket}")
        return summary

    def check_summary_status(self, summary: DailySummary) -> DailySummary:
        if not summary.ticket:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="El resumen no tiene ticket de SUNAT, envíelo primero"
            )

        company = summary.company
        result = self.gateway.get_status(
            summary.ticket,
            {"ruc": company.ruc, "usuario_sol": company.usuario_sol, "clave_sol": company.clave_sol},
        )
        if not result.success:
            if not result.error.is_transport:
                # Las boletas vuelven a quedar disponibles para un nuevo resumen
                for boleta in summary.boletas:
                    boleta.estado_sunat = EstadoSunat.PENDIENTE
                summary.boletas = []
            self._reject(summary, result, "Error al consultar estado")

        # Sin CDR el ticket sigue en proceso
        if result.cdr:
            self._store_artifacts(summary, result)
            summary.estado_sunat = EstadoSunat.ACEPTADO
            for boleta in summary.boletas:
                boleta.estado_sunat = EstadoSunat.ACEPTADO
        summary.respuesta_sunat = {**(summary.respuesta_sunat or {}), **result.response_data()}
        self.db.commit()
        self.db.refresh(summary)

        logger.info(f"Daily summary {summary.identificador} status: {summary.estado_sunat.value}")
        return summary
