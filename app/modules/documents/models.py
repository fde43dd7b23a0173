"""
Modelos SQLAlchemy de comprobantes electrónicos

- Invoice (01 factura), Boleta (03 boleta de venta), CreditNote (07 nota de crédito)
- DailySummary: resumen diario (RC) con el que se informan las boletas

Los montos se reciben calculados; el detalle se guarda como JSON.
Arquitectura multi-tenant: todas las tablas incluyen company_id
"""
from app.database.database import Base
from sqlalchemy import Column, Integer, String, Date, ForeignKey, Numeric, Enum, JSON, UniqueConstraint
from sqlalchemy.orm import relationship, declared_attr
from sqlalchemy.dialects.postgresql import UUID
from datetime import date
from app.common.mixins import BaseMixin
import enum


class EstadoSunat(str, enum.Enum):
    PENDIENTE = "PENDIENTE"    # Creado, no enviado
    ENVIADO = "ENVIADO"        # Enviado, pendiente de CDR (resúmenes)
    ACEPTADO = "ACEPTADO"      # CDR de aceptación recibido
    RECHAZADO = "RECHAZADO"    # SUNAT respondió con error de negocio


def _estado_column():
    return Column(
        Enum(EstadoSunat, native_enum=False, length=20),
        nullable=False,
        default=EstadoSunat.PENDIENTE,
        index=True,
    )


class DocumentMixin(BaseMixin):
    """Campos comunes a facturas, boletas y notas de crédito."""

    KIND = None
    TIPO_DOCUMENTO = None
    DISPLAY_NAME = None

    @declared_attr
    def branch_id(cls):
        return Column(UUID(as_uuid=True), ForeignKey("branches.id"), nullable=False, index=True)

    @declared_attr
    def client_id(cls):
        return Column(UUID(as_uuid=True), ForeignKey("clients.id"), nullable=False, index=True)

    tipo_documento = Column(String(2), nullable=False)
    serie = Column(String(4), nullable=False)
    correlativo = Column(Integer, nullable=False)
    fecha_emision = Column(Date, nullable=False, default=date.today, index=True)
    moneda = Column(String(3), nullable=False, default="PEN")
    tipo_operacion = Column(String(4), nullable=False, default="0101")

    # Totales
    mto_oper_gravadas = Column(Numeric(12, 2), nullable=False, default=0)
    mto_oper_exoneradas = Column(Numeric(12, 2), nullable=False, default=0)
    mto_oper_inafectas = Column(Numeric(12, 2), nullable=False, default=0)
    mto_igv = Column(Numeric(12, 2), nullable=False, default=0)
    mto_imp_venta = Column(Numeric(12, 2), nullable=False, default=0)

    detalles = Column(JSON, nullable=False, default=list)

    # Estado SUNAT y artefactos en MinIO
    @declared_attr
    def estado_sunat(cls):
        return _estado_column()

    xml_path = Column(String(500), nullable=True)
    cdr_path = Column(String(500), nullable=True)
    pdf_path = Column(String(500), nullable=True)
    hash_cpe = Column(String(100), nullable=True)
    respuesta_sunat = Column(JSON, nullable=True)

    @declared_attr
    def company(cls):
        return relationship("Company")

    @declared_attr
    def branch(cls):
        return relationship("Branch")

    @declared_attr
    def client(cls):
        return relationship("Client")

    @property
    def numero_completo(self) -> str:
        return f"{self.serie}-{self.correlativo}"


class Invoice(Base, DocumentMixin):
    __tablename__ = "invoices"

    KIND = "invoice"
    TIPO_DOCUMENTO = "01"
    DISPLAY_NAME = "factura"

    __table_args__ = (
        UniqueConstraint("company_id", "serie", "correlativo", name="uq_invoice_company_serie_correlativo"),
    )


class Boleta(Base, DocumentMixin):
    __tablename__ = "boletas"

    KIND = "boleta"
    TIPO_DOCUMENTO = "03"
    DISPLAY_NAME = "boleta"

    daily_summary_id = Column(UUID(as_uuid=True), ForeignKey("daily_summaries.id"), nullable=True, index=True)

    daily_summary = relationship("DailySummary", back_populates="boletas")

    __table_args__ = (
        UniqueConstraint("company_id", "serie", "correlativo", name="uq_boleta_company_serie_correlativo"),
    )


class CreditNote(Base, DocumentMixin):
    __tablename__ = "credit_notes"

    KIND = "credit_note"
    TIPO_DOCUMENTO = "07"
    DISPLAY_NAME = "nota de crédito"

    # Documento que se modifica
    tipo_doc_afectado = Column(String(2), nullable=False)  # 01 factura, 03 boleta
    num_doc_afectado = Column(String(20), nullable=False)  # F001-123
    cod_motivo = Column(String(2), nullable=False)  # Catálogo 09
    des_motivo = Column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint("company_id", "serie", "correlativo", name="uq_credit_note_company_serie_correlativo"),
    )


class DailySummary(Base, BaseMixin):
    """Resumen diario de boletas (RC-YYYYMMDD-n), se envía con ticket."""
    __tablename__ = "daily_summaries"

    DISPLAY_NAME = "resumen diario"

    branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id"), nullable=False, index=True)
    fecha_resumen = Column(Date, nullable=False)  # Fecha de emisión de las boletas
    fecha_generacion = Column(Date, nullable=False, default=date.today)
    correlativo = Column(Integer, nullable=False)
    identificador = Column(String(30), nullable=False)
    ticket = Column(String(50), nullable=True)

    estado_sunat = _estado_column()
    xml_path = Column(String(500), nullable=True)
    cdr_path = Column(String(500), nullable=True)
    respuesta_sunat = Column(JSON, nullable=True)

    company = relationship("Company")
    branch = relationship("Branch")
    boletas = relationship("Boleta", back_populates="daily_summary", order_by="Boleta.correlativo")

    __table_args__ = (
        UniqueConstraint("company_id", "identificador", name="uq_daily_summary_company_identificador"),
    )

    @property
    def numero_completo(self) -> str:
        return self.identificador


DOCUMENT_MODELS = {model.KIND: model for model in (Invoice, Boleta, CreditNote)}
