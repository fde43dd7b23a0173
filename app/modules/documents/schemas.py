"""
Schemas Pydantic para comprobantes electrónicos
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Literal, Any
from uuid import UUID
from datetime import date, datetime
from decimal import Decimal

from app.common.validators import validate_serie
from app.modules.documents.models import EstadoSunat, Invoice, Boleta, CreditNote, DailySummary


# Catálogo 09 SUNAT: tipo de nota de crédito
MOTIVOS_NOTA_CREDITO = {
    "01": "Anulación de la operación",
    "02": "Anulación por error en el RUC",
    "03": "Corrección por error en la descripción",
    "04": "Descuento global",
    "05": "Descuento por ítem",
    "06": "Devolución total",
    "07": "Devolución por ítem",
    "08": "Bonificación",
    "09": "Disminución en el valor",
    "10": "Otros conceptos",
    "11": "Ajustes de operaciones de exportación",
    "12": "Ajustes afectos al IVAP",
    "13": "Ajustes - montos y/o fechas de pago",
}

CodigoMotivo = Literal["01", "02", "03", "04", "05", "06", "07", "08", "09", "10", "11", "12", "13"]

SERIE_PREFIX_BY_AFECTADO = {"01": "F", "03": "B"}


class DocumentLine(BaseModel):
    """Línea de detalle. Los importes llegan calculados."""
    codigo: Optional[str] = Field(None, max_length=30)
    descripcion: str = Field(..., min_length=1, max_length=500)
    unidad: str = Field("NIU", max_length=3)
    cantidad: Decimal = Field(..., gt=0)
    mto_valor_unitario: Decimal = Field(..., ge=0)
    mto_precio_unitario: Optional[Decimal] = Field(None, ge=0)
    mto_valor_venta: Decimal = Field(..., ge=0)
    tip_afe_igv: str = Field("10", pattern=r'^\d{2}$')  # Catálogo 07
    igv: Decimal = Field(Decimal("0"), ge=0)


class DocumentCreate(BaseModel):
    company_id: Optional[UUID] = None
    branch_id: UUID
    client_id: UUID
    serie: str = Field(..., min_length=4, max_length=4)
    fecha_emision: date = Field(default_factory=date.today)
    moneda: str = Field("PEN", pattern=r'^[A-Z]{3}$')
    tipo_operacion: str = Field("0101", pattern=r'^\d{4}$')
    mto_oper_gravadas: Decimal = Field(Decimal("0"), ge=0)
    mto_oper_exoneradas: Decimal = Field(Decimal("0"), ge=0)
    mto_oper_inafectas: Decimal = Field(Decimal("0"), ge=0)
    mto_igv: Decimal = Field(Decimal("0"), ge=0)
    mto_imp_venta: Decimal = Field(..., ge=0)
    detalles: List[DocumentLine] = Field(..., min_length=1)

    @field_validator('serie')
    @classmethod
    def normalize_serie(cls, v):
        return v.upper()


class InvoiceCreate(DocumentCreate):

    @field_validator('serie')
    @classmethod
    def validate_invoice_serie(cls, v):
        if not validate_serie(v, "F"):
            raise ValueError('La serie de factura debe iniciar con F (ej. F001)')
        return v


class BoletaCreate(DocumentCreate):

    @field_validator('serie')
    @classmethod
    def validate_boleta_serie(cls, v):
        if not validate_serie(v, "B"):
            raise ValueError('La serie de boleta debe iniciar con B (ej. B001)')
        return v


class CreditNoteCreate(DocumentCreate):
    tipo_doc_afectado: Literal["01", "03"]
    num_doc_afectado: str = Field(..., pattern=r'^[FB][A-Z0-9]{3}-\d{1,8}$')
    cod_motivo: CodigoMotivo
    des_motivo: Optional[str] = Field(None, max_length=255)

    @model_validator(mode='after')
    def validate_afectado(self):
        prefix = SERIE_PREFIX_BY_AFECTADO[self.tipo_doc_afectado]
        if not validate_serie(self.serie, prefix):
            raise ValueError(f'La serie de la nota de crédito debe iniciar con {prefix} para el documento afectado {self.tipo_doc_afectado}')
        if not self.num_doc_afectado.startswith(prefix):
            raise ValueError('El número del documento afectado no corresponde a su tipo')
        if not self.des_motivo:
            self.des_motivo = MOTIVOS_NOTA_CREDITO[self.cod_motivo]
        return self


class DailySummaryCreate(BaseModel):
    company_id: Optional[UUID] = None
    branch_id: UUID
    fecha_resumen: date


class DocumentOut(BaseModel):
    id: UUID
    company_id: UUID
    branch_id: UUID
    client_id: UUID
    tipo_documento: str
    serie: str
    correlativo: int
    numero_completo: str
    fecha_emision: date
    moneda: str
    tipo_operacion: str
    mto_oper_gravadas: Decimal
    mto_oper_exoneradas: Decimal
    mto_oper_inafectas: Decimal
    mto_igv: Decimal
    mto_imp_venta: Decimal
    detalles: List[Any] = []
    estado_sunat: EstadoSunat
    hash_cpe: Optional[str] = None
    respuesta_sunat: Optional[dict] = None
    has_xml: bool = False
    has_cdr: bool = False
    has_pdf: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @model_validator(mode='before')
    @classmethod
    def artifact_flags(cls, data):
        if isinstance(data, (Invoice, Boleta, CreditNote)):
            return {
                **{name: getattr(data, name, None) for name in cls.model_fields if hasattr(data, name)},
                "has_xml": bool(data.xml_path),
                "has_cdr": bool(data.cdr_path),
                "has_pdf": bool(data.pdf_path),
            }
        return data


class InvoiceOut(DocumentOut):
    pass


class BoletaOut(DocumentOut):
    daily_summary_id: Optional[UUID] = None


class CreditNoteOut(DocumentOut):
    tipo_doc_afectado: str
    num_doc_afectado: str
    cod_motivo: str
    des_motivo: str


class DailySummaryOut(BaseModel):
    id: UUID
    company_id: UUID
    branch_id: UUID
    fecha_resumen: date
    fecha_generacion: date
    correlativo: int
    identificador: str
    ticket: Optional[str] = None
    estado_sunat: EstadoSunat
    respuesta_sunat: Optional[dict] = None
    boletas: List[BoletaOut] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


OUT_SCHEMAS = {
    Invoice: InvoiceOut,
    Boleta: BoletaOut,
    CreditNote: CreditNoteOut,
    DailySummary: DailySummaryOut,
}


def serialize_document(document) -> BaseModel:
    return OUT_SCHEMAS[type(document)].model_validate(document)
