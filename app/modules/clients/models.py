"""
Modelos SQLAlchemy para el módulo de Clientes

Clientes (adquirentes) de cada empresa emisora, identificados por tipo y
número de documento según el catálogo 06 de SUNAT.

Arquitectura multi-tenant: todas las tablas incluyen company_id
"""
from app.database.database import Base
from app.common.mixins import BaseMixin
from sqlalchemy import Column, String, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship


class Client(Base, BaseMixin):
    """Cliente (persona natural o jurídica) que recibe comprobantes."""
    __tablename__ = "clients"

    tipo_documento = Column(String(1), nullable=False)  # 0, 1, 4, 6, 7
    numero_documento = Column(String(20), nullable=False, index=True)
    razon_social = Column(String(255), nullable=False, index=True)
    nombre_comercial = Column(String(255), nullable=True)

    # Dirección
    direccion = Column(String(255), nullable=True)
    ubigeo = Column(String(6), nullable=True)
    distrito = Column(String(100), nullable=True)
    provincia = Column(String(100), nullable=True)
    departamento = Column(String(100), nullable=True)

    telefono = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    activo = Column(Boolean, nullable=False, default=True)

    company = relationship("Company", back_populates="clients")

    __table_args__ = (
        UniqueConstraint("company_id", "tipo_documento", "numero_documento", name="uq_client_company_documento"),
    )
