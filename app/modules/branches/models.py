from app.database.database import Base
from app.common.mixins import BaseMixin
from sqlalchemy import Column, String, Boolean, UniqueConstraint
from sqlalchemy.orm import relationship


class Branch(Base, BaseMixin):
    """Sucursal (establecimiento anexo) de una empresa."""
    __tablename__ = "branches"

    codigo = Column(String(4), nullable=False, default="0000")  # Código de establecimiento SUNAT
    nombre = Column(String(255), nullable=False)
    direccion = Column(String(255), nullable=True)
    ubigeo = Column(String(6), nullable=True)
    distrito = Column(String(100), nullable=True)
    provincia = Column(String(100), nullable=True)
    departamento = Column(String(100), nullable=True)
    telefono = Column(String(20), nullable=True)
    email = Column(String(255), nullable=True)
    activo = Column(Boolean, nullable=False, default=True)

    company = relationship("Company", back_populates="branches")

    __table_args__ = (
        UniqueConstraint("company_id", "codigo", name="uq_branch_company_codigo"),
    )
