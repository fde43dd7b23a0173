from app.database.database import Base
from app.common.mixins import TimestampMixin
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
import uuid

class Company(Base, TimestampMixin):
    """Empresa emisora: límite de aislamiento de todos los datos."""
    __tablename__ = "companies"

    id = Column(UUID(as_uuid=True), primary_key=True, index=True, default=uuid.uuid4)
    ruc = Column(String(11), unique=True, nullable=False, index=True)
    razon_social = Column(String(255), nullable=False)
    nombre_comercial = Column(String(255), nullable=True)
    direccion = Column(String(255), nullable=True)
    ubigeo = Column(String(6), nullable=True)
    email = Column(String(255), nullable=True)
    telefono = Column(String(20), nullable=True)

    # Credenciales SOL para el envío a SUNAT
    usuario_sol = Column(String(50), nullable=True)
    clave_sol = Column(String(100), nullable=True)
    modo_produccion = Column(Boolean, nullable=False, default=False)
    activo = Column(Boolean, nullable=False, default=True)

    users = relationship("User", back_populates="company")
    branches = relationship("Branch", back_populates="company")
    clients = relationship("Client", back_populates="company")
