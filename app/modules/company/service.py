import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.common.exceptions import AuthorizationError
from app.common.responses import paginate
from app.common.tenancy import TenantScope
from app.modules.company.models import Company
from app.modules.company.schemas import CompanyCreate, CompanyUpdate

logger = logging.getLogger(__name__)

# Solo el super administrador habilita empresas o las pasa a producción
SUPER_ADMIN_FIELDS = ("activo", "modo_produccion")


def get_active_company(db: Session, company_id: UUID) -> Company:
    """Obtener una empresa activa o lanzar 404."""
    company = db.query(Company).filter(
        Company.id == company_id,
        Company.activo == True
    ).first()
    if not company:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="La empresa especificada no existe o está inactiva"
        )
    return company


class CompanyService:

    def __init__(self, db: Session):
        self.db = db

    def create_company(self, data: CompanyCreate) -> Company:
        if self.db.query(Company).filter(Company.ruc == data.ruc).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe una empresa con el RUC {data.ruc}"
            )

        company = Company(**data.model_dump())
        self.db.add(company)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe una empresa con el RUC {data.ruc}"
            )
        self.db.refresh(company)

        logger.info(f"Company {company.ruc} created")
        return company

    def list_companies(self, scope: TenantScope, page: int, per_page: int):
        query = self.db.query(Company)
        if not scope.is_super_admin:
            query = query.filter(Company.id == scope.resolve_read())
        return paginate(query.order_by(Company.razon_social), page, per_page)

    def get_company(self, company_id: UUID, scope: TenantScope) -> Company:
        scope.authorize_company(company_id)
        company = self.db.get(Company, company_id)
        if not company:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Empresa no encontrada"
            )
        return company

    def update_company(self, company_id: UUID, data: CompanyUpdate, scope: TenantScope) -> Company:
        company = self.get_company(company_id, scope)
        changes = data.model_dump(exclude_unset=True)
        if not scope.is_super_admin and any(field in changes for field in SUPER_ADMIN_FIELDS):
            raise AuthorizationError(
                "Solo un super administrador puede cambiar el estado o el modo de producción de la empresa",
                error="super_admin_required"
            )
        for field, value in changes.items():
            setattr(company, field, value)
        self.db.commit()
        self.db.refresh(company)
        return company
