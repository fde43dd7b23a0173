"""
Servicios de negocio para sucursales.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.common.responses import paginate
from app.common.tenancy import TenantScope
from app.modules.branches.models import Branch
from app.modules.branches.schemas import BranchCreate, BranchUpdate
from app.modules.company.service import get_active_company

logger = logging.getLogger(__name__)


class BranchService:

    def __init__(self, db: Session):
        self.db = db

    def list_branches(
        self,
        scope: TenantScope,
        company_id: Optional[UUID],
        page: int,
        per_page: int,
        activo: Optional[bool] = None,
    ):
        query = self.db.query(Branch)

        company_filter = scope.resolve_read(company_id)
        if company_filter is not None:
            query = query.filter(Branch.company_id == company_filter)
        if activo is not None:
            query = query.filter(Branch.activo == activo)

        return paginate(query.order_by(Branch.codigo), page, per_page)

    def get_branch(self, branch_id: UUID, scope: TenantScope) -> Branch:
        branch = self.db.get(Branch, branch_id)
        if not branch:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Sucursal no encontrada"
            )
        return scope.authorize(branch)

    def _commit_unique(self, codigo: str) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Ya existe una sucursal con el código {codigo} en esta empresa"
            )

    def create_branch(self, data: BranchCreate, scope: TenantScope) -> Branch:
        company_id = scope.require_write_company(data.company_id)
        get_active_company(self.db, company_id)

        branch = Branch(**data.model_dump(exclude={"company_id"}), company_id=company_id)
        self.db.add(branch)
        self._commit_unique(data.codigo)
        self.db.refresh(branch)

        logger.info(f"Branch {branch.codigo} created for company {company_id}")
        return branch

    def update_branch(self, branch_id: UUID, data: BranchUpdate, scope: TenantScope) -> Branch:
        branch = self.get_branch(branch_id, scope)
        updates = data.model_dump(exclude_unset=True)

        if "company_id" in updates:
            company_id = scope.require_write_company(updates.pop("company_id"))
            get_active_company(self.db, company_id)
            branch.company_id = company_id

        for field, value in updates.items():
            setattr(branch, field, value)
        self._commit_unique(branch.codigo)
        self.db.refresh(branch)
        return branch

    def set_active(self, branch_id: UUID, activo: bool, scope: TenantScope) -> Branch:
        branch = self.get_branch(branch_id, scope)
        branch.activo = activo
        self.db.commit()
        self.db.refresh(branch)

        if activo:
            logger.info(f"Branch {branch.id} activated")
        else:
            logger.warning(f"Branch {branch.id} deactivated")
        return branch

    def branches_by_company(self, company_id: UUID, scope: TenantScope) -> dict:
        scope.authorize_company(company_id)
        company = get_active_company(self.db, company_id)
        branches = self.db.query(Branch).filter(
            Branch.company_id == company.id
        ).order_by(Branch.codigo).all()

        return {
            "items": branches,
            "meta": {
                "company_id": company.id,
                "company_name": company.razon_social,
                "total_branches": len(branches),
                "active_branches": sum(1 for b in branches if b.activo),
            },
        }
