"""
Servicios de negocio para clientes.
"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.common.responses import paginate
from app.common.tenancy import TenantScope
from app.common.validators import validate_documento_identidad
from app.modules.clients.models import Client
from app.modules.clients.schemas import ClientCreate, ClientUpdate
from app.modules.company.service import get_active_company

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Ya existe un cliente con el mismo tipo y número de documento en esta empresa"


class ClientService:

    def __init__(self, db: Session):
        self.db = db

    def list_clients(
        self,
        scope: TenantScope,
        page: int,
        per_page: int,
        company_id: Optional[UUID] = None,
        tipo_documento: Optional[str] = None,
        search: Optional[str] = None,
    ):
        query = self.db.query(Client)

        company_filter = scope.resolve_read(company_id)
        if company_filter is not None:
            query = query.filter(Client.company_id == company_filter)
        if tipo_documento:
            query = query.filter(Client.tipo_documento == tipo_documento)
        if search:
            term = f"%{search}%"
            query = query.filter(or_(
                Client.numero_documento.ilike(term),
                Client.razon_social.ilike(term),
                Client.nombre_comercial.ilike(term),
            ))

        return paginate(query.order_by(Client.razon_social), page, per_page)

    def get_client(self, client_id: UUID, scope: TenantScope) -> Client:
        client = self.db.get(Client, client_id)
        if not client:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cliente no encontrado"
            )
        return scope.authorize(client)

    def _ensure_unique(
        self,
        company_id: UUID,
        tipo_documento: str,
        numero_documento: str,
        exclude_id: Optional[UUID] = None,
    ) -> None:
        query = self.db.query(Client.id).filter(
            Client.company_id == company_id,
            Client.tipo_documento == tipo_documento,
            Client.numero_documento == numero_documento,
        )
        if exclude_id is not None:
            query = query.filter(Client.id != exclude_id)
        if query.first():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_MESSAGE)

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=DUPLICATE_MESSAGE)

    def create_client(self, data: ClientCreate, scope: TenantScope) -> Client:
        company_id = scope.require_write_company(data.company_id)
        self._ensure_unique(company_id, data.tipo_documento, data.numero_documento)
        get_active_company(self.db, company_id)

        client = Client(**data.model_dump(exclude={"company_id"}), company_id=company_id)
        self.db.add(client)
        self._commit()
        self.db.refresh(client)

        logger.info(f"Client {client.numero_documento} created for company {company_id}")
        return client

    def update_client(self, client_id: UUID, data: ClientUpdate, scope: TenantScope) -> Client:
        client = self.get_client(client_id, scope)
        updates = data.model_dump(exclude_unset=True)

        company_id = client.company_id
        if "company_id" in updates:
            company_id = scope.require_write_company(updates.pop("company_id"))
            if company_id != client.company_id:
                get_active_company(self.db, company_id)

        tipo = updates.get("tipo_documento") or client.tipo_documento
        numero = (updates.get("numero_documento") or client.numero_documento).strip()
        if "tipo_documento" in updates or "numero_documento" in updates:
            error = validate_documento_identidad(tipo, numero)
            if error:
                raise HTTPException(status_code=422, detail=error)
            updates["numero_documento"] = numero
        self._ensure_unique(company_id, tipo, numero, exclude_id=client.id)

        client.company_id = company_id
        for field, value in updates.items():
            setattr(client, field, value)
        self._commit()
        self.db.refresh(client)

        logger.info(f"Client {client.id} updated")
        return client

    def set_active(self, client_id: UUID, activo: bool, scope: TenantScope) -> Client:
        client = self.get_client(client_id, scope)
        client.activo = activo
        self.db.commit()
        self.db.refresh(client)

        if activo:
            logger.info(f"Client {client.id} activated")
        else:
            logger.warning(f"Client {client.id} deactivated")
        return client

    def clients_by_company(self, company_id: UUID, scope: TenantScope, page: int, per_page: int) -> dict:
        scope.authorize_company(company_id)
        company = get_active_company(self.db, company_id)
        query = self.db.query(Client).filter(Client.company_id == company.id).order_by(Client.razon_social)
        items, pagination = paginate(query, page, per_page)
        return {
            "items": items,
            "pagination": pagination,
            "meta": {"company_id": company.id, "company_name": company.razon_social},
        }

    def search_by_document(
        self,
        scope: TenantScope,
        tipo_documento: str,
        numero_documento: str,
        company_id: Optional[UUID] = None,
    ) -> Client:
        """Buscar un cliente activo por tipo y número de documento."""
        query = self.db.query(Client).filter(
            Client.tipo_documento == tipo_documento,
            Client.numero_documento == numero_documento.strip(),
            Client.activo == True
        )
        company_filter = scope.resolve_read(company_id)
        if company_filter is not None:
            query = query.filter(Client.company_id == company_filter)

        client = query.first()
        if not client:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Cliente no encontrado"
            )
        return client
