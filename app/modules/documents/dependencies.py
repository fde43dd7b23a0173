"""
Dependencias del módulo de comprobantes
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.database.database import get_db
from app.modules.documents.service import DocumentService
from app.modules.files.service import FileStorage, get_file_storage
from app.modules.sunat.client import SunatGateway, get_sunat_gateway


def get_document_service(
    db: Session = Depends(get_db),
    gateway: SunatGateway = Depends(get_sunat_gateway),
    storage: FileStorage = Depends(get_file_storage),
) -> DocumentService:
    return DocumentService(db, gateway=gateway, storage=storage)
