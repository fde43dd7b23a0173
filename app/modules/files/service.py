"""
MinIO storage for SUNAT artifacts (XML, CDR, PDF)
"""
import io
import logging
from functools import lru_cache
from typing import Optional

from fastapi import HTTPException, status
from minio import Minio
from minio.error import S3Error

from app.core.config import settings

logger = logging.getLogger(__name__)

MISSING_OBJECT_CODES = ("NoSuchKey", "NoSuchObject", "NoSuchBucket")


class FileStorage:
    """Service for storing and reading document artifacts in MinIO"""

    def __init__(self, client: Optional[Minio] = None, bucket_name: Optional[str] = None):
        self.client = client or Minio(
            settings.minio_endpoint,
            access_key=settings.MINIO_ACCESS_KEY,
            secret_key=settings.MINIO_SECRET_KEY,
            secure=settings.MINIO_USE_SSL
        )
        self.bucket_name = bucket_name or settings.MINIO_BUCKET_NAME
        self._bucket_ready = False

    def _ensure_bucket_exists(self):
        """Ensure the bucket exists, create if it doesn't"""
        if self._bucket_ready:
            return
        try:
            if not self.client.bucket_exists(self.bucket_name):
                self.client.make_bucket(self.bucket_name)
                logger.info(f"Created MinIO bucket: {self.bucket_name}")
            self._bucket_ready = True
        except S3Error as e:
            logger.error(f"MinIO bucket setup error: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Servicio de almacenamiento no disponible"
            )

    def put(self, path: str, data: bytes, content_type: str = "application/octet-stream") -> str:
        """Store an object and return its key"""
        self._ensure_bucket_exists()
        try:
            self.client.put_object(
                self.bucket_name,
                path,
                io.BytesIO(data),
                length=len(data),
                content_type=content_type,
            )
        except S3Error as e:
            logger.error(f"MinIO upload error for {path}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="No se pudo almacenar el archivo"
            )
        return path

    def download(self, path: Optional[str]) -> Optional[bytes]:
        """Read an object; None when the key does not exist"""
        if not path:
            return None
        self._ensure_bucket_exists()
        response = None
        try:
            response = self.client.get_object(self.bucket_name, path)
            return response.read()
        except S3Error as e:
            if e.code in MISSING_OBJECT_CODES:
                return None
            logger.error(f"MinIO download error for {path}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="No se pudo leer el archivo"
            )
        finally:
            if response is not None:
                response.close()
                response.release_conn()


@lru_cache()
def get_file_storage() -> FileStorage:
    return FileStorage()
