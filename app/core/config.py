from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pydantic import field_validator

class Settings(BaseSettings):
    APP_NAME: str = 'API SUNAT - Facturación Electrónica'

    # Database settings
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: str = 'sunat_user'
    POSTGRES_PASSWORD: str = 'sunat_pass'
    POSTGRES_DB: str = 'sunat_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432

    # MinIO settings (XML, CDR y PDF)
    MINIO_HOST: str = 'minio'
    MINIO_PORT: int = 9000
    MINIO_ACCESS_KEY: str = 'minioadmin'
    MINIO_SECRET_KEY: str = 'minioadmin'
    MINIO_BUCKET_NAME: str = 'comprobantes'
    MINIO_USE_SSL: bool = False

    # JWT settings
    APP_SECRET_STRING: str = 'your-super-secret-key-here-change-in-production-2024'
    ALGORITHM: str = 'HS256'

    # Token lifetime by user type
    SYSTEM_TOKEN_EXPIRE_DAYS: int = 7
    API_CLIENT_TOKEN_EXPIRE_HOURS: int = 24
    USER_TOKEN_EXPIRE_HOURS: int = 12
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 1440  # Tipos de usuario no reconocidos

    # Login lockout
    MAX_LOGIN_ATTEMPTS: int = 5
    LOCKOUT_MINUTES: int = 30
    BCRYPT_ROUNDS: int = 12

    # SUNAT submission bridge
    SUNAT_BRIDGE_URL: str = 'http://sunat-bridge:8080'
    SUNAT_BRIDGE_TOKEN: str = ''
    SUNAT_TIMEOUT: float = 30.0

    # Pagination
    DEFAULT_PAGE_SIZE: int = 15
    MAX_PAGE_SIZE: int = 100

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def minio_endpoint(self) -> str:
        return f"{self.MINIO_HOST}:{self.MINIO_PORT}"

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", "MINIO_USE_SSL", mode="before")
    @classmethod
    def parse_bool(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

settings = Settings()
