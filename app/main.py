from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager
import logging

# Import database components
from app.database.database import sync_engine, Base

# Import middleware and error handling
from app.common.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from app.common.responses import register_exception_handlers

# Import routers
from app.modules.auth.router import auth_router, system_router
from app.modules.company.router import company_router
from app.modules.branches.router import router as branches_router
from app.modules.clients.router import router as clients_router
from app.modules.invoices.router import router as invoices_router
from app.modules.boletas.router import router as boletas_router
from app.modules.credit_notes.router import router as credit_notes_router

# Import models for table creation
import app.modules.auth.models
import app.modules.company.models
import app.modules.branches.models
import app.modules.clients.models
import app.modules.documents.models

from app.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.APP_NAME} starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    # Create database tables (only for development - use migrate.py elsewhere)
    if settings.ENVIRONMENT == "development":
        Base.metadata.create_all(bind=sync_engine)

    yield
    logger.info(f"{settings.APP_NAME} shutting down...")


# FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="API multi-empresa para emisión de comprobantes electrónicos SUNAT",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Add middleware (order matters!)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
API_PREFIX = "/api/v1"

app.include_router(auth_router, prefix=f"{API_PREFIX}/auth", tags=["Auth"])
app.include_router(system_router, prefix=f"{API_PREFIX}/system", tags=["System"])
app.include_router(company_router, prefix=f"{API_PREFIX}/companies", tags=["Companies"])
app.include_router(branches_router, prefix=API_PREFIX)
app.include_router(clients_router, prefix=API_PREFIX)
app.include_router(invoices_router, prefix=API_PREFIX)
app.include_router(boletas_router, prefix=API_PREFIX)
app.include_router(credit_notes_router, prefix=API_PREFIX)


@app.get("/")
async def read_root():
    return {
        "message": f"{settings.APP_NAME} is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}
