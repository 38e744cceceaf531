"""Tisorah Admin Backend -- FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tisorah_admin.api.v1.router import api_v1_router
from tisorah_admin.config import settings
from tisorah_admin.core.exceptions import (
    NotFoundError,
    PersistenceError,
    RoleConflictError,
    StorageError,
    TisorahException,
    UploadError,
    ValidationError,
)
from tisorah_admin.db.session import engine
from tisorah_admin.models import Base
from tisorah_admin.schemas import ErrorDetail, ErrorResponse
from tisorah_admin.services.storage_service import close_storage_service

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

STATUS_CODES = {
    ValidationError: 422,
    RoleConflictError: 409,
    NotFoundError: 404,
    UploadError: 502,
    StorageError: 502,
    PersistenceError: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    # Startup
    logger.info("Starting Tisorah admin API server...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    # Auto-create tables on startup (safe for fresh deployments)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables verified/created")
    except Exception as e:
        logger.error(f"Database init failed: {e}", exc_info=True)

    if not settings.ADMIN_PASSWORD_HASH:
        logger.warning("ADMIN_PASSWORD_HASH is empty; admin login is disabled")

    yield

    # Shutdown
    logger.info("Shutting down Tisorah admin API server...")
    await close_storage_service()
    await engine.dispose()


app = FastAPI(
    title="Tisorah Admin API",
    description="Catalog administration backend for the Tisorah gifting storefront",
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.FRONTEND_URL,
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TisorahException)
async def tisorah_exception_handler(request: Request, exc: TisorahException):
    """Render domain errors in the standard error envelope."""
    status_code = next(
        (code for cls, code in STATUS_CODES.items() if isinstance(exc, cls)),
        500,
    )
    if status_code >= 500:
        logger.warning(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")

    body = ErrorResponse(
        error=ErrorDetail(
            code=exc.code,
            message=exc.message,
            field=getattr(exc, "field", None),
        )
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Tisorah Admin API",
        "version": "0.1.0",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/api/v1/health",
    }
