"""
FastAPI Application Entry Point.

This is the main application file for the Marketplace Backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from marketplace_backend.app.core.config import settings
from marketplace_backend.app.api.v1.router import router as api_v1_router
from marketplace_backend.app.db.session import engine, Base
from marketplace_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from marketplace_backend.app.core.redis_client import ping_redis
from marketplace_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from marketplace_backend.app.models.user import User
from marketplace_backend.app.models.audit_log import AuditLog
from marketplace_backend.app.models.merchant_account import MerchantAccount
from marketplace_backend.app.models.order import Order
from marketplace_backend.app.models.finance import FinanceEntry
from marketplace_backend.app.models.notification import Notification

configure_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.
    
    Creates database tables on startup and disposes the engine on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Marketplace backend: merchant finance ledger and authentication",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.
    
    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "redis": "up" if await ping_redis() else "down",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")
