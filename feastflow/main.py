"""
FastAPI Application Entry Point

FeastFlow storefront backend.

Endpoints:
    - /api/auth: register, login, me, logout
    - /api/cart: the caller's single-restaurant cart
    - /api/dashboard: admin statistics
    - /api/network: cluster service discovery checks
    - GET /api/health, GET /api/ready: liveness and readiness probes

Version: 1.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from feastflow.core.config import get_settings, setup_logging
from feastflow.core.exceptions import FeastFlowError, StorageError
from feastflow.database import engine, get_db, init_db, ping_db
from feastflow.routers import auth, cart, dashboard, network

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    missing = settings.validate_production_config()
    if missing:
        if settings.is_production:
            raise RuntimeError(f"Refusing to start, missing production config: {missing}")
        logger.warning(f"⚠️ Missing production config: {missing}")

    await init_db()
    logger.info("✅ Database initialized")
    logger.info("✅ Application ready!")

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Food-ordering storefront API: accounts, carts, admin dashboard.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(cart.router)
app.include_router(dashboard.router)
app.include_router(network.router)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, Any]:
    """API root with navigation links."""
    return {
        "message": "FeastFlow API",
        "version": settings.app_version,
        "endpoints": {
            "health": "/api/health",
            "auth": "/api/auth",
            "cart": "/api/cart",
            "dashboard": "/api/dashboard",
        },
    }


@app.get("/api/health", tags=["Health"], summary="Liveness probe")
async def health_check(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """Report whether the service and its database are up."""
    timestamp = datetime.now(timezone.utc).isoformat()
    base = {
        "timestamp": timestamp,
        "service": "feastflow-backend",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
    }
    try:
        await ping_db(db)
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={
                **base,
                "status": "unhealthy",
                "success": False,
                "message": "Service unavailable",
                "database": "disconnected",
            },
        )

    return JSONResponse(
        status_code=200,
        content={
            **base,
            "status": "healthy",
            "success": True,
            "message": "Server is running",
            "database": "connected",
        },
    )


@app.get("/api/ready", tags=["Health"], summary="Readiness probe")
async def readiness_check(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        await ping_db(db)
    except SQLAlchemyError as e:
        logger.warning(f"Readiness check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"success": False, "status": "not_ready", "timestamp": timestamp},
        )
    return JSONResponse(content={"success": True, "status": "ready", "timestamp": timestamp})


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(FeastFlowError)
async def feastflow_error_handler(request: Request, exc: FeastFlowError) -> JSONResponse:
    """Domain errors carry their own status and client-safe message."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug(f"Rejected request body on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request data"},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Store failures are logged in full and reported as a generic 500."""
    logger.exception(f"Storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content=StorageError().to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": str(exc) if settings.debug else "Server error",
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("feastflow.main:app", host=settings.api_host, port=settings.api_port)
