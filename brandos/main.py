"""
Brand OS - Main Application Entry Point
Multi-tenant brand management core with isolated tenant partitions
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from typing import Optional
from sqlmodel import Session
import structlog

from brandos import __version__
from brandos.core.config import Settings, get_settings
from brandos.core.database import init_db
from brandos.core.errors import AuthenticationError, BrandOSError, InvalidCredentialsError
from brandos.api import auth, brand_info, outlets, principals, tenant_users, tenants
from brandos.services.container import Services, build_services

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    services: Services = app.state.services

    # Startup
    logger.info("Initializing Brand OS backend", backend=services.backend.name)
    init_db(services.engine)
    services.backend.prepare()
    with Session(services.engine, expire_on_commit=False) as session:
        services.principals.seed_super_admin(session, services.settings)

    yield

    # Shutdown
    logger.info("Shutting down Brand OS backend")
    services.engine.dispose()


async def brandos_error_handler(request: Request, exc: BrandOSError) -> JSONResponse:
    """Render domain errors as {"detail", "code"} with a matching status"""
    headers = {}
    if isinstance(exc, (AuthenticationError, InvalidCredentialsError)):
        headers["WWW-Authenticate"] = "Bearer"
    if exc.retryable:
        headers["Retry-After"] = str(exc.retry_after or 5)

    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, code=exc.code, error=exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
        headers=headers,
    )


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    settings = settings or get_settings()
    services = services or build_services(settings)

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Multi-tenant brand management with isolated tenant partitions",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    # Configure middleware stack
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(BrandOSError, brandos_error_handler)

    # Include routers
    prefix = settings.API_V1_PREFIX
    app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["auth"])
    app.include_router(principals.router, prefix=f"{prefix}/principals", tags=["principals"])
    app.include_router(tenants.router, prefix=f"{prefix}/tenants", tags=["tenants"])
    app.include_router(tenant_users.router, prefix=f"{prefix}/tenant-users", tags=["tenant-users"])
    app.include_router(outlets.router, prefix=f"{prefix}/outlets", tags=["outlets"])
    app.include_router(brand_info.router, prefix=f"{prefix}/brand-info", tags=["brand-info"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": __version__,
            "partition_backend": services.backend.name,
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "brandos.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().ENVIRONMENT == "development",
        log_level="info",
    )
