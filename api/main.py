"""
Kasir - Main FastAPI Application.

REST API for orders and payments. The lifespan wires the database, the Doku
gateway client, the cache and the lifecycle coordinator onto app.state.
"""
import logging
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import async_sessionmaker

# Load environment variables ONCE before any settings objects are created
_PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")

from api.errors import register_exception_handlers  # noqa: E402
from api.routes import health, orders, payments  # noqa: E402
from core.application.services import LifecycleCoordinator  # noqa: E402
from core.infrastructure.adapters.doku import DokuGatewayClient  # noqa: E402
from core.infrastructure.cache import NullCacheService, RedisCacheService  # noqa: E402
from core.infrastructure.database import (  # noqa: E402
    close_database,
    create_engine,
    create_session_factory,
    init_database,
)
from core.infrastructure.logging import configure_logging  # noqa: E402
from core.settings import AppSettings, get_app_settings  # noqa: E402

logger = logging.getLogger(__name__)


def _lifespan(settings: AppSettings):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"🚀 {settings.server.name} API starting up...")

        engine = create_engine(settings.database)
        if settings.database.auto_create:
            await init_database(engine)
        app.state.session_factory = create_session_factory(engine)

        gateway = DokuGatewayClient(settings.doku)
        if settings.redis.enabled:
            cache = RedisCacheService(
                redis_url=settings.redis.url,
                key_prefix=settings.redis.key_prefix,
                default_ttl=settings.redis.default_ttl,
            )
            await cache.connect()
        else:
            cache = NullCacheService()
            logger.info("Redis cache disabled, using NullCacheService")

        app.state.coordinator = LifecycleCoordinator(
            session_factory=app.state.session_factory,
            gateway=gateway,
            cache=cache,
            callback_secret=settings.doku.callback_secret,
            default_currency=settings.payment.default_currency,
            default_expiry_minutes=settings.payment.default_expiry_minutes,
            cache_ttl=settings.redis.default_ttl,
        )
        logger.info("📚 Swagger UI available at: /docs")

        try:
            yield
        finally:
            logger.info(f"👋 {settings.server.name} API shutting down...")
            await gateway.close()
            await cache.close()
            await close_database(engine)

    return lifespan


def create_app(
    settings: Optional[AppSettings] = None,
    coordinator: Optional[LifecycleCoordinator] = None,
    session_factory: Optional[async_sessionmaker] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (loaded from the environment by default)
        coordinator: Pre-built coordinator; skips the lifespan wiring
        session_factory: Session factory for the readiness check

    Returns:
        Configured FastAPI app
    """
    settings = settings or get_app_settings()
    configure_logging(settings.server.log_level)

    prebuilt = coordinator is not None
    app = FastAPI(
        title=f"{settings.server.name} - Order & Payment API",
        description="Orders, Doku payments, callbacks and refunds.",
        version=settings.server.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=None if prebuilt else _lifespan(settings),
    )
    if prebuilt:
        app.state.coordinator = coordinator
        app.state.session_factory = session_factory

    # =========================================================================
    # CORS MIDDLEWARE
    # =========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # =========================================================================
    # REQUEST LOGGING MIDDLEWARE
    # =========================================================================

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log all requests with timing."""
        start_time = time.time()
        logger.info(f"→ {request.method} {request.url.path}")

        response = await call_next(request)

        duration = time.time() - start_time
        logger.info(
            f"← {request.method} {request.url.path} "
            f"[{response.status_code}] ({duration:.3f}s)"
        )
        return response

    register_exception_handlers(app)

    # =========================================================================
    # INCLUDE ROUTERS
    # =========================================================================

    app.include_router(health.router, tags=["Health"])
    app.include_router(orders.router, prefix="/api/v1/orders", tags=["Orders"])
    app.include_router(payments.router, prefix="/api/v1/payments", tags=["Payments"])

    @app.get("/", tags=["Root"])
    async def root():
        """API root endpoint."""
        return {
            "message": app.title,
            "version": app.version,
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()
