from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

from cupid.api.routes import router
from cupid.config import settings
from cupid.services.container import ServiceContainer, build_services
from cupid.utils.database import Database
from cupid.utils.errors import CupidError
from cupid.utils.logging import configure_logging, get_logger, log_error

logger = get_logger(__name__)


def init_sentry() -> None:
    """Initialize Sentry if a DSN is configured."""
    if not settings.SENTRY_DSN:
        return

    logger.info("Initializing Sentry...")
    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            traces_sample_rate=1.0 if settings.ENVIRONMENT == "development" else 0.1,
            integrations=[
                FastApiIntegration(transaction_style="url"),
                SqlalchemyIntegration(),
            ],
        )
        logger.info("Sentry initialized")
    except Exception as e:
        logger.error("Failed to initialize Sentry", error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan."""
    logger.info("Starting match engine API...")
    owns_services = getattr(app.state, "services", None) is None

    if owns_services:
        try:
            db = Database()
            db.create_tables()
        except CupidError as e:
            logger.error("Failed to initialize database", error=str(e), details=e.details)
            raise
        app.state.services = build_services(db)

    yield

    logger.info("Shutting down match engine API...")
    if owns_services:
        app.state.services.db.dispose()
        app.state.services = None


def create_app(services: Optional[ServiceContainer] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        services: Pre-built service container. When omitted the lifespan
            builds one from settings at startup.
    """
    configure_logging()
    init_sentry()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Interaction, match and moderation engine",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.services = services
    app.include_router(router)

    @app.exception_handler(CupidError)
    async def handle_cupid_error(request: Request, exc: CupidError) -> JSONResponse:
        if exc.status_code >= 500:
            log_error(logger, exc, "Request failed", extra={"path": request.url.path})
        else:
            logger.info(
                "Request rejected",
                path=request.url.path,
                status_code=exc.status_code,
                error_type=exc.__class__.__name__,
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message, "type": exc.__class__.__name__, "details": exc.details},
        )

    @app.get("/health")
    def health_check(request: Request) -> JSONResponse:
        """Health check endpoint."""
        container: Optional[ServiceContainer] = request.app.state.services
        database_ok = container is not None and container.db.ping()

        return JSONResponse(
            status_code=200 if database_ok else 503,
            content={
                "status": "ok" if database_ok else "error",
                "database": database_ok,
                "app": settings.APP_NAME,
                "environment": settings.ENVIRONMENT,
            },
        )

    return app


app = create_app()
