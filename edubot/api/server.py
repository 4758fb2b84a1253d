"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from edubot import config
from edubot.api.routes import router
from edubot.api.middleware import setup_cors, setup_rate_limiting
from edubot.db.connection import db
from edubot.exceptions import (
    ConnectionError,
    EduBotError,
    InsufficientCreditsError,
    RecordNotFoundError,
    UserAlreadyExistsError,
    ValidationError,
)
from edubot.observability import metrics
from edubot.observability.sentry_config import init_sentry, shutdown_sentry
from edubot.repository import InMemoryRepository, PostgresRepository
from edubot.services.container import init_container, reset_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
)

logger = logging.getLogger(__name__)

# Most specific first
ERROR_STATUS_CODES = [
    (InsufficientCreditsError, status.HTTP_402_PAYMENT_REQUIRED),
    (UserAlreadyExistsError, status.HTTP_409_CONFLICT),
    (RecordNotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ConnectionError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_code_for(exc: EduBotError) -> int:
    for error_type, code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application"""
    # Startup
    logger.info("Starting API server...")
    config.validate_config()
    init_sentry()

    if config.STORAGE_BACKEND == "memory":
        logger.warning("Using in-memory storage - data is NOT persisted")
        init_container(InMemoryRepository())
    else:
        await db.init_pool()
        logger.info("Database pool initialized")
        init_container(PostgresRepository())

    yield

    # Shutdown
    logger.info("Shutting down API server...")
    reset_container()
    await db.close_pool()
    shutdown_sentry()
    logger.info("Shutdown complete")


def create_api_application() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="EduBot Gamification API",
        description="Credits, levels, insights and leaderboard for the student chatbot",
        version="1.0.0",
        lifespan=lifespan
    )

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)

    # Include routes
    app.include_router(router)

    @app.exception_handler(EduBotError)
    async def edubot_exception_handler(request: Request, exc: EduBotError):
        code = status_code_for(exc)
        metrics.errors_total.labels(error_type=type(exc).__name__, component="api").inc()
        return JSONResponse(status_code=code, content=exc.to_dict())

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        metrics.errors_total.labels(error_type=type(exc).__name__, component="api").inc()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"}
        )

    logger.info("FastAPI application created")

    return app


app = create_api_application()
