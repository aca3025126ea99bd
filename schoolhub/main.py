"""FastAPI application factory and the ASGI ``app``."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from schoolhub import __version__
from schoolhub.api.v1.router import api_router
from schoolhub.config import Settings, settings
from schoolhub.core.exceptions import AuthFlowError
from schoolhub.database import async_engine, sync_engine
from schoolhub.middleware.logging import LoggingMiddleware
from schoolhub.middleware.rate_limit import limiter
from schoolhub.utils.logger import get_logger, setup_logging
from schoolhub.utils.telemetry import instrument, setup_telemetry

setup_logging()
setup_telemetry()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info(
        f"Starting {settings.PROJECT_NAME}",
        extra={
            "version": __version__,
            "environment": settings.ENVIRONMENT,
            "signing_key_id": settings.SECRET_KEY_ID,
            "refresh_token_rotation": settings.REFRESH_TOKEN_ROTATION,
        },
    )
    instrument(app, sync_engine, async_engine.sync_engine)

    yield

    await async_engine.dispose()
    logger.info(f"Shutting down {settings.PROJECT_NAME}")


async def auth_flow_error_handler(request: Request, exc: AuthFlowError) -> JSONResponse:
    """Render an ``AuthFlowError`` as ``{"detail": ...}`` with its status code.

    401 responses carry ``WWW-Authenticate: Bearer``.
    """
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


def create_app(config: Settings = settings) -> FastAPI:
    """Build the API: middleware, error handlers and the v1 routers."""
    application = FastAPI(
        title=config.PROJECT_NAME,
        version=__version__,
        description="School management API: authentication, users, roles and permissions",
        lifespan=lifespan,
        debug=config.DEBUG,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=config.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(LoggingMiddleware)

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    application.add_exception_handler(AuthFlowError, auth_flow_error_handler)

    application.include_router(api_router, prefix=config.API_V1_PREFIX)

    @application.get("/", tags=["Root"])
    async def root() -> dict:
        """Service name, version and where to look next."""
        return {
            "name": config.PROJECT_NAME,
            "version": __version__,
            "environment": config.ENVIRONMENT,
            "docs_url": application.docs_url,
            "health_check": f"{config.API_V1_PREFIX}/health",
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "schoolhub.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
