"""Main FastAPI application with api/gateway mode switching."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .config import Settings
from .database import Database
from .routers import performance_router, device_config_router, registration_router, gateway_router
from .services import ArtifactStore, UpstreamRelay

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Missing or malformed request fields are a 400, not FastAPI's default 422."""
    logger.warning(f"Rejected {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request", "detail": jsonable_encoder(exc.errors())},
    )


async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    """Storage failures are logged and reported without internal detail."""
    logger.error(f"Storage error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal storage error"})


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Create the internal API application."""
    settings = settings or Settings()
    database = database or Database(settings.get_database_url())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - startup and shutdown."""
        logger.info("Starting Canary Tracker internal API")
        await database.init()
        logger.info("Database initialized")
        yield
        await database.close()
        logger.info("Shutdown complete")

    app = FastAPI(
        title="Canary Tracker",
        description="Device registration, configuration and performance telemetry",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = database
    app.state.artifact_store = ArtifactStore(settings.get_upload_dir())

    # CORS middleware for the admin frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)

    app.include_router(performance_router)
    app.include_router(device_config_router)
    app.include_router(registration_router)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "mode": "api"}

    return app


def create_gateway_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Create the public-facing gateway.

    Only the endpoints devices need are exposed here, so it can sit on the
    internet without exposing registration or administration.
    """
    settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.relay = UpstreamRelay(
            settings.internal_api_url,
            timeout=settings.upstream_timeout_seconds,
            transport=transport,
        )
        logger.info(f"Gateway relaying to {settings.internal_api_url}")
        yield
        await app.state.relay.close()
        logger.info("Gateway shutdown complete")

    app = FastAPI(
        title="Canary Tracker Gateway",
        description="Public relay for canary devices",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.include_router(gateway_router)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "mode": "gateway"}

    return app


def build_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application for the configured mode."""
    settings = settings or Settings()
    if settings.mode == "gateway":
        return create_gateway_app(settings)
    return create_app(settings)


def main():
    import uvicorn

    settings = Settings()
    port = settings.gateway_port if settings.mode == "gateway" else settings.api_port
    logger.info(f"Starting Canary Tracker in {settings.mode.upper()} mode on port {port}")
    uvicorn.run(build_app(settings), host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
