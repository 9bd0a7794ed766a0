"""
FastAPI Session Relay Application Factory
==========================================

This is the main entry point for the session relay: a single process that
keeps every participant of a collaborative session in sync over WebSockets.

Architecture:
    Browser clients <-> Relay (this service)

Routers:
    - /, /ws            : WebSocket relay (presence, shared timer, synth commands)
    - /realtime/status  : Connection and timer statistics
    - /ip               : LAN address discovery for clients
    - /health           : Health check endpoint

Environment Variables (all optional):
    - RELAY_HOST: Bind host (default: 0.0.0.0)
    - RELAY_PORT: Bind port (default: 3003)
    - ADVERTISED_IP: Address reported to clients (default: auto-detected)
    - ALLOWED_ORIGINS: Comma-separated CORS origins (default: *)
    - TICK_INTERVAL_SECONDS: Shared timer tick period (default: 1.0)
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn relay.app.main:app --reload --host 0.0.0.0 --port 3003

    Production (state is in-process, so exactly one worker):
        uvicorn relay.app.main:app --host 0.0.0.0 --port 3003 --workers 1

    Direct:
        python -m relay.app.main
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings, get_settings
from .discovery import detect_local_ip, discovery_router
from .realtime import RelaySession, realtime_router

SERVICE_NAME = "session-relay"
SERVICE_VERSION = "1.0.0"


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup tasks:
        - Resolve the advertised LAN address
        - Create the RelaySession owning presence and timer state

    Shutdown tasks:
        - Stop the shared timer
        - Close active WebSocket connections
    """
    settings: Settings = app.state.settings

    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("relay.main")

    advertised_ip = settings.ADVERTISED_IP or detect_local_ip()
    app.state.session = RelaySession(
        advertised_ip=advertised_ip,
        tick_interval=settings.TICK_INTERVAL_SECONDS
    )

    logger.info(
        "Session relay started",
        extra={
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "advertised_ip": advertised_ip,
            "port": settings.RELAY_PORT
        }
    )

    yield

    logger.info("Shutting down session relay")

    try:
        await app.state.session.aclose()
    except Exception as e:
        logger.error(f"Error closing relay session: {e}")

    logger.info("Session relay shutdown complete")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Lifespan management (one RelaySession per application)
        - CORS middleware
        - Route handlers
        - Exception handlers

    Args:
        settings: Settings to use instead of the environment-loaded ones

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Session Relay",
        description="Presence, shared timer and command relay for collaborative sessions",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["*"]
    )

    # Realtime router: WebSocket relay and status
    app.include_router(
        realtime_router,
        tags=["Real-time Communications"]
    )

    # Discovery router: LAN address lookup for clients
    app.include_router(
        discovery_router,
        tags=["Discovery"]
    )

    # Health check endpoint
    @app.get("/health", tags=["System"])
    async def health_check() -> Dict[str, str]:
        """
        Health check endpoint.

        Returns:
            dict: Service health information
        """
        return {
            "status": "ok",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION
        }

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Global exception handler for unhandled HTTP errors.

        Logs the error and returns a standardized error response.
        """
        logger = logging.getLogger("relay.main")
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
                "detail": str(exc) if settings.LOG_LEVEL == "DEBUG" else None
            }
        )

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "relay.app.main:app",
        host=settings.RELAY_HOST,
        port=settings.RELAY_PORT,
        log_level=settings.LOG_LEVEL.lower()
    )
