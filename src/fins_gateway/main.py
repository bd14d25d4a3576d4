"""Main application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fins_gateway import __version__
from fins_gateway.api.dependencies import app_state
from fins_gateway.api.routes import router as api_router
from fins_gateway.core.config import Settings, setup_logging
from fins_gateway.core.models import HealthResponse
from fins_gateway.protocol.client import FinsClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings = app_state.settings or Settings()
    app_state.settings = settings

    setup_logging(settings.log_level)
    logger.info(f"Starting FINS Gateway v{__version__}")

    app_state.client = FinsClient.from_settings(settings)
    app_state.client.on("timeout", lambda host: logger.warning(f"No reply from PLC at {host} yet"))
    app_state.client.on("error", lambda exc: logger.error(f"Transport error: {exc}"))

    connected = await app_state.client.open()
    if connected:
        logger.info(f"Connected to {settings.plc_host}:{settings.plc_port}")
    else:
        logger.warning(f"Failed to open UDP endpoint to {settings.plc_host}:{settings.plc_port}")

    yield

    # Shutdown
    logger.info("Shutting down...")
    if app_state.client is not None:
        await app_state.client.close()


app = FastAPI(
    title="FINS Gateway",
    description="Local REST API gateway for FINS-speaking PLCs",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(api_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "FINS Gateway",
        "version": __version__,
        "status": "running",
    }


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint."""
    client = app_state.client

    if client is None:
        return HealthResponse(
            status="unhealthy",
            controller_connected=False,
            pending_replies=0,
            last_reply=None,
        )

    connected = client.connected
    status = "healthy" if connected and client.responded else ("degraded" if connected else "unhealthy")

    return HealthResponse(
        status=status,
        controller_connected=connected,
        pending_replies=len(client.pending),
        last_reply=client.last_reply,
        transport=client.stats,
    )


def main():
    """Run the application (for CLI entry point)."""
    import uvicorn

    settings = Settings()
    setup_logging(settings.log_level)
    app_state.settings = settings

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    main()
