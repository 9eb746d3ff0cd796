"""
FastAPI admin server: /health, /config, /admin/reload.

The app lifespan is the host's start/stop signal for the exporter plugin.
"""

import time
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request

from metrics_exporter import __version__
from metrics_exporter.config.loader import load_engine_settings
from metrics_exporter.plugin import ExporterPlugin
from metrics_exporter.routers import health

logger = structlog.get_logger(__name__)


def create_app(plugin: ExporterPlugin | None = None) -> FastAPI:
    """Build the admin app around plugin (default: plugin from load_engine_settings())."""
    plugin = plugin or ExporterPlugin(load_engine_settings())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup: start plugin (config load, reload schedule, reporter). Shutdown: stop plugin."""
        logger.info("startup_start")
        plugin.on_start()
        logger.info("application_ready")
        yield
        logger.info("shutdown_start")
        plugin.on_stop()

    app = FastAPI(title="Metrics Exporter", version=__version__, lifespan=lifespan)
    app.state.plugin = plugin

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request (method, path, status, duration)."""
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000
        logger.info(
            "request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        return response

    app.include_router(health.router)
    return app
