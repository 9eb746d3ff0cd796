"""API routers for the admin server."""

from metrics_exporter.routers import health

__all__ = ["health"]
