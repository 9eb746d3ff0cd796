"""Health, current config, and admin reload endpoints."""

from fastapi import APIRouter, Request

from metrics_exporter.plugin import ExporterPlugin

router = APIRouter(tags=["health"])


def _plugin(request: Request) -> ExporterPlugin:
    return request.app.state.plugin


@router.get("/health")
async def health(request: Request) -> dict:
    """Liveness plus reload-engine and reporter state."""
    plugin = _plugin(request)
    snapshot = plugin.engine.get_current_snapshot()
    reporter = plugin.controller.reporter
    return {
        "status": "ok",
        "config_version": snapshot.version,
        "reloading": plugin.engine.is_running,
        "reporting": bool(reporter and reporter.is_running),
    }


@router.get("/config")
async def current_config(request: Request) -> dict:
    """Current snapshot (file values with environment overrides applied)."""
    snapshot = _plugin(request).engine.get_current_snapshot()
    return {"version": snapshot.version, "loaded_at": snapshot.loaded_at, "values": snapshot.as_dict()}


@router.post("/admin/reload")
def admin_reload(request: Request) -> dict:
    """Run one reload cycle now (sync handler: runs in the threadpool, may block on subscribers)."""
    engine = _plugin(request).engine
    outcome = engine.reload()
    return {"status": "ok", "outcome": outcome.value, "config_version": engine.get_current_snapshot().version}
