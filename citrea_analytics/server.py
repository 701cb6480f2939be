import asyncio
import contextlib
import logging
import pathlib
import signal
from typing import Optional

from aiohttp import web

from citrea_analytics import config
from citrea_analytics.metrics import Metrics, compute_metrics

log = logging.getLogger(__name__)

CONN_KEY = web.AppKey("conn", object)


@web.middleware
async def json_errors(request: web.Request, handler):
    # unknown paths and wrong methods both surface as a JSON 404
    try:
        return await handler(request)
    except (web.HTTPNotFound, web.HTTPMethodNotAllowed):
        return web.json_response({"error": "Not found"}, status=404)


async def metrics_handler(request: web.Request) -> web.Response:
    conn = request.app[CONN_KEY]
    try:
        m = compute_metrics(conn)
    except Exception:
        log.exception("[api] failed to calculate metrics")
        return web.json_response({"error": "Failed to calculate metrics"}, status=500)
    return web.json_response(m.model_dump(mode="json", by_alias=True))


def create_app(conn) -> web.Application:
    app = web.Application(middlewares=[json_errors])
    app[CONN_KEY] = conn
    app.router.add_get("/metrics", metrics_handler, allow_head=False)
    return app


async def serve(conn, host: Optional[str] = None, port: Optional[int] = None,
                stop_event: Optional[asyncio.Event] = None):
    """Serve ``GET /metrics`` until SIGINT/SIGTERM (or ``stop_event``) fires."""
    host = host or config.API_HOST
    port = port or config.API_PORT
    stop_event = stop_event or asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_event.set)

    runner = web.AppRunner(create_app(conn))
    await runner.setup()
    try:
        site = web.TCPSite(runner, host=host, port=port)
        await site.start()
        log.info("[api] server running at http://%s:%d/metrics", host, port)
        await stop_event.wait()
        log.info("[api] shutting down")
    finally:
        await runner.cleanup()
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)


def export_metrics(m: Metrics, path):
    p = pathlib.Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(m.to_json(indent=2), encoding="utf-8")
    log.info("[export] wrote metrics to %s", p)
