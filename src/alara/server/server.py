"""
aiohttp application: health endpoint plus the transform websocket.

Transforms run off the event loop on a single worker thread: edits from every
connection apply one at a time, in arrival order.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Optional

from aiohttp import WSMsgType, web

from alara.logging_config import logger
from alara.mutation.facade import MutationEngine
from alara.transforms.handlers import build_default_registry
from alara.transforms.registry import TransformContext, TransformRegistry
from .config import CORS_HEADERS, SERVER_CONFIG
from .handler import ConnectionHandler
from .watcher import SourceWatcher


CONTEXT_KEY = web.AppKey("context", TransformContext)
REGISTRY_KEY = web.AppKey("registry", TransformRegistry)
WATCHER_KEY = web.AppKey("watcher", SourceWatcher)
EXECUTOR_KEY = web.AppKey("executor", ThreadPoolExecutor)


@web.middleware
async def cors_middleware(request: web.Request, handler):
    if request.method == "OPTIONS":
        return web.Response(headers=CORS_HEADERS)
    response = await handler(request)
    if not isinstance(response, web.WebSocketResponse):
        response.headers.update(CORS_HEADERS)
    return response


async def handle_health(request: web.Request) -> web.Response:
    context = request.app[CONTEXT_KEY]
    return web.json_response({"status": "ok", "projectDir": str(context.project_dir)})


async def handle_index(request: web.Request) -> web.Response:
    return web.Response(text=SERVER_CONFIG["banner"])


async def handle_websocket(request: web.Request) -> web.WebSocketResponse:
    ws = web.WebSocketResponse(heartbeat=SERVER_CONFIG["heartbeat"])
    if not ws.can_prepare(request).ok:
        return web.Response(text="WebSocket upgrade failed", status=400)
    await ws.prepare(request)

    connection = ConnectionHandler(request.app[REGISTRY_KEY], request.app[CONTEXT_KEY])
    executor = request.app[EXECUTOR_KEY]
    loop = asyncio.get_running_loop()
    await ws.send_str(connection.on_open())

    async for msg in ws:
        if msg.type in (WSMsgType.TEXT, WSMsgType.BINARY):
            data = msg.data if msg.type == WSMsgType.TEXT else msg.data.decode("utf-8", errors="replace")
            # Handled to completion before the next frame is read
            reply = await loop.run_in_executor(executor, connection.handle_message, data)
            await ws.send_str(reply)
        elif msg.type == WSMsgType.ERROR:
            logger.warning(f"Websocket error: {ws.exception()}")

    connection.on_close(ws.close_code)
    return ws


async def _start_watcher(app: web.Application):
    app[WATCHER_KEY].start()


async def _stop_watcher(app: web.Application):
    app[WATCHER_KEY].stop()


async def _shutdown_executor(app: web.Application):
    app[EXECUTOR_KEY].shutdown(wait=True)


def create_app(
    project_dir: Path,
    registry: Optional[TransformRegistry] = None,
    engine: Optional[MutationEngine] = None,
    watch: bool = False,
) -> web.Application:
    """
    Build the dev server application.

    Args:
        project_dir: Project whose sources are edited
        registry: Transform registry (defaults to the built-in handlers)
        engine: Mutation engine (defaults to a new engine for project_dir)
        watch: Invalidate the engine cache on external file changes

    Returns:
        aiohttp Application
    """
    project_dir = Path(project_dir).resolve()
    engine = engine or MutationEngine(project_dir)

    app = web.Application(middlewares=[cors_middleware])
    app[CONTEXT_KEY] = TransformContext(project_dir=project_dir, engine=engine)
    app[REGISTRY_KEY] = registry or build_default_registry()
    app[EXECUTOR_KEY] = ThreadPoolExecutor(max_workers=1, thread_name_prefix="alara-transform")
    app.on_cleanup.append(_shutdown_executor)

    app.router.add_get(SERVER_CONFIG["ws_path"], handle_websocket)
    app.router.add_get(SERVER_CONFIG["health_path"], handle_health)
    app.router.add_get("/", handle_index)

    if watch:
        app[WATCHER_KEY] = SourceWatcher(engine)
        app.on_startup.append(_start_watcher)
        app.on_cleanup.append(_stop_watcher)

    return app


def run_server(
    project_dir: Path,
    host: Optional[str] = None,
    port: Optional[int] = None,
    watch: bool = True,
    engine_config: Optional[dict] = None,
):
    """Run the dev server until interrupted."""
    host = host or SERVER_CONFIG["host"]
    port = port or SERVER_CONFIG["port"]
    engine = MutationEngine(Path(project_dir).resolve(), config=engine_config)
    app = create_app(project_dir, engine=engine, watch=watch)

    logger.info(f"Alara dev server on http://{host}:{port} (websocket {SERVER_CONFIG['ws_path']})")
    logger.info(f"Project directory: {Path(project_dir).resolve()}")
    web.run_app(app, host=host, port=port, print=None)
