import json
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from aiohttp import web

from ..network import load_library
from .config import ServerConfig
from .dispatcher import Dispatcher
from .errors import InternalErrorException
from .operations import new_request_id
from .routes import auth, events, nfs, stats
from .routes.common import REQUEST_ID_HEADER
from .services.auth import bearer_token, resolve_caller
from .services.client import ClientHandleManager, LibraryFactory
from .services.directory import DirectoryService
from .services.observer import ConnectionObserver
from .services.writers import WriterRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

MAX_TRACE_BODY = 1024


@web.middleware
async def error_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Last line of defence, every failure becomes a JSON error."""
    request["request_id"] = request.headers.get(REQUEST_ID_HEADER) or new_request_id()
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except Exception as err:
        logger.exception("Unhandled error in request %s", request["request_id"])
        wrapped = InternalErrorException(str(err) or err.__class__.__name__)
        return web.json_response(
            wrapped.to_response().to_dict(),
            status=wrapped.status,
            headers={REQUEST_ID_HEADER: request["request_id"]},
        )


@web.middleware
async def trace_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    config: ServerConfig = request.app["config"]
    if not config.trace_log_file:
        return await handler(request)

    # File content is streamed to the handler, so it can't be read here.
    body_str = None
    if request.can_read_body and not request.path.startswith("/nfs/file/"):
        body_bytes = await request.read()
        body_str = body_bytes.decode("utf-8", errors="replace")
        if len(body_str) > MAX_TRACE_BODY:
            body_str = body_str[:MAX_TRACE_BODY] + "... (truncated)"

    headers = {
        key: "<redacted>" if key.lower() == "authorization" else value
        for key, value in request.headers.items()
    }
    log_entry = {
        "timestamp": time.time(),
        "request_id": request["request_id"],
        "method": request.method,
        "url": str(request.url),
        "headers": headers,
        "body": body_str,
    }
    try:
        with open(config.trace_log_file, "a") as f:
            f.write(json.dumps(log_entry) + "\n")
    except OSError as err:
        logger.error("Failed to write to trace log: %s", err)

    logger.debug("Trace: %s %s", request.method, request.path)
    return await handler(request)


@web.middleware
async def caller_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    """Resolve the calling application. Requests are never rejected here."""
    config: ServerConfig = request.app["config"]
    token = bearer_token(request.headers.get("Authorization"))
    request["caller"] = resolve_caller(
        token, config.auth.secret_key, config.auth.algorithm
    )
    return await handler(request)


def default_library_factory(config: ServerConfig) -> LibraryFactory:
    def factory():
        return load_library(
            config.network.library, database_url=config.network.database_url
        )

    return factory


def create_app(
    config: ServerConfig | None = None,
    library_factory: LibraryFactory | None = None,
) -> web.Application:
    if config is None:
        config = ServerConfig.load()
    if library_factory is None:
        library_factory = default_library_factory(config)

    app = web.Application(
        middlewares=[error_middleware, trace_middleware, caller_middleware]
    )
    app["config"] = config

    # Initialize services
    observer = ConnectionObserver()
    writers = WriterRegistry()
    manager = ClientHandleManager(library_factory, observer, writers)
    directory_service = DirectoryService(writers)
    app["connection_observer"] = observer
    app["writer_registry"] = writers
    app["client_manager"] = manager
    app["directory_service"] = directory_service
    app["dispatcher"] = Dispatcher(manager, directory_service, writers)

    async def on_startup(app: web.Application) -> None:
        await observer.start()

    async def on_shutdown(app: web.Application) -> None:
        observer.close_subscribers()

    async def on_cleanup(app: web.Application) -> None:
        await app["dispatcher"].clean_up()
        await manager.close()
        await observer.stop()

    app.on_startup.append(on_startup)
    app.on_shutdown.append(on_shutdown)
    app.on_cleanup.append(on_cleanup)

    # Register routes
    app.add_routes(auth.routes)
    app.add_routes(nfs.routes)
    app.add_routes(stats.routes)
    app.add_routes(events.routes)
    return app


def run(args: Any) -> None:
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    config = ServerConfig.load(args.config_dir)
    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    app = create_app(config)
    web.run_app(app, host=config.host, port=config.port)
