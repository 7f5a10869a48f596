import argparse
import json
import logging
import os
import sys
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
import uvicorn

from . import __version__
from .config import LISTEN_HOST, LISTEN_PORT, LOG_FORMAT, LOG_LEVELS, Settings, public_dir_from_env
from .errors import ConnectionError, EncodingError, StoreUnavailable
from .store import StoreClient, connect

log = logging.getLogger(__name__)
access_log = logging.getLogger("guestbook.access")


@dataclass
class AppContext:
    """The two process-wide store clients: writes go to master, reads to replica."""

    master: StoreClient
    replica: StoreClient

    def close(self) -> None:
        for role, client in (("master", self.master), ("replica", self.replica)):
            try:
                client.close()
            except Exception:
                log.exception("Failed to close Redis %s connection", role)


def open_context(settings: Settings) -> AppContext:
    log.info("Connecting to Redis master at %s", settings.master_host)
    master = connect(settings.master_host, settings.max_attempts, settings.retry_delay)
    log.info("Connecting to Redis replica at %s", settings.replica_host)
    try:
        replica = connect(settings.replica_host, settings.max_attempts, settings.retry_delay)
    except ConnectionError:
        master.close()
        raise
    return AppContext(master=master, replica=replica)


def get_context(request: Request) -> AppContext:
    context = request.app.state.context
    if context is None:
        raise RuntimeError("Redis clients not initialized. Start via CLI or server.")
    return context


# Responses

def encode_json(content: Any) -> bytes:
    try:
        return json.dumps(content, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as error:
        raise EncodingError(str(error)) from error


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def json_response(content: Any, what: str) -> Response:
    try:
        body = encode_json(content)
    except EncodingError as error:
        log.error("failed to encode %s: %s", what, error)
        return error_response("failed to encode {}: {}".format(what, error), 500)
    return Response(content=body, media_type="application/json")


def environment_snapshot() -> Dict[str, str]:
    # Each NAME=value entry is split at its first "=". Bytes that are not
    # UTF-8 become U+FFFD.
    if not os.supports_bytes_environ:
        return dict(os.environ)
    return {
        name.decode("utf-8", errors="replace"): value.decode("utf-8", errors="replace")
        for name, value in os.environb.items()
    }


# Handlers

router = APIRouter()


@router.get("/lrange/{key}")
def list_range(key: str, context: AppContext = Depends(get_context)) -> Response:
    try:
        members = context.replica.list_get_all(key)
    except StoreUnavailable as error:
        log.error("lrange %s: %s", key, error)
        return error_response("failed to get list: {}".format(error), 503)
    return json_response(members, "response")


@router.get("/rpush/{key}/{value}")
def list_push(key: str, value: str, context: AppContext = Depends(get_context)) -> Response:
    try:
        context.master.list_append(key, value)
    except StoreUnavailable as error:
        log.error("rpush %s: %s", key, error)
        return error_response("failed to add to list: {}".format(error), 503)
    # Read back from the replica, which may not have the write yet.
    return list_range(key, context)


@router.get("/info")
def info(context: AppContext = Depends(get_context)) -> Response:
    try:
        body = context.master.raw_command("INFO")
    except StoreUnavailable as error:
        log.error("info: %s", error)
        return error_response("failed to get Redis info: {}".format(error), 503)
    return Response(content=body, media_type="text/plain")


@router.get("/env")
def env() -> Response:
    return json_response(environment_snapshot(), "environment")


# Application

def create_app(context: Optional[AppContext] = None, settings: Optional[Settings] = None) -> FastAPI:
    """Build the HTTP application.

    Without a ``context`` the Redis clients are opened from ``settings`` (or
    the environment) when the server starts; a backend that cannot be
    reached aborts startup. Either way the clients are closed on shutdown.
    """
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.context is None:
            try:
                app.state.context = open_context(settings or Settings.from_env())
            except ConnectionError as error:
                log.critical("Failed to initialize Redis connections: %s", error)
                raise
        yield
        log.info("Closing Redis connections")
        app.state.context.close()

    app = FastAPI(title="Guestbook", version=__version__, lifespan=lifespan)
    app.state.context = context

    @app.middleware("http")
    async def log_requests(request: Request, call_next: Any) -> Response:
        start = time.monotonic()
        try:
            response = await call_next(request)
        except Exception:
            log.exception("Unhandled error serving %s %s", request.method, request.url.path)
            response = error_response("internal server error", 500)
        elapsed = (time.monotonic() - start) * 1000
        access_log.info("%s %s %d %.2fms", request.method, request.url.path, response.status_code, elapsed)
        return response

    app.include_router(router)

    # Static files go last so API routes take precedence.
    public_dir = settings.public_dir if settings is not None else public_dir_from_env()
    if os.path.isdir(public_dir):
        app.mount("/", StaticFiles(directory=public_dir, html=True), name="public")

    return app


app = create_app()


def main() -> None:
    parser = argparse.ArgumentParser(description="Guestbook (HTTP front-end over Redis lists)")
    parser.add_argument("--log-level", default=None, choices=LOG_LEVELS, help="Log level (default from GUESTBOOK_LOG_LEVEL or INFO)")
    args = parser.parse_args()

    environ = dict(os.environ)
    if args.log_level:
        environ["GUESTBOOK_LOG_LEVEL"] = args.log_level
    try:
        settings = Settings.from_env(environ)
    except ValueError as error:
        parser.error(str(error))

    # Logging
    level = getattr(logging, settings.log_level)
    logging.basicConfig(format=LOG_FORMAT, level=level)

    try:
        context = open_context(settings)
    except ConnectionError as error:
        log.critical("Failed to initialize Redis connections: %s", error)
        sys.exit(1)

    # Start server
    log.info("Starting server on :%d", LISTEN_PORT)
    uvicorn.run(create_app(context, settings), host=LISTEN_HOST, port=LISTEN_PORT)


if __name__ == "__main__":
    main()
