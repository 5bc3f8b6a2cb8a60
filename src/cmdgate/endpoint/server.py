"""FastAPI HTTP server for cmdgate.

Endpoints:

    *    /, /index.html   -> static info page (runtime, port, platform, uptime)
    *    /health          -> {"status": "healthy", "timestamp": ..., "uptime_seconds": ...}
    GET  /cmd?command=X   -> runs the registered shell command for X

Every response carries permissive CORS headers and OPTIONS is answered
with an empty 200 on any path. The info page and health probe answer
any other method; ``/cmd`` answers non-GET with a JSON 405. Unknown
paths get a plain-text 404.
Failed command executions are still reported with status 200; the
failure is described in the body.
"""

from __future__ import annotations

import hmac
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Mapping

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from cmdgate import __version__
from cmdgate.config.settings import Settings
from cmdgate.domain.models import CommandFailure, CommandOutput, ErrorResponse, HealthResponse
from cmdgate.endpoint.commands import build_registry, resolve_command
from cmdgate.endpoint.page import render_info_page, runtime_version
from cmdgate.endpoint.runner import ProcessRunner

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, x-api-key",
}

API_KEY_HEADER = "x-api-key"


class CommandRequestError(Exception):
    """A client error on the command endpoint, rendered as {"error": message}."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------

def create_app(
    settings: Settings | None = None,
    commands: Mapping[str, str] | None = None,
    runner: ProcessRunner | None = None,
    started_at: float | None = None,
) -> FastAPI:
    """Create the cmdgate application.

    Args:
        settings: Immutable startup configuration. Read from the
                  environment when None.
        commands: Command registry (name -> shell command). Defaults to
                  the built-in registry.
        runner: Optional pre-configured ProcessRunner (for testing).
        started_at: ``time.monotonic()`` value uptime is measured from.
    """
    if settings is None:
        settings = Settings()
    registry = build_registry(commands)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Server running on port %d", settings.port)
        logger.info("Runtime: %s", runtime_version())
        if not settings.require_api_key:
            logger.warning("ADMIN_API_KEY is not set, /cmd is open to anyone")
        yield
        logger.info("Server stopped")

    app = FastAPI(
        title="cmdgate",
        description="Info page, health probe and whitelisted command endpoint",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.runner = runner if runner is not None else ProcessRunner()
    app.state.started_at = started_at if started_at is not None else time.monotonic()

    def _uptime() -> float:
        return max(time.monotonic() - app.state.started_at, 0.0)

    # -------------------------------------------------------------------
    # Cross-cutting: CORS, pre-flight, fault barrier
    # -------------------------------------------------------------------

    @app.middleware("http")
    async def cors_and_errors(request: Request, call_next) -> Response:  # type: ignore[no-untyped-def]
        if request.method == "OPTIONS":
            response: Response = Response(status_code=200)
        else:
            try:
                response = await call_next(request)
            except Exception:
                logger.exception(
                    "Request handling error: %s %s", request.method, request.url.path
                )
                response = JSONResponse(
                    ErrorResponse(error="Internal server error").model_dump(),
                    status_code=500,
                )
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(CommandRequestError)
    async def command_request_error(request: Request, exc: CommandRequestError) -> JSONResponse:
        return JSONResponse(
            ErrorResponse(error=exc.message).model_dump(),
            status_code=exc.status_code,
        )

    @app.exception_handler(StarletteHTTPException)
    async def not_found(request: Request, exc: StarletteHTTPException) -> Response:
        if exc.status_code == 404:
            return PlainTextResponse("Not Found", status_code=404)
        return await http_exception_handler(request, exc)

    # -------------------------------------------------------------------
    # Info page and health probe
    # -------------------------------------------------------------------

    async def home(request: Request) -> HTMLResponse:
        return HTMLResponse(render_info_page(settings.port, _uptime()))

    async def health_check(request: Request) -> JSONResponse:
        now = datetime.now(timezone.utc)
        body = HealthResponse(
            status="healthy",
            timestamp=now.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            uptime_seconds=_uptime(),
        )
        return JSONResponse(body.model_dump())

    # -------------------------------------------------------------------
    # Command endpoint
    # -------------------------------------------------------------------

    async def run_command(request: Request) -> JSONResponse:
        if request.method != "GET":
            raise CommandRequestError(405, "Method not allowed. Use GET.")

        _check_api_key(request, settings)

        values = request.query_params.getlist("command")
        name = values[0] if values else ""
        if not name:
            raise CommandRequestError(400, 'Missing "command" query parameter')

        shell_command = resolve_command(app.state.registry, name)
        if shell_command is None:
            logger.info("Rejected command %r", name)
            raise CommandRequestError(403, "Command not allowed")

        logger.info("Running command %r (%s)", name, shell_command)
        runner: ProcessRunner = app.state.runner
        result = await runner.run(shell_command)

        if result.ok:
            body = CommandOutput(command=name, stdout=result.stdout, stderr=result.stderr)
            return JSONResponse(body.model_dump())

        logger.warning("Command %r failed: %s", name, result.error)
        failure = CommandFailure(
            command=name,
            error=result.error or "Command failed",
            exit_code=result.exit_code,
            signal=result.signal,
            stdout=result.stdout,
            stderr=result.stderr,
        )
        return JSONResponse(failure.model_dump(by_alias=True))

    # Registered without a method list so every verb reaches the handler;
    # /cmd rejects non-GET itself.
    app.add_route("/", home, include_in_schema=False)
    app.add_route("/index.html", home, include_in_schema=False)
    app.add_route("/health", health_check, include_in_schema=False)
    app.add_route("/cmd", run_command, include_in_schema=False)

    return app


def _check_api_key(request: Request, settings: Settings) -> None:
    """Require the admin key header when one is configured."""
    if not settings.require_api_key:
        return
    provided = request.headers.get(API_KEY_HEADER, "")
    expected = settings.admin_api_key.get_secret_value()
    # Header values arrive latin-1 decoded.
    matches = hmac.compare_digest(provided.encode("latin-1"), expected.encode("utf-8"))
    if not provided or not matches:
        logger.warning("Unauthorized /cmd request from %s", _client_host(request))
        raise CommandRequestError(401, "Unauthorized: missing or invalid API key")


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


# ---------------------------------------------------------------------------
# Standalone entry point
# ---------------------------------------------------------------------------

def main(settings: Settings | None = None) -> None:
    """Run the cmdgate server."""
    if settings is None:
        settings = Settings()
    app = create_app(settings=settings)
    uvicorn.run(app, host=settings.server.host, port=settings.port)


if __name__ == "__main__":
    main()
