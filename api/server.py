"""
api/server.py
aiohttp HTTP surface: code registration, single moves and batch dispatch.

Runs on the bot's event loop. Every route except /health sits behind the
bearer-token middleware in api/auth.py.
"""

from __future__ import annotations
import json
import logging
from typing import Any, Optional

from aiohttp import web

from errors import BridgeError
from linking.pending import PendingLinkRegistry
from relocation.dispatcher import MoveOutcome, RelocationDispatcher
from .auth import auth_middleware

log = logging.getLogger("linkbot.http")

# Single-move outcome → (HTTP status, error code). MOVED is handled separately.
MOVE_ERRORS: dict[MoveOutcome, tuple[int, str]] = {
    MoveOutcome.NOT_LINKED:      (404, "not_linked"),
    MoveOutcome.NOT_IN_VOICE:    (409, "not_in_voice"),
    MoveOutcome.INVALID_CHANNEL: (400, "invalid_channel"),
    MoveOutcome.ERROR:           (500, "move_failed"),
}


class InvalidJson(Exception):
    pass


async def _read_body(request: web.Request) -> dict[str, Any]:
    """Parse the JSON body. Empty bodies and non-object JSON read as {}."""
    raw = await request.read()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw.decode("utf-8"))
    except ValueError as e:
        raise InvalidJson(str(e)) from e
    return body if isinstance(body, dict) else {}


def _error(code: str, status: int) -> web.Response:
    return web.json_response({"error": code}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler) -> web.StreamResponse:
    try:
        return await handler(request)
    except InvalidJson as e:
        log.debug("Invalid JSON on %s: %s", request.path, e)
        return _error("invalid_json", 400)
    except BridgeError as e:
        if e.status >= 500:
            log.error("%s %s failed: %s", request.method, request.path, e)
        return _error(e.code, e.status)
    except web.HTTPException:
        raise
    except Exception:
        log.exception("Unhandled error on %s %s", request.method, request.path)
        return _error("internal_error", 500)


class LinkApi:
    def __init__(self, pending: PendingLinkRegistry, dispatcher: RelocationDispatcher):
        self.pending    = pending
        self.dispatcher = dispatcher

    async def health(self, request: web.Request) -> web.Response:
        return web.Response(text="ok")

    async def register(self, request: web.Request) -> web.Response:
        body = await _read_body(request)
        self.pending.register(body.get("code"), body.get("uuid"), body.get("name"))
        return web.json_response({"ok": True})

    async def move(self, request: web.Request) -> web.Response:
        body    = await _read_body(request)
        outcome = await self.dispatcher.move_one(body.get("uuid"), body.get("channelId"))
        if outcome is MoveOutcome.MOVED:
            return web.json_response({"ok": True})
        status, code = MOVE_ERRORS[outcome]
        return _error(code, status)

    async def dispatch(self, request: web.Request) -> web.Response:
        body  = await _read_body(request)
        tally = await self.dispatcher.dispatch(body.get("moves"))
        return web.json_response({"ok": True, **tally.to_dict()})


def create_app(
    secret: Optional[str],
    pending: PendingLinkRegistry,
    dispatcher: RelocationDispatcher,
) -> web.Application:
    api = LinkApi(pending, dispatcher)
    app = web.Application(middlewares=[auth_middleware(secret), error_middleware])
    app.router.add_get("/health", api.health)
    app.router.add_post("/link/register", api.register)
    app.router.add_post("/move", api.move)
    app.router.add_post("/dispatch", api.dispatch)
    return app


class HttpServer:
    """Starts and stops the aiohttp app on the running event loop."""

    def __init__(self, app: web.Application, host: str, port: int):
        self.app  = app
        self.host = host
        self.port = port
        self._runner: Optional[web.AppRunner] = None

    async def start(self) -> None:
        self._runner = web.AppRunner(self.app, access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        log.info("HTTP server on %s:%d", self.host, self.port)

    async def stop(self) -> None:
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            log.info("HTTP server stopped.")
