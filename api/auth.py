"""
api/auth.py
Shared-secret bearer check for the administrative HTTP routes.
"""

from __future__ import annotations
import logging
from typing import Awaitable, Callable, Optional

from aiohttp import web

log = logging.getLogger("linkbot.auth")

PUBLIC_PATHS = frozenset({"/health"})


def is_authorized(header: Optional[str], secret: Optional[str]) -> bool:
    # No secret configured means nothing is authorized.
    if not secret:
        return False
    return (header or "") == f"Bearer {secret}"


def auth_middleware(secret: Optional[str]):
    """Reject protected requests before their handlers read the body."""

    @web.middleware
    async def middleware(
        request: web.Request,
        handler: Callable[[web.Request], Awaitable[web.StreamResponse]],
    ) -> web.StreamResponse:
        if request.path in PUBLIC_PATHS:
            return await handler(request)
        if not is_authorized(request.headers.get("Authorization"), secret):
            log.warning("Unauthorized %s %s from %s", request.method, request.path, request.remote)
            return web.json_response({"error": "unauthorized"}, status=401)
        return await handler(request)

    return middleware
