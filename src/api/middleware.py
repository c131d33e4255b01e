"""
Request deadline middleware.

Bounds the total time spent on one HTTP request. When the deadline
passes before the response has started, the client gets 408.
"""

import asyncio
import logging

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestTimeoutMiddleware:
    """Pure ASGI middleware; a timeout of 0 or less disables it."""

    def __init__(self, app: ASGIApp, timeout_seconds: float) -> None:
        self.app = app
        self.timeout_seconds = timeout_seconds

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or self.timeout_seconds <= 0:
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, receive, send_wrapper), self.timeout_seconds)
        except asyncio.TimeoutError:
            if response_started:
                raise
            logger.warning("Request %s %s timed out", scope.get("method"), scope.get("path"))
            response = JSONResponse(
                {"detail": "the request took too much time"},
                status_code=408,
            )
            await response(scope, receive, send)
