"""Render unhandled exceptions as normalized 500s *inside* the CORS layer.

A handler registered for bare ``Exception`` would run in Starlette's
ServerErrorMiddleware, outside every user middleware, so its response would
lack CORS headers and the exception would be re-raised to the server (and
logged a second time).  This middleware is installed beneath
``CORSMiddleware`` and answers the request itself.
"""

from __future__ import annotations

from starlette.requests import Request
from starlette.types import ASGIApp
from starlette.types import Message
from starlette.types import Receive
from starlette.types import Scope
from starlette.types import Send

from dockyard.errors import normalized_error_handler


class UnhandledErrorMiddleware:
    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def _send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, _send)
        except Exception as exc:
            # Too late to replace a response that is already on the wire.
            if response_started:
                raise
            response = await normalized_error_handler(Request(scope, receive), exc)
            await response(scope, receive, send)
