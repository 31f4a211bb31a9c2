"""
HTTP middleware: request body cap, access logging and security headers.
"""

import time
from typing import List

import structlog
from fastapi import status
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = structlog.get_logger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "X-DNS-Prefetch-Control": "off",
}


class BodyLimitMiddleware:
    """
    Rejects requests whose body exceeds `max_bytes` with 413.

    A declared Content-Length is checked up front. A body streamed without
    one is counted as it arrives and buffered up to the limit, then replayed
    to the application.
    """

    def __init__(self, app: ASGIApp, max_bytes: int):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None:
            if content_length.isdigit() and int(content_length) > self.max_bytes:
                logger.warning(
                    "Request body too large",
                    content_length=int(content_length),
                    max_bytes=self.max_bytes,
                    path=path,
                )
                await self._reject(scope, receive, send)
                return
            await self.app(scope, receive, send)
            return

        messages: List[Message] = []
        received = 0
        more_body = True
        while more_body:
            message = await receive()
            messages.append(message)
            if message["type"] != "http.request":
                break
            received += len(message.get("body", b""))
            if received > self.max_bytes:
                logger.warning(
                    "Streamed request body too large",
                    received_bytes=received,
                    max_bytes=self.max_bytes,
                    path=path,
                )
                await self._reject(scope, receive, send)
                return
            more_body = message.get("more_body", False)

        async def replay_receive() -> Message:
            if messages:
                return messages.pop(0)
            return await receive()

        await self.app(scope, replay_receive, send)

    @staticmethod
    async def _reject(scope: Scope, receive: Receive, send: Send) -> None:
        response = JSONResponse(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            content={"message": "Request body too large"},
        )
        await response(scope, receive, send)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and latency for every request."""

    async def dispatch(self, request: Request, call_next) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        latency_ms = round((time.perf_counter() - start_time) * 1000, 2)

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            latency_ms=latency_ms,
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds conservative security headers to every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response
