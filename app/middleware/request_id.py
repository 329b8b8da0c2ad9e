# app/middleware/request_id.py
from __future__ import annotations

"""
# FlixCatalog — Request ID Middleware (pure ASGI)

- Reuses a client-supplied `X-Request-ID` / `X-Correlation-ID` when it is a
  valid UUIDv4; otherwise generates one.
- Exposes it as `request.state.request_id` and echoes it on the response.
- Binds `request_id` into the **loguru** context for the whole request, so
  every log line (including stdlib records routed through the intercept
  handler) carries it.

## Usage
    from app.middleware.request_id import RequestIDMiddleware, get_request_id
    app.add_middleware(RequestIDMiddleware)
"""

import uuid
from typing import Optional

from loguru import logger
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

HEADER_NAME = "X-Request-ID"
_ALIASES = ("X-Correlation-ID",)
MAX_ID_LENGTH = 64


def _valid_uuid4(value: Optional[str]) -> Optional[str]:
    candidate = (value or "").strip()
    if not candidate or len(candidate) > MAX_ID_LENGTH:
        return None
    try:
        parsed = uuid.UUID(candidate)
    except ValueError:
        return None
    return str(parsed) if parsed.version == 4 else None


class RequestIDMiddleware:
    """Attach a per-request correlation ID; strict format keeps log lines clean."""

    def __init__(self, app: ASGIApp, header_name: str = HEADER_NAME) -> None:
        self.app = app
        self.header_name = header_name
        self._header_bytes = header_name.lower().encode("latin-1")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope.get("type") != "http":
            await self.app(scope, receive, send)
            return

        headers = Headers(scope=scope)
        req_id = None
        for name in (self.header_name, *_ALIASES):
            req_id = _valid_uuid4(headers.get(name))
            if req_id:
                break
        req_id = req_id or str(uuid.uuid4())

        scope.setdefault("state", {})["request_id"] = req_id

        async def _send(message: Message) -> None:
            if message["type"] == "http.response.start":
                raw = [(k, v) for (k, v) in message.get("headers", []) if k.lower() != self._header_bytes]
                raw.append((self.header_name.encode("latin-1"), req_id.encode("latin-1")))
                message["headers"] = raw
            await send(message)

        with logger.contextualize(request_id=req_id):
            await self.app(scope, receive, _send)


def get_request_id(request) -> str:
    """Current request id from `request.state` ("" if absent)."""
    return getattr(getattr(request, "state", object()), "request_id", "") or ""


__all__ = ["RequestIDMiddleware", "get_request_id"]
