"""HTTP middleware guarding the MCP endpoint."""

from __future__ import annotations

import hmac
from collections.abc import Awaitable, Callable, Iterable

from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

HEALTH_PATH = "/mcp/health"
SECRET_HEADER = "x-mcp-secret"


class SharedSecretMiddleware(BaseHTTPMiddleware):
    """Answer 401 to any request whose secret header does not match.

    Paths in *open_paths* (the health check by default) skip the check.
    """

    def __init__(
        self,
        app: ASGIApp,
        secret: str,
        header: str = SECRET_HEADER,
        open_paths: Iterable[str] = (HEALTH_PATH,),
    ) -> None:
        super().__init__(app)
        if not secret:
            raise ValueError("Shared secret must be configured")
        self._expected = secret.encode()
        self._header = header.lower()
        self._open_paths = frozenset(open_paths)

    def authorized(self, request: Request) -> bool:
        if request.url.path in self._open_paths:
            return True
        provided = request.headers.get(self._header, "").encode()
        return hmac.compare_digest(provided, self._expected)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if not self.authorized(request):
            return JSONResponse({"detail": "Unauthorized"}, status_code=401)
        return await call_next(request)


def build_security_middleware(secret: str | None) -> list[Middleware]:
    """CORS for browser-based MCP clients, then the secret check when *secret* is set."""

    stack = [Middleware(SharedSecretMiddleware, secret=secret)] if secret else []
    stack.append(
        Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST"],
            allow_headers=["*"],
        )
    )
    return stack
