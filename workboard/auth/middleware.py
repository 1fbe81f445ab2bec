"""Auth middleware: global route protection with path allowlist.

Applied as Starlette middleware so it runs before FastAPI dependency
injection and covers every route without per-router Depends().
"""

import re

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from workboard.auth.dependencies import extract_session_secret

# Paths that never require authentication.
PUBLIC_PATH_PATTERNS: list[re.Pattern] = [
    # Health check
    re.compile(r"^/api/status$"),
    # Account flows reachable while logged out
    re.compile(r"^/api/auth/login$"),
    re.compile(r"^/api/auth/register$"),
    re.compile(r"^/api/auth/forgot-password$"),
    re.compile(r"^/api/auth/reset-password$"),
    re.compile(r"^/api/auth/verify-email$"),
    # Workspace icons are embedded with <img> tags
    re.compile(r"^/api/storage/images/[^/]+$"),
    # OpenAPI docs
    re.compile(r"^/docs$"),
    re.compile(r"^/redoc$"),
    re.compile(r"^/openapi\.json$"),
]


def _is_public_path(path: str) -> bool:
    """Return True if the path matches a public pattern."""
    return any(pattern.match(path) for pattern in PUBLIC_PATH_PATTERNS)


class AuthMiddleware(BaseHTTPMiddleware):
    """Reject requests without any session credential on non-public paths.

    This is a fast pre-check only. Resolving the secret to a live session
    (DB lookup, expiry) happens in the get_current_user dependency.
    """

    async def dispatch(self, request: Request, call_next):
        if _is_public_path(request.url.path):
            return await call_next(request)

        # Allow CORS preflight
        if request.method == "OPTIONS":
            return await call_next(request)

        if not extract_session_secret(request):
            return JSONResponse(
                status_code=401,
                content={"detail": "Unauthorized"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        return await call_next(request)
