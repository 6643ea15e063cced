"""Rate limiting configuration using slowapi."""

import hashlib

from slowapi import Limiter
from starlette.requests import Request


def _get_real_client_ip(request: Request) -> str:
    """Extract the real client IP behind a reverse proxy."""
    return (
        request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
        or (request.client.host if request.client else "127.0.0.1")
    )


def _rate_limit_key(request: Request) -> str:
    """Key requests by bearer token when present so one caller maps to one bucket."""
    authorization = request.headers.get("Authorization", "")
    if authorization.lower().startswith("bearer "):
        digest = hashlib.sha256(authorization[7:].encode()).hexdigest()[:32]
        return f"token:{digest}"
    return f"ip:{_get_real_client_ip(request)}"


limiter = Limiter(key_func=_rate_limit_key)
