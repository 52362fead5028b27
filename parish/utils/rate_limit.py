"""
Rate limiting utilities for API endpoints.
Uses slowapi to slow down password guessing on the admin login.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request


def get_client_identifier(request: Request) -> str:
    """
    Client identifier for rate limiting.
    Uses the first forwarded IP when behind a proxy, otherwise the remote address.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=["100/hour"],
    storage_uri="memory://"
)


RATE_LIMITS = {
    "login": "5/minute",
    "upload": "20/hour",
}
