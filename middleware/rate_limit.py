# middleware/rate_limit.py
"""
Rate limiting configuration using slowapi.

Callers are bucketed by the socket peer address. Behind a reverse proxy, run
uvicorn with --proxy-headers and FORWARDED_ALLOW_IPS set to the proxy so the
peer address is rewritten from X-Forwarded-For by a trusted hop only; the raw
header is never read here since any client can set it.

Usage in route files:
    from middleware.rate_limit import limiter

    @router.post("/expensive")
    @limiter.limit("5/minute")
    async def my_endpoint(request: Request):
        ...
"""
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

DEFAULT_RATE_LIMIT = os.getenv("RATE_LIMIT_DEFAULT", "120/minute")

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[DEFAULT_RATE_LIMIT],
    storage_uri="memory://",
    strategy="fixed-window",
)
