"""Coarse per-route throttling and client IP resolution.

slowapi guards every public route with a generous per-minute ceiling so that
floods are shed before touching the database. The per-client, per-operation
admission rules (cooldown plus daily cap) live in
``rollcall.services.admission`` and are persisted, so they hold across
workers and restarts.
"""
import os
from slowapi import Limiter
from slowapi.util import get_remote_address

from rollcall.core.config import settings


def get_client_ip(request) -> str:
    """Get client IP for rate limiting, considering proxies."""
    if settings.TRUST_FORWARDED_FOR:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            # X-Forwarded-For can contain multiple IPs, take the first one
            first = forwarded.split(",")[0].strip()
            if first:
                return first

    return get_remote_address(request)


# Uses Redis if REDIS_URL is set, falls back to memory for local dev
limiter = Limiter(
    key_func=get_client_ip,
    default_limits=["100/minute"],
    storage_uri=os.getenv("REDIS_URL", "memory://"),
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)

# Conference venues often share one public IP across attendees' phones,
# so these ceilings are intentionally loose.
RATE_LIMITS = {
    "registration": "60/minute",
    "code_lookup": "120/minute",
    "email_code": "30/minute",

    # Staff endpoints (scanner stations toggle in bursts)
    "admin_read": "300/minute",
    "admin_write": "300/minute",
}
