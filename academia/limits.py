"""
academia/limits.py
Rate limiting for the authentication endpoints
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from academia.config import Settings

limiter = Limiter(key_func=get_remote_address)

_auth_limit = "10/minute"


def configure_limiter(settings: Settings) -> Limiter:
    global _auth_limit
    _auth_limit = settings.auth_rate_limit
    limiter.enabled = settings.rate_limit_enabled
    return limiter


def auth_limit() -> str:
    return _auth_limit
