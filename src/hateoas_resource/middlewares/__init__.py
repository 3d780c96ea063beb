"""Middlewares - request/response interceptors for the fetcher."""

from .accept import accept_middleware, build_accept_header
from .auth import basic_auth, bearer_auth
from .cache import cache_middleware
from .retry import retry_middleware
from .warning import warning_middleware

__all__ = [
    "accept_middleware",
    "build_accept_header",
    "basic_auth",
    "bearer_auth",
    "cache_middleware",
    "retry_middleware",
    "warning_middleware",
]
