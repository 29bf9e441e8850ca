from .base import Transport
from .client_report import ClientReport
from .dummy import DummyTransport
from .http import HTTPTransport
from .rate_limiter import RateLimiter

__all__ = [
    "ClientReport",
    "DummyTransport",
    "HTTPTransport",
    "RateLimiter",
    "Transport",
]
