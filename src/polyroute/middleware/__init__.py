"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    SessionMiddleware -- Signed cookie sessions (itsdangerous)
    SetLocale -- Detect, activate and persist the request locale
                 (``polyroute.middleware.locale``, builds on the detectors)
"""

from polyroute.middleware.protocol import Middleware, Next
from polyroute.middleware.sessions import SessionConfig, SessionMiddleware, get_session

__all__ = [
    "Middleware",
    "Next",
    "SessionConfig",
    "SessionMiddleware",
    "get_session",
]
