"""Session middleware — signed cookie sessions.

Session data is serialized as JSON and signed using ``itsdangerous``.
The session object is stored in a ContextVar, accessible via
``get_session()`` from any handler or middleware. ``SetLocale`` uses it
to remember the resolved locale between requests.
"""

import logging
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any

from itsdangerous import BadSignature, URLSafeTimedSerializer

from polyroute.errors import ConfigurationError
from polyroute.http.request import Request
from polyroute.http.response import Response
from polyroute.middleware.protocol import Next

logger = logging.getLogger("polyroute.server")

# -- Session ContextVar --

_session_var: ContextVar[dict[str, Any] | None] = ContextVar("polyroute_session", default=None)


def get_session() -> dict[str, Any]:
    """Return the current session dict.

    Raises ``LookupError`` if called outside a request with
    ``SessionMiddleware`` active.
    """
    session = _session_var.get()
    if session is None:
        msg = (
            "No active session. Ensure SessionMiddleware is added "
            "to the app before accessing the session."
        )
        raise LookupError(msg)
    return session


# -- Configuration --


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session middleware configuration.

    ``secret_key`` is required — sessions are signed, not encrypted.
    """

    secret_key: str
    cookie_name: str = "polyroute_session"
    max_age: int = 86400  # 24 hours
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"
    salt: str = "polyroute.session"


# -- Middleware --


class SessionMiddleware:
    """Signed cookie session middleware.

    Reads the session cookie, verifies the signature, makes the session
    dict available via ``get_session()``, then writes it back as a
    ``Set-Cookie`` header on the response.

    Usage::

        app.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))
        app.add_middleware(SetLocale(app.locales))

    Add it before ``SetLocale`` so the locale can be stored in the session.
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)

        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt=config.salt)

    def _load_session(self, request: Request) -> dict[str, Any]:
        """Deserialize and verify the session cookie."""
        cookie_value = request.cookies.get(self._config.cookie_name)
        if not cookie_value:
            return {}

        try:
            data = self._serializer.loads(cookie_value, max_age=self._config.max_age)
        except BadSignature:
            # Expired or tampered cookies start a fresh session
            logger.debug("Discarding invalid session cookie")
            return {}

        if not isinstance(data, dict):
            return {}
        return data

    def _save_session(self, response: Response, session: dict[str, Any]) -> Response:
        """Serialize the session dict and set the cookie on the response."""
        cfg = self._config
        return response.with_cookie(
            name=cfg.cookie_name,
            value=self._serializer.dumps(session),
            max_age=cfg.max_age,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    async def __call__(self, request: Request, next: Next) -> Response:
        """Load session, dispatch, then save session to response."""
        session = self._load_session(request)
        token = _session_var.set(session)

        try:
            response = await next(request)
        finally:
            _session_var.reset(token)

        return self._save_session(response, session)
