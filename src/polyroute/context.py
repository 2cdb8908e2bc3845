"""Request-scoped context via ContextVar.

Provides:
- ``request_var``: The current ``Request`` for this task/thread.
- ``locale_var``: The locale resolved for the current request.

The request is set by the handler pipeline once the route is matched;
the locale is set once by ``SetLocale`` before the handler runs. Both
are reset after each request, so concurrent requests never see each
other's values.

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local under
    free-threading. No locks needed.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from polyroute.http.request import Request

# -- Request context --

request_var: ContextVar[Request] = ContextVar("polyroute_request")
"""The current request. Set by the ASGI handler before middleware runs."""


def get_request() -> Request:
    """Return the current request.

    Raises ``LookupError`` if called outside a request context.
    """
    return request_var.get()


# -- Active locale --

locale_var: ContextVar[str | None] = ContextVar("polyroute_locale", default=None)
"""The active locale. Unset at request start, set once by ``SetLocale``."""


def get_locale(default: str | None = None) -> str | None:
    """Return the active locale, or *default* when none has been resolved."""
    locale = locale_var.get()
    return locale if locale is not None else default


def set_locale(locale: str) -> Token[str | None]:
    """Make *locale* the active locale and return the reset token."""
    return locale_var.set(locale)
