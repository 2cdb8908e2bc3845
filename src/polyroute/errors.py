"""Polyroute exception hierarchy.

Shared across Router, App, handler, middleware and the URL generator so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class PolyrouteError(Exception):
    """Base for all polyroute-specific errors."""


class ConfigurationError(PolyrouteError):
    """Raised when locale or app configuration is invalid.

    Typically raised while building a ``LocaleConfig`` or registering
    localized routes, so mistakes surface at startup.
    """


class RouteNotFound(PolyrouteError, LookupError):  # noqa: N818
    """No route is registered under the requested name.

    Expected and recoverable: the localized URL generator catches it and
    falls back to substituting placeholders in the route template.
    """

    def __init__(self, name: str | None) -> None:
        self.name = name
        super().__init__(f"Route [{name}] not defined.")


class UrlGenerationError(PolyrouteError):
    """A named URL could not be built because a required parameter is missing."""


@dataclass(frozen=True, slots=True)
class HTTPError(PolyrouteError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, middleware, or handlers. The ASGI handler
    catches these and dispatches to the matching ``@app.error()`` handler.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — route exists but not for this HTTP method."""

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
