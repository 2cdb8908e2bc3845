"""Immutable HTTP request.

Frozen metadata: the request is honest about what it is, received data
that doesn't change. The handler pipeline derives a routed copy with
``dataclasses.replace`` once the route is matched, and middleware can do
the same to attach an authenticated principal::

    async def load_user(request: Request, next: Next) -> AnyResponse:
        return await next(replace(request, user=await users.current(request)))
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from urllib.parse import parse_qsl, quote, urlencode

from polyroute.http.cookies import parse_cookies
from polyroute.http.headers import Headers

if TYPE_CHECKING:
    from polyroute.routing.route import Route

_DEFAULT_PORTS = {"http": 80, "https": 443}


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    Cookies and the query string are parsed once at creation time and
    stored as frozen fields, not re-parsed on every access.
    """

    method: str
    path: str
    headers: Headers
    query: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)
    scheme: str = "http"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None

    # Set by the handler pipeline after routing
    route: Route | None = None
    path_params: dict[str, str] = field(default_factory=dict)

    # Authenticated principal, attached by the application's auth layer
    user: Any = None

    # -- Computed properties --

    @property
    def host(self) -> str:
        """The requested host name, without port."""
        host_header = self.headers.get("host")
        if host_header:
            return _split_host(host_header)[0]
        if self.server:
            return self.server[0]
        return "localhost"

    @property
    def port(self) -> int | None:
        """The requested port, or ``None`` when it is the scheme default."""
        host_header = self.headers.get("host")
        if host_header:
            port = _split_host(host_header)[1]
        else:
            port = self.server[1] if self.server else None
        if port == _DEFAULT_PORTS.get(self.scheme):
            return None
        return port

    @property
    def query_string(self) -> str:
        return urlencode(self.query)

    @property
    def url(self) -> str:
        """Full request URL: scheme, host, port, path and query string."""
        qs = self.query_string
        base = self.absolute_url(quote(self.path))
        return f"{base}?{qs}" if qs else base

    @property
    def accept_language(self) -> str:
        """The raw ``Accept-Language`` header, or an empty string."""
        return self.headers.get("accept-language") or ""

    def absolute_url(self, path: str, domain: str | None = None) -> str:
        """*path* on this request's origin, or on *domain* when given.

        The port is kept only for the request's own host; a route domain
        is used as is.
        """
        if domain:
            netloc = domain
        elif self.port is None:
            netloc = self.host
        else:
            netloc = f"{self.host}:{self.port}"
        return f"{self.scheme}://{netloc}{path}"

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any]) -> Request:
        """Create a Request from an ASGI HTTP scope."""
        headers = Headers(tuple(scope.get("headers", ())))
        server = scope.get("server")
        client = scope.get("client")
        raw_query = scope.get("query_string", b"").decode("latin-1")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=headers,
            query=dict(parse_qsl(raw_query, keep_blank_values=True)),
            cookies=parse_cookies(headers.get("cookie") or ""),
            scheme=scope.get("scheme", "http"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
        )


def _split_host(value: str) -> tuple[str, int | None]:
    """Split a ``Host`` header into name and port (IPv6 literals kept bracketed)."""
    if value.startswith("["):
        name, _, rest = value.partition("]")
        name, port = f"{name}]", rest.removeprefix(":")
    else:
        name, _, port = value.partition(":")
    try:
        return name, int(port) if port else None
    except ValueError:
        return name, None
