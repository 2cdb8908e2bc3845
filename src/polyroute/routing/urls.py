"""Mutable URL builder.

Decomposes a URL into scheme, host, port, path segments ("slugs") and an
ordered query mapping, lets callers swap any of them, and assembles the
result as an absolute or relative URL::

    url = UrlBuilder.from_url("https://example.test/nl/over-ons?page=2")
    url.slugs          # ["nl", "over-ons"]
    url.slugs = ["en", "about"]
    url.host = "example.com"
    url.build()        # "https://example.com/en/about?page=2"
    url.build(absolute=False)  # "/en/about?page=2"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl, quote, unquote, urlencode, urlsplit


@dataclass(slots=True)
class UrlBuilder:
    """A URL broken into editable parts."""

    scheme: str = "http"
    host: str = "localhost"
    port: int | None = None
    slugs: list[str] = field(default_factory=list)
    query: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_url(cls, url: str) -> UrlBuilder:
        parts = urlsplit(url)
        return cls(
            scheme=parts.scheme or "http",
            host=parts.hostname or "localhost",
            port=parts.port,
            slugs=_split_path(parts.path),
            query=dict(parse_qsl(parts.query, keep_blank_values=True)),
        )

    @property
    def path(self) -> str:
        return "/" + "/".join(quote(slug, safe="") for slug in self.slugs)

    @path.setter
    def path(self, value: str) -> None:
        self.slugs = _split_path(value)

    @property
    def query_string(self) -> str:
        return urlencode({str(key): value for key, value in self.query.items()})

    def build(self, absolute: bool = True) -> str:
        """Assemble the URL. Relative URLs start at the path."""
        url = self.path
        if absolute:
            netloc = self.host if self.port is None else f"{self.host}:{self.port}"
            url = f"{self.scheme}://{netloc}{url}"
        qs = self.query_string
        return f"{url}?{qs}" if qs else url


def _split_path(path: str) -> list[str]:
    return [unquote(part) for part in path.split("/") if part]
