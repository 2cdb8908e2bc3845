"""Capabilities a domain model can implement to feed URL generation.

Developers bring their own models (ORM classes, dataclasses, ...). The
generator dispatches on these protocols with ``isinstance``:

- ``ProvidesRouteParameters`` expands into several route parameters,
  possibly different per locale.
- ``UrlRoutable`` contributes a single value: its route key in the
  requested locale, e.g. a translated article slug::

    @dataclass
    class Article:
        id: int
        slugs: dict[str, str]

        def get_route_key(self, locale: str, binding_field: str | None = None) -> str:
            if binding_field == "slug":
                return self.slugs[locale]
            return str(self.id)

The locale is passed explicitly, so models never read the active locale.
"""

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ProvidesRouteParameters(Protocol):
    """A model that expands into an ordered mapping of route parameters."""

    def get_route_parameters(self, locale: str) -> Mapping[str, Any]: ...


@runtime_checkable
class UrlRoutable(Protocol):
    """A model that can be bound to a single route placeholder.

    *binding_field* is the attribute the route declares for this
    parameter (``/posts/{post:slug}`` style), or ``None`` for the
    model's default key.
    """

    def get_route_key(self, locale: str, binding_field: str | None = None) -> str: ...
