"""Route and RouteMatch frozen dataclasses."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from polyroute.routing.params import Placeholder, find_placeholders


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:   ``/users``        (is_param=False)
    Param:    ``/{id}``         (is_param=True, param_name="id")
    Typed:    ``/{id:int}``     (is_param=True, param_type="int")
    Optional: ``/{page?}``      (is_param=True, optional=True)
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"
    optional: bool = False


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created during app setup, compiled into the router at freeze time.

    ``action`` carries route metadata; a localized route stores its locale
    under the configured ``route_action`` key. ``locale_options`` holds the
    scoped locale configuration of the group the route was registered in.
    """

    path: str
    handler: Callable[..., Any]
    methods: frozenset[str]
    name: str | None = None
    action: Mapping[str, Any] = field(default_factory=dict)
    domain: str | None = None
    fallback: bool = False
    locale_options: Mapping[str, Any] | None = None

    @property
    def placeholders(self) -> list[Placeholder]:
        """Placeholders of the path template, left to right."""
        return find_placeholders(self.path)

    @property
    def parameter_names(self) -> list[str]:
        return [p.name for p in self.placeholders]

    def binding_field_for(self, key: str | int) -> str | None:
        """The model attribute declared for parameter *key* (``{post:slug}``).

        Integer keys are positions in the template.
        """
        placeholders = self.placeholders
        if isinstance(key, int):
            return placeholders[key].binding_field if 0 <= key < len(placeholders) else None
        for placeholder in placeholders:
            if placeholder.name == key:
                return placeholder.binding_field
        return None


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    path_params: dict[str, str]


@dataclass(slots=True)
class PendingRoute:
    """A route waiting to be compiled."""

    path: str
    handler: Callable[..., Any]
    methods: list[str] | None = None
    name: str | None = None
    action: dict[str, Any] = field(default_factory=dict)
    domain: str | None = None
    fallback: bool = False
    locale_options: Mapping[str, Any] | None = None

    def to_route(self) -> Route:
        return Route(
            path=self.path,
            handler=self.handler,
            methods=frozenset(m.upper() for m in (self.methods or ["GET"])),
            name=self.name,
            action=dict(self.action),
            domain=self.domain,
            fallback=self.fallback,
            locale_options=self.locale_options,
        )
