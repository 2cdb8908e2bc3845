"""Compiled router with trie-based path matching.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes. Besides matching, the router is
the named-URL primitive: ``url_for`` builds a path for a route name and
raises ``RouteNotFound`` when the name is unknown.
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlencode

from polyroute.errors import (
    ConfigurationError,
    MethodNotAllowed,
    NotFound,
    RouteNotFound,
    UrlGenerationError,
)
from polyroute.routing.params import (
    CONVERTERS,
    PLACEHOLDER,
    parse_placeholder,
    placeholder_from_match,
)
from polyroute.routing.route import PathSegment, Route, RouteMatch


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"          -> [PathSegment("users")]
        "/users/{id:int}" -> [..., PathSegment("{id:int}", is_param=True, param_type="int")]
        "/posts/{post:slug}" -> [..., PathSegment("{post:slug}", is_param=True)]
        "/archive/{page?}"   -> [..., PathSegment("{page?}", is_param=True, optional=True)]
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("<") and part.endswith(">"):
            msg = (
                f"Route path {path!r} uses <param> placeholders. "
                "Use {param} instead, e.g. '/users/{id}'."
            )
            raise ConfigurationError(msg)
        if part.startswith("{") and part.endswith("}"):
            placeholder = parse_placeholder(part)
            if placeholder is None:
                msg = f"Invalid placeholder {part!r} in route path {path!r}."
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(
                    value=part,
                    is_param=True,
                    param_name=placeholder.name,
                    param_type=placeholder.param_type,
                    optional=placeholder.optional,
                )
            )
        else:
            segments.append(PathSegment(value=part))
    return segments


def build_path(route: Route, params: Mapping[str, Any]) -> str:
    """Substitute *params* into the route template by placeholder name.

    Optional placeholders without a value are dropped. Parameters that do
    not match a placeholder are appended as query string parameters.
    Raises ``UrlGenerationError`` if a required placeholder has no value.
    """
    remaining = {str(key): value for key, value in params.items()}

    def substitute(match: re.Match[str]) -> str:
        placeholder = placeholder_from_match(match)
        if placeholder.name in remaining:
            safe = "/" if placeholder.param_type == "path" else ""
            return quote(str(remaining.pop(placeholder.name)), safe=safe)
        if placeholder.optional:
            return ""
        msg = (
            f"Missing required parameter {placeholder.name!r} "
            f"for route {route.name or route.path!r}."
        )
        raise UrlGenerationError(msg)

    filled = PLACEHOLDER.sub(substitute, route.path)
    path = "/" + "/".join(part for part in filled.split("/") if part)
    if remaining:
        path = f"{path}?{urlencode(remaining)}"
    return path


class _TrieNode:
    """A node in the route trie. Mutable during compilation only."""

    __slots__ = ("catch_all_route", "children", "param_child", "routes_by_method")

    def __init__(self) -> None:
        # Static segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Single parameter child (only one param pattern per level)
        self.param_child: _ParamEdge | None = None
        # Catch-all route (path converter)
        self.catch_all_route: _CatchAllEdge | None = None
        # Routes at this node, keyed by HTTP method; several routes may
        # share a method when they are constrained to different domains
        self.routes_by_method: dict[str, list[Route]] = {}


@dataclass(slots=True)
class _ParamEdge:
    """A parameter edge in the trie."""

    param_type: str
    regex: re.Pattern[str]
    node: _TrieNode


@dataclass(slots=True)
class _CatchAllEdge:
    """A catch-all (path) edge — consumes remaining path."""

    route_by_method: dict[str, list[Route]] = field(default_factory=dict)


def _register(table: dict[str, list[Route]], route: Route) -> None:
    for method in route.methods:
        table.setdefault(method, []).append(route)


class Router:
    """Compiled router with trie-based path matching.

    Usage::

        router = Router()
        router.add(Route("/users/{id:int}", handler, frozenset({"GET"}), name="users.show"))
        router.compile()
        match = router.match("GET", "/users/42")
        router.url_for("users.show", {"id": 42})  # "/users/42"
    """

    __slots__ = ("_compiled", "_fallback", "_named", "_root")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._named: dict[str, Route] = {}
        self._fallback: Route | None = None
        self._compiled = False

    def add(self, route: Route) -> None:
        """Add a route to the router. Must be called before compile()."""
        if self._compiled:
            msg = "Cannot add routes after compilation."
            raise RuntimeError(msg)

        if route.name is not None:
            self._named[route.name] = route

        if route.fallback:
            self._fallback = route
            return

        segments = parse_path(route.path)
        node = self._root

        for i, seg in enumerate(segments):
            # Trailing optional placeholders: the route also ends here
            if seg.optional and all(s.optional for s in segments[i:]):
                _register(node.routes_by_method, route)

            if seg.is_param and seg.param_type == "path":
                # Catch-all: consumes rest of path, must be last segment
                if node.catch_all_route is None:
                    node.catch_all_route = _CatchAllEdge()
                _register(node.catch_all_route.route_by_method, route)
                return

            if seg.is_param:
                if node.param_child is None:
                    pattern, _ = CONVERTERS[seg.param_type]
                    node.param_child = _ParamEdge(
                        param_type=seg.param_type,
                        regex=re.compile(f"^{pattern}$"),
                        node=_TrieNode(),
                    )
                node = node.param_child.node
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        _register(node.routes_by_method, route)

    @property
    def routes(self) -> list[Route]:
        """Return all registered routes, including the fallback route."""
        seen: set[int] = set()
        result: list[Route] = []
        self._collect_routes(self._root, seen, result)
        if self._fallback is not None:
            result.append(self._fallback)
        return result

    def _collect_routes(self, node: _TrieNode, seen: set[int], result: list[Route]) -> None:
        """Recursively collect routes from the trie."""
        tables = [node.routes_by_method]
        if node.catch_all_route is not None:
            tables.append(node.catch_all_route.route_by_method)
        for table in tables:
            for routes in table.values():
                for route in routes:
                    if id(route) not in seen:
                        seen.add(id(route))
                        result.append(route)

        for child in node.children.values():
            self._collect_routes(child, seen, result)

        if node.param_child is not None:
            self._collect_routes(node.param_child.node, seen, result)

    @property
    def fallback(self) -> Route | None:
        return self._fallback

    def compile(self) -> None:
        """Freeze the router. No more routes can be added."""
        self._compiled = True

    # -- Named routes --

    def has(self, name: str) -> bool:
        """True if a route is registered under *name*."""
        return name in self._named

    def get(self, name: str) -> Route | None:
        return self._named.get(name)

    def url_for(self, name: str, params: Mapping[str, Any] | None = None) -> str:
        """Build the path (plus query string) of the route named *name*.

        Raises ``RouteNotFound`` if no route has that name.
        """
        route = self._named.get(name)
        if route is None:
            raise RouteNotFound(name)
        return build_path(route, params or {})

    # -- Matching --

    def match(self, method: str, path: str, host: str | None = None) -> RouteMatch:
        """Match a request against compiled routes.

        Routes constrained to a domain only match when *host* equals it.
        Falls back to the fallback route (if any) when nothing matches.

        Raises ``NotFound`` if no route matches the path.
        Raises ``MethodNotAllowed`` if the path matches but the method doesn't.
        """
        parts = [p for p in path.strip("/").split("/") if p]
        result = self._match_node(self._root, parts, 0, [])

        if result is not None:
            table, values = result
            candidates = table.get(method)
            if candidates:
                route = _select_for_host(candidates, host)
                if route is not None:
                    return RouteMatch(route=route, path_params=_name_params(route, values))
            elif self._fallback is None or method not in self._fallback.methods:
                raise MethodNotAllowed(frozenset(table))

        if self._fallback is not None and method in self._fallback.methods:
            return RouteMatch(route=self._fallback, path_params={})

        raise NotFound(f"No route matches {method} {path!r}")

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        values: list[str],
    ) -> tuple[dict[str, list[Route]], list[str]] | None:
        """Recursively match path parts against the trie."""
        # All parts consumed, return this node's routes
        if index == len(parts):
            if node.routes_by_method:
                return node.routes_by_method, values
            return None

        part = parts[index]

        # 1. Try static child first (exact match)
        if part in node.children:
            result = self._match_node(node.children[part], parts, index + 1, values)
            if result is not None:
                return result

        # 2. Try parameter child
        if node.param_child is not None and node.param_child.regex.match(part):
            result = self._match_node(node.param_child.node, parts, index + 1, [*values, part])
            if result is not None:
                return result

        # 3. Try catch-all
        if node.catch_all_route is not None:
            remaining = "/".join(parts[index:])
            return node.catch_all_route.route_by_method, [*values, remaining]

        return None


def _select_for_host(routes: list[Route], host: str | None) -> Route | None:
    """Prefer a route bound to *host*, then an unconstrained one."""
    for route in routes:
        if route.domain is not None and route.domain == host:
            return route
    for route in routes:
        if route.domain is None:
            return route
    return None


def _name_params(route: Route, values: list[str]) -> dict[str, str]:
    """Pair captured values with the route's own placeholder names, in order."""
    return dict(zip(route.parameter_names, values, strict=False))
