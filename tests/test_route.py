"""Tests for polyroute.routing.route — Route, RouteMatch, PendingRoute."""

import pytest

from polyroute.routing.route import PendingRoute, Route, RouteMatch


def _handler() -> str:
    return "ok"


class TestRoute:
    def test_defaults(self) -> None:
        route = Route(path="/users", handler=_handler, methods=frozenset({"GET"}))
        assert route.name is None
        assert route.action == {}
        assert route.domain is None
        assert route.fallback is False
        assert route.locale_options is None

    def test_frozen(self) -> None:
        route = Route(path="/", handler=_handler, methods=frozenset({"GET"}))
        with pytest.raises(AttributeError):
            route.path = "/other"  # type: ignore[misc]

    def test_parameter_names(self) -> None:
        route = Route("/{category}/{post:slug}/{page?}", _handler, frozenset({"GET"}))
        assert route.parameter_names == ["category", "post", "page"]

    def test_binding_field_by_name_and_position(self) -> None:
        route = Route("/{category}/{post:slug}", _handler, frozenset({"GET"}))
        assert route.binding_field_for("post") == "slug"
        assert route.binding_field_for(1) == "slug"
        assert route.binding_field_for("category") is None
        assert route.binding_field_for(0) is None
        assert route.binding_field_for(5) is None
        assert route.binding_field_for("missing") is None


class TestRouteMatch:
    def test_creation(self) -> None:
        route = Route(path="/users/{id}", handler=_handler, methods=frozenset({"GET"}))
        match = RouteMatch(route=route, path_params={"id": "42"})
        assert match.route is route
        assert match.path_params == {"id": "42"}


class TestPendingRoute:
    def test_methods_default_to_get(self) -> None:
        route = PendingRoute("/about", _handler).to_route()
        assert route.methods == frozenset({"GET"})

    def test_methods_are_uppercased(self) -> None:
        route = PendingRoute("/about", _handler, methods=["get", "post"]).to_route()
        assert route.methods == frozenset({"GET", "POST"})

    def test_action_is_copied(self) -> None:
        pending = PendingRoute("/about", _handler, action={"locale": "nl"})
        route = pending.to_route()
        pending.action["locale"] = "en"
        assert route.action == {"locale": "nl"}
