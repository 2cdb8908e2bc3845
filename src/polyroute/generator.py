"""Localized URL generation.

``LocalizedUrlGenerator`` answers "what is this page's URL in another
locale?" for the current request::

    generator = LocalizedUrlGenerator(request, router, settings.config)
    generator.generate("nl")                   # https://example.test/nl/over-ons
    generator.generate("en", absolute=False)   # /about  (en is omitted)
    generator.generate("nl", [article])        # /nl/artikels/mijn-artikel
    generator.generate("nl", keep_query=False) # drops ?page=2

Parameters are matched to the route's placeholders by POSITION, not by
name: the first parameter fills the first placeholder, and so on. Any
parameter left over once the placeholders run out becomes a query string
parameter. Passing ``{"slug": "b", "id": 1}`` to ``/posts/{id}/{slug}``
therefore yields ``/posts/b/1``.

Parameter values may be:

- plain values, substituted with ``str()``;
- ``UrlRoutable`` models, replaced by their route key for the target locale
  (through the binding field declared as ``{post:slug}``, if any);
- ``ProvidesRouteParameters`` models, expanded into the parameters they
  provide for the target locale;
- a callable taking the target locale and returning the parameters.
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any, TypeAlias

from polyroute.config import LocaleConfig
from polyroute.context import get_locale
from polyroute.errors import RouteNotFound
from polyroute.http.request import Request
from polyroute.routable import ProvidesRouteParameters, UrlRoutable
from polyroute.routing.params import OPTIONAL_PLACEHOLDER
from polyroute.routing.route import Route
from polyroute.routing.router import Router
from polyroute.routing.urls import UrlBuilder

logger = logging.getLogger("polyroute.routing")

Parameters: TypeAlias = (
    Mapping[str | int, Any]
    | Sequence[Any]
    | ProvidesRouteParameters
    | UrlRoutable
    | Callable[[str], Mapping[str | int, Any] | Sequence[Any]]
)


def localized_route_name(router: Router, name: str, locale: str, config: LocaleConfig) -> str:
    """Pick the registered route name to use for *name* in *locale*.

    A locale prefix already on *name* is replaced, so ``nl.about`` and
    ``about`` both resolve to ``en.about`` for ``en``. Falls back to the
    unprefixed name for routes outside localized groups.

    Raises ``RouteNotFound`` if neither variant is registered.
    """
    base = name
    prefix, dot, rest = name.partition(".")
    if dot and config.is_supported_locale(prefix):
        base = rest
    for candidate in (f"{locale}.{base}", base):
        if router.has(candidate):
            return candidate
    raise RouteNotFound(name)


class LocalizedUrlGenerator:
    """Build the URL of the current request in any locale.

    Pure with respect to its inputs: it reads the request, the router and
    the config snapshot, and changes none of them.
    """

    __slots__ = ("_config", "_request", "_route", "_router")

    def __init__(self, request: Request, router: Router, config: LocaleConfig) -> None:
        self._request = request
        self._router = router
        self._config = config
        self._route: Route | None = request.route

    # -- Request classification --

    def is_404(self) -> bool:
        """True when no route matched or the fallback route did."""
        return self._route is None or self._route.fallback

    def is_localized(self) -> bool:
        return self._route is not None and self._config.route_action in self._route.action

    # -- Generation --

    def generate(
        self,
        locale: str | None = None,
        parameters: Parameters | None = None,
        *,
        absolute: bool = True,
        keep_query: bool = True,
    ) -> str:
        """Return the URL of the current request for *locale*.

        Without *locale*, the locale is taken from the URL's slug, then its
        domain, then the active locale. Without *parameters*, the current
        route's own parameter values are reused.
        """
        config = self._config
        url = UrlBuilder.from_url(self._request.url)
        request_query = dict(url.query)

        if locale is None:
            first_slug = url.slugs[0] if url.slugs else None
            locale = (
                config.find_locale_by_slug(first_slug)
                or config.find_locale_by_domain(url.host)
                or get_locale(config.default_locale)
            )

        route = self._route
        if route is not None and not route.fallback:
            normalized = self._normalize(
                route, locale, parameters or dict(self._request.path_params)
            )
            tokens, route_params, query_params = _pair_with_placeholders(route, normalized)
            url.query = _select_query(request_query, query_params, keep_query)

            named = self._named_url(route, locale, route_params, absolute)
            if named is not None:
                qs = url.query_string
                return f"{named}?{qs}" if qs else named

            template = route.path
            for token, value in tokens.items():
                template = template.replace(token, str(value))
            url.path = OPTIONAL_PLACEHOLDER.sub("", template)
        elif not keep_query:
            url.query = {}

        if not config.has_custom_domains and (self.is_404() or self.is_localized()):
            url.slugs = self._update_locale_slug(url.slugs, locale)

        domain = config.find_domain_by_locale(locale)
        if domain:
            url.host = domain

        return url.build(absolute)

    # -- Steps --

    def _normalize(
        self, route: Route, locale: str, parameters: Parameters
    ) -> dict[str | int, Any]:
        """Turn any accepted parameter shape into ordered key/value pairs."""
        if callable(parameters) and not isinstance(
            parameters, (ProvidesRouteParameters, UrlRoutable)
        ):
            parameters = parameters(locale)
        if isinstance(parameters, (ProvidesRouteParameters, UrlRoutable)):
            parameters = [parameters]

        if isinstance(parameters, Mapping):
            items: dict[str | int, Any] = dict(parameters)
        else:
            items = dict(enumerate(parameters))

        models = [v for v in items.values() if isinstance(v, ProvidesRouteParameters)]
        if models:
            items = {}
            for model in models:
                items.update(model.get_route_parameters(locale))

        for key, value in items.items():
            if isinstance(value, UrlRoutable):
                items[key] = value.get_route_key(locale, route.binding_field_for(key))
        return items

    def _named_url(
        self,
        route: Route,
        locale: str,
        params: dict[str, Any],
        absolute: bool,
    ) -> str | None:
        """Build the URL through the locale's named route, or ``None``."""
        if route.name is None:
            return None
        try:
            name = localized_route_name(self._router, route.name, locale, self._config)
        except RouteNotFound:
            logger.debug("No named route for %r in %r, substituting placeholders", route.name, locale)
            return None

        path = self._router.url_for(name, params)
        if not absolute:
            return path

        target = self._router.get(name)
        return self._request.absolute_url(path, target.domain if target else None)

    def _update_locale_slug(self, slugs: list[str], locale: str) -> list[str]:
        """Swap the leading locale slug for the slug of *locale*.

        The omitted locale gets no slug at all.
        """
        config = self._config
        slugs = list(slugs)
        if slugs and config.find_locale_by_slug(slugs[0]) is not None:
            slugs.pop(0)
        if locale != config.omitted_locale:
            slugs.insert(0, config.find_slug_by_locale(locale) or locale)
        return slugs


def _pair_with_placeholders(
    route: Route,
    parameters: Mapping[str | int, Any],
) -> tuple[dict[str, Any], dict[str, Any], dict[str, Any]]:
    """Pair parameters with placeholders left to right.

    Returns ``(token -> value, placeholder name -> value, query params)``.
    """
    placeholders = route.placeholders
    tokens: dict[str, Any] = {}
    route_params: dict[str, Any] = {}
    query: dict[str, Any] = {}
    for index, (key, value) in enumerate(parameters.items()):
        if index < len(placeholders):
            placeholder = placeholders[index]
            tokens[placeholder.token] = value
            route_params[placeholder.name] = value
        else:
            query[str(key)] = value
    return tokens, route_params, query


def _select_query(
    request_query: dict[str, Any],
    query_params: dict[str, Any],
    keep_query: bool,
) -> dict[str, Any]:
    """Explicit query parameters win over the request's own query string."""
    if not keep_query:
        return {}
    if query_params:
        return query_params
    return request_query
