"""Route introspection for templates and handlers.

``RouteHelper`` answers questions about the current request's route::

    helper = RouteHelper(request, router, config)
    helper.is_localized()                         # route registered in a localized group?
    helper.is_localized("about")                  # current route is <locale>.about?
    helper.is_localized(["blog.*", "news"], "nl") # nl.blog.<anything> or nl.news?
    helper.has_localized("contact")               # is <active locale>.contact registered?
"""

from collections.abc import Iterable
from fnmatch import fnmatchcase

from polyroute.config import LocaleConfig
from polyroute.context import get_locale
from polyroute.http.request import Request
from polyroute.routing.router import Router


class RouteHelper:
    __slots__ = ("_config", "_request", "_router")

    def __init__(self, request: Request, router: Router, config: LocaleConfig) -> None:
        self._request = request
        self._router = router
        self._config = config

    def is_fallback(self) -> bool:
        """True when the request hit the fallback route."""
        route = self._request.route
        return route is not None and route.fallback

    def is_localized(
        self,
        patterns: str | Iterable[str] | None = None,
        locales: str | Iterable[str] = "*",
    ) -> bool:
        """Check whether the current route is a localized route.

        Without *patterns*, any route carrying the locale marker counts.
        With *patterns*, the route name must match ``"{locale}.{pattern}"``
        for some pattern and some locale in *locales*. ``"*"`` stands for
        every supported locale; patterns may use ``*`` wildcards.
        """
        route = self._request.route
        if route is None:
            return False
        if patterns is None:
            return self._config.route_action in route.action
        if route.name is None:
            return False

        if isinstance(patterns, str):
            patterns = [patterns]
        if locales == "*":
            locales = self._config.locales
        elif isinstance(locales, str):
            locales = [locales]

        locales = list(locales)
        return any(
            fnmatchcase(route.name, f"{locale}.{pattern}")
            for pattern in patterns
            for locale in locales
        )

    def has_localized(self, name: str, locale: str | None = None) -> bool:
        """True if a route named ``"{locale}.{name}"`` is registered.

        *locale* defaults to the active locale.
        """
        locale = locale or get_locale(self._config.default_locale)
        return self._router.has(f"{locale}.{name}")
