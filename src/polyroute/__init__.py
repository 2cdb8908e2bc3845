"""Polyroute — serve one route tree in many locales.

Locale-prefixed paths (``/nl/over-ons``), locale domains, an omitted
default locale at the root, a detector chain that resolves the request
locale, and localized URL generation for the current page or any named
route.

Basic usage::

    from polyroute import App, AppConfig, LocaleConfig, SetLocale

    app = App(AppConfig(locale=LocaleConfig(
        supported_locales=("en", "nl"),
        omitted_locale="en",
    )))
    app.add_middleware(SetLocale(app.locales))

    def pages() -> None:
        @app.route("/about", name="about")
        def about() -> str:
            return f'<a href="{app.localized_url("nl")}">Nederlands</a>'

    app.localized(pages)
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "HTTPError",
    "LocaleConfig",
    "LocaleDetectorChain",
    "LocaleSettings",
    "LocalizedUrlGenerator",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "PolyrouteError",
    "ProvidesRouteParameters",
    "Redirect",
    "Request",
    "Response",
    "RouteHelper",
    "RouteNotFound",
    "SetLocale",
    "UrlRoutable",
    "get_locale",
    "get_request",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import polyroute`` fast while providing a clean top-level API.
    """
    if name == "App":
        from polyroute.app import App

        return App

    if name in ("AppConfig", "LocaleConfig", "LocaleSettings"):
        from polyroute import config as _config

        return getattr(_config, name)

    if name == "Request":
        from polyroute.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from polyroute.http import response as _resp

        return getattr(_resp, name)

    if name in ("Middleware", "Next"):
        from polyroute.middleware import protocol as _mw

        return getattr(_mw, name)

    if name == "SetLocale":
        from polyroute.middleware.locale import SetLocale

        return SetLocale

    if name == "LocaleDetectorChain":
        from polyroute.detection import LocaleDetectorChain

        return LocaleDetectorChain

    if name == "LocalizedUrlGenerator":
        from polyroute.generator import LocalizedUrlGenerator

        return LocalizedUrlGenerator

    if name == "RouteHelper":
        from polyroute.helpers import RouteHelper

        return RouteHelper

    if name in ("ProvidesRouteParameters", "UrlRoutable"):
        from polyroute import routable as _routable

        return getattr(_routable, name)

    if name in ("get_locale", "get_request"):
        from polyroute import context as _ctx

        return getattr(_ctx, name)

    if name in (
        "ConfigurationError",
        "HTTPError",
        "MethodNotAllowed",
        "NotFound",
        "PolyrouteError",
        "RouteNotFound",
    ):
        from polyroute import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
