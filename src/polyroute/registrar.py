"""Localized route registration.

A localized group is a block of ordinary route declarations registered
once per supported locale::

    def routes() -> None:
        @app.route("/about", name="about")
        def about() -> str: ...

    app.localized(routes)

With ``supported_locales=("en", "nl")`` and ``omitted_locale="en"`` this
registers ``nl.about`` at ``/nl/about`` and ``en.about`` at ``/about``.
Each copy carries its locale in the route action under the configured
``route_action`` key, which is what the ``route_action`` detector reads.

With custom domains, copies are not prefixed; each one is constrained to
its locale's domain instead. The omitted locale is always registered
last so the unprefixed copies never shadow prefixed ones.
"""

import logging
from dataclasses import replace

from polyroute.config import LocaleConfig
from polyroute.routing.route import PendingRoute

logger = logging.getLogger("polyroute.routing")


def registration_order(config: LocaleConfig) -> list[str]:
    """Supported locales with the omitted locale moved to the end."""
    locales = [code for code in config.locales if code != config.omitted_locale]
    if config.omitted_locale is not None:
        locales.append(config.omitted_locale)
    return locales


def localize_routes(
    routes: list[PendingRoute],
    config: LocaleConfig,
    options: dict[str, object] | None = None,
) -> list[PendingRoute]:
    """Return one copy of *routes* per supported locale.

    *config* is the effective config of the group (global config plus
    *options*). *options* is stored on each copy so the same overlay is
    active while the copy serves requests.
    """
    localized: list[PendingRoute] = []
    for locale in registration_order(config):
        domain: str | None = None
        prefix = ""
        if config.has_custom_domains:
            domain = config.find_domain_by_locale(locale)
        elif locale != config.omitted_locale:
            prefix = "/" + (config.find_slug_by_locale(locale) or locale)

        for route in routes:
            path = (prefix + route.path.rstrip("/")) or "/"
            localized.append(
                replace(
                    route,
                    path=path,
                    name=f"{locale}.{route.name}" if route.name else None,
                    action={**route.action, config.route_action: locale},
                    domain=domain or route.domain,
                    locale_options=dict(options) if options else None,
                )
            )
        logger.debug("Localized %d route(s) for %r under %r", len(routes), locale, prefix or domain or "/")
    return localized
