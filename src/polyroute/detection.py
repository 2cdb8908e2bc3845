"""Locale detection — independent detectors run as an ordered chain.

A detector is a plain function ``(request, config) -> locale | None``
that reads one signal from the request. Detectors never raise for
missing signals; they return ``None`` and the chain moves on.

The chain asks each detector in order and keeps the first candidate that
is a supported locale. Detectors listed in ``trusted_detectors`` skip the
support check, and the ``app`` detector is always trusted because it is
the catch-all::

    chain = LocaleDetectorChain.from_config(config)
    locale = chain.detect(request, config)

Built-in detectors, in default order:

    route_action    locale declared on the matched route
    path            first path segment (through custom slugs)
    omitted_locale  the omitted locale, for unprefixed paths
    session         value stored in the session
    cookie          value stored in the locale cookie
    domain          locale bound to the request host
    user            attribute on the authenticated principal
    browser         best match from Accept-Language
    app             the configured default locale
"""

from __future__ import annotations

import logging
from typing import TypeAlias
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from polyroute.config import DetectorRef, LocaleConfig
from polyroute.errors import ConfigurationError
from polyroute.http.request import Request
from polyroute.middleware.sessions import get_session

logger = logging.getLogger("polyroute.locale")

Detector: TypeAlias = Callable[[Request, LocaleConfig], str | None]


# -- Detectors --


def detect_route_action(request: Request, config: LocaleConfig) -> str | None:
    if request.route is None:
        return None
    return request.route.action.get(config.route_action)


def detect_path(request: Request, config: LocaleConfig) -> str | None:
    slug = next((part for part in request.path.split("/") if part), None)
    if slug is None:
        return None
    if config.has_custom_slugs:
        return config.find_locale_by_slug(slug)
    return slug


def detect_omitted_locale(request: Request, config: LocaleConfig) -> str | None:
    """The omitted locale owns every path without a locale slug."""
    if config.has_custom_domains:
        return None
    return config.omitted_locale


def detect_session(request: Request, config: LocaleConfig) -> str | None:
    try:
        session = get_session()
    except LookupError:
        return None
    return session.get(config.session_key)


def detect_cookie(request: Request, config: LocaleConfig) -> str | None:
    return request.cookies.get(config.cookie_name) or None


def detect_domain(request: Request, config: LocaleConfig) -> str | None:
    return config.find_locale_by_domain(request.host)


def detect_user(request: Request, config: LocaleConfig) -> str | None:
    """Read the locale preference of the authenticated principal.

    Principals without the attribute (or key, for mapping principals)
    simply give no signal.
    """
    user = request.user
    if user is None:
        return None
    if isinstance(user, Mapping):
        value = user.get(config.user_attribute)
    else:
        value = getattr(user, config.user_attribute, None)
    return value or None


def detect_browser(request: Request, config: LocaleConfig) -> str | None:
    """Best supported match from the ``Accept-Language`` header.

    Region-qualified tags fall back to their primary subtag, so ``nl-BE``
    matches a supported ``nl``.
    """
    supported = {code.lower(): code for code in config.locales}
    for tag in parse_accept_language(request.accept_language):
        for candidate in (tag, tag.split("-", 1)[0]):
            match = supported.get(candidate.lower())
            if match is not None:
                return match
    return None


def detect_app_default(request: Request, config: LocaleConfig) -> str | None:
    return config.default_locale


DETECTORS: dict[str, Detector] = {
    "route_action": detect_route_action,
    "path": detect_path,
    "omitted_locale": detect_omitted_locale,
    "session": detect_session,
    "cookie": detect_cookie,
    "domain": detect_domain,
    "user": detect_user,
    "browser": detect_browser,
    "app": detect_app_default,
}


def parse_accept_language(header: str) -> list[str]:
    """Language tags from an ``Accept-Language`` header, best first.

    Entries without ``q`` weigh 1.0. Ties keep header order. Entries with
    ``q=0`` and the ``*`` wildcard are dropped.

        >>> parse_accept_language("de,fr;q=0.4,nl-BE;q=0.8")
        ['de', 'nl-BE', 'fr']
    """
    weighted: list[tuple[str, float]] = []
    for entry in header.split(","):
        tag, _, params = entry.partition(";")
        tag = tag.strip()
        if not tag or tag == "*":
            continue
        weight = 1.0
        for param in params.split(";"):
            key, _, value = param.partition("=")
            if key.strip().lower() == "q":
                try:
                    weight = float(value)
                except ValueError:
                    weight = 0.0
        if weight > 0:
            weighted.append((tag, weight))
    # sort() is stable, so equal weights stay in header order
    weighted.sort(key=lambda item: item[1], reverse=True)
    return [tag for tag, _ in weighted]


# -- Chain --


def _identify(ref: DetectorRef) -> tuple[str, Detector]:
    if isinstance(ref, str):
        try:
            return ref, DETECTORS[ref]
        except KeyError:
            msg = f"Unknown locale detector {ref!r}. Known detectors: {', '.join(DETECTORS)}"
            raise ConfigurationError(msg) from None
    return getattr(ref, "__name__", repr(ref)), ref


@dataclass(frozen=True, slots=True)
class LocaleDetectorChain:
    """Ordered detectors with a per-detector trust flag."""

    detectors: tuple[tuple[str, Detector], ...]
    trusted: frozenset[str] = frozenset({"app"})

    @classmethod
    def from_config(cls, config: LocaleConfig) -> LocaleDetectorChain:
        """Build the chain from ``config.detectors`` and ``config.trusted_detectors``."""
        detectors = tuple(_identify(ref) for ref in config.detectors)
        trusted = {_identify(ref)[0] for ref in config.trusted_detectors}
        return cls(detectors=detectors, trusted=frozenset(trusted | {"app"}))

    def detect(self, request: Request, config: LocaleConfig) -> str:
        """Return the first acceptable candidate, else the default locale."""
        for name, detector in self.detectors:
            candidate = detector(request, config)
            if candidate is None:
                continue
            if name in self.trusted or config.is_supported_locale(candidate):
                logger.debug("Locale %r detected by %s", candidate, name)
                return candidate
            logger.debug("Ignoring unsupported locale %r from %s", candidate, name)
        return config.default_locale
