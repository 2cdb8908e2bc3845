"""Locale configuration.

``LocaleConfig`` is a frozen dataclass: immutable after creation,
IDE-autocompletable, no string-key dict lookups. Every lookup is a pure
function of the snapshot and answers ``None``/``False`` for unknown
values instead of raising.

``LocaleSettings`` pairs the global snapshot with a ContextVar overlay so
a group of routes can override any option without touching the rest of
the application. ``AppConfig`` carries the global snapshot::

    settings = LocaleSettings(LocaleConfig(supported_locales=("en", "nl")))

    with settings.scoped({"supported_locales": ("en", "nl", "de")}):
        settings.config.supported_locales  # ("en", "nl", "de")

    settings.config.supported_locales  # ("en", "nl")
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, fields, replace
from typing import Any, TypeAlias

from polyroute.errors import ConfigurationError

# A detector is referenced by its registered name or passed as a callable.
DetectorRef: TypeAlias = str | Callable[..., str | None]

DEFAULT_DETECTORS: tuple[str, ...] = (
    "route_action",
    "path",
    "omitted_locale",
    "session",
    "cookie",
    "domain",
    "user",
    "browser",
    "app",
)


@dataclass(frozen=True, slots=True)
class LocaleConfig:
    """Locale configuration snapshot. Immutable after creation.

    ``supported_locales`` accepts three shapes::

        LocaleConfig(supported_locales=("en", "nl"))
        LocaleConfig(supported_locales={"en": "english", "nl": "dutch"})
        LocaleConfig(supported_locales={"en": "english.test", "nl": "dutch.test"})

    Mapping values containing a ``.`` are domains, anything else is a slug.
    """

    supported_locales: Sequence[str] | Mapping[str, str] = ("en",)
    omitted_locale: str | None = None
    default_locale: str = "en"

    # Route metadata key that marks a route as localized
    route_action: str = "locale"

    # Detection
    detectors: tuple[DetectorRef, ...] = DEFAULT_DETECTORS
    trusted_detectors: tuple[DetectorRef, ...] = ()
    user_attribute: str = "locale"

    # Persistence
    session_key: str = "locale"
    cookie_name: str = "locale"
    cookie_max_age: int = 60 * 60 * 24 * 365

    # Derived from supported_locales in __post_init__
    _codes: tuple[str, ...] = field(init=False, repr=False, compare=False)
    _slugs: dict[str, str] = field(init=False, repr=False, compare=False)
    _domains: dict[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        locales = self.supported_locales
        if isinstance(locales, str):
            locales = (locales,)
            object.__setattr__(self, "supported_locales", locales)

        slugs: dict[str, str] = {}
        domains: dict[str, str] = {}
        if isinstance(locales, Mapping):
            codes = tuple(locales)
            for code, value in locales.items():
                if value and "." in value:
                    domains[code] = value
                elif value:
                    slugs[code] = value
        else:
            codes = tuple(locales)

        if not codes:
            msg = "LocaleConfig.supported_locales must not be empty."
            raise ConfigurationError(msg)
        if self.omitted_locale is not None and self.omitted_locale not in codes:
            msg = (
                f"Omitted locale {self.omitted_locale!r} is not one of the "
                f"supported locales: {', '.join(codes)}"
            )
            raise ConfigurationError(msg)

        object.__setattr__(self, "_codes", codes)
        object.__setattr__(self, "_slugs", slugs)
        object.__setattr__(self, "_domains", domains)

    # -- Derived flags --

    @property
    def locales(self) -> tuple[str, ...]:
        """Supported locale codes in configuration order."""
        return self._codes

    @property
    def has_custom_slugs(self) -> bool:
        """True if any locale uses a path slug that differs from its code."""
        return any(slug != code for code, slug in self._slugs.items())

    @property
    def has_custom_domains(self) -> bool:
        """True if locales are served from their own domains."""
        return bool(self._domains)

    # -- Lookups --

    def is_supported_locale(self, locale: str | None) -> bool:
        return locale is not None and locale in self._codes

    def find_locale_by_slug(self, slug: str | None) -> str | None:
        """Reverse lookup of a path slug.

        Without custom slugs every supported code is its own slug.
        Returns ``None`` for unknown slugs and when domains are in use.
        """
        if slug is None or self.has_custom_domains:
            return None
        for code in self._codes:
            if self._slugs.get(code, code) == slug:
                return code
        return None

    def find_slug_by_locale(self, locale: str | None) -> str | None:
        if not self.is_supported_locale(locale):
            return None
        return self._slugs.get(locale, locale)

    def find_locale_by_domain(self, domain: str | None) -> str | None:
        if not domain:
            return None
        for code, value in self._domains.items():
            if value == domain:
                return code
        return None

    def find_domain_by_locale(self, locale: str | None) -> str | None:
        if locale is None:
            return None
        return self._domains.get(locale)

    # -- Overrides --

    def with_overrides(self, options: Mapping[str, Any]) -> LocaleConfig:
        """Return a new snapshot with *options* applied.

        Raises ``ConfigurationError`` for option names that are not fields.
        """
        if not options:
            return self
        known = {f.name for f in fields(self) if f.init}
        unknown = sorted(set(options) - known)
        if unknown:
            msg = f"Unknown locale option(s): {', '.join(unknown)}"
            raise ConfigurationError(msg)
        return replace(self, **options)


# -- Scoped configuration --


class LocaleSettings:
    """The global ``LocaleConfig`` plus a request/registration-scoped overlay.

    The overlay lives in a ContextVar, so it is task-local under asyncio
    and thread-local under threads. Overlays never mutate the global
    snapshot; leaving a ``scoped()`` block restores the previous one.
    """

    __slots__ = ("_global", "_overlay")

    def __init__(self, config: LocaleConfig | None = None) -> None:
        self._global = config or LocaleConfig()
        self._overlay: ContextVar[LocaleConfig | None] = ContextVar(
            "polyroute_locale_config", default=None
        )

    @property
    def global_config(self) -> LocaleConfig:
        return self._global

    @property
    def config(self) -> LocaleConfig:
        """The effective snapshot: the active overlay, else the global one."""
        return self._overlay.get() or self._global

    @contextmanager
    def scoped(self, overrides: Mapping[str, Any] | None) -> Iterator[LocaleConfig]:
        """Apply *overrides* on top of the global config inside the block.

        Overrides always layer on the global snapshot, not on an enclosing
        overlay. ``None`` or an empty mapping yields the current config.
        """
        if not overrides:
            yield self.config
            return
        scoped = self._global.with_overrides(overrides)
        token = self._overlay.set(scoped)
        try:
            yield scoped
        finally:
            self._overlay.reset(token)


# -- Application --


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(
            debug=True,
            locale=LocaleConfig(supported_locales=("en", "nl"), omitted_locale="en"),
        )
    """

    debug: bool = False
    locale: LocaleConfig = field(default_factory=LocaleConfig)
