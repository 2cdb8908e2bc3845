"""Tests for polyroute.config — LocaleConfig snapshots and scoped settings."""

import asyncio

import pytest

from polyroute.config import DEFAULT_DETECTORS, AppConfig, LocaleConfig, LocaleSettings
from polyroute.errors import ConfigurationError


class TestLocaleConfig:
    def test_defaults(self) -> None:
        cfg = LocaleConfig()

        assert cfg.locales == ("en",)
        assert cfg.omitted_locale is None
        assert cfg.default_locale == "en"
        assert cfg.route_action == "locale"
        assert cfg.detectors == DEFAULT_DETECTORS
        assert cfg.trusted_detectors == ()
        assert cfg.session_key == "locale"
        assert cfg.cookie_name == "locale"
        assert cfg.cookie_max_age == 60 * 60 * 24 * 365

    def test_frozen(self) -> None:
        cfg = LocaleConfig()

        with pytest.raises(AttributeError):
            cfg.default_locale = "nl"  # type: ignore[misc]

    def test_single_locale_string(self) -> None:
        cfg = LocaleConfig(supported_locales="nl")
        assert cfg.locales == ("nl",)

    def test_empty_supported_locales_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="must not be empty"):
            LocaleConfig(supported_locales=())

    def test_unsupported_omitted_locale_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Omitted locale 'de'"):
            LocaleConfig(supported_locales=("en", "nl"), omitted_locale="de")


class TestLocaleShapes:
    def test_plain_codes(self) -> None:
        cfg = LocaleConfig(supported_locales=("en", "nl"))

        assert cfg.has_custom_slugs is False
        assert cfg.has_custom_domains is False
        assert cfg.find_slug_by_locale("nl") == "nl"
        assert cfg.find_locale_by_slug("nl") == "nl"

    def test_custom_slugs(self) -> None:
        cfg = LocaleConfig(supported_locales={"en": "english", "nl": "dutch"})

        assert cfg.locales == ("en", "nl")
        assert cfg.has_custom_slugs is True
        assert cfg.has_custom_domains is False
        assert cfg.find_locale_by_slug("dutch") == "nl"
        assert cfg.find_slug_by_locale("nl") == "dutch"

    def test_slug_map_equal_to_codes_is_not_custom(self) -> None:
        cfg = LocaleConfig(supported_locales={"en": "en", "nl": "nl"})
        assert cfg.has_custom_slugs is False

    def test_custom_domains(self) -> None:
        cfg = LocaleConfig(supported_locales={"en": "english.test", "nl": "dutch.test"})

        assert cfg.has_custom_domains is True
        assert cfg.has_custom_slugs is False
        assert cfg.find_locale_by_domain("dutch.test") == "nl"
        assert cfg.find_domain_by_locale("en") == "english.test"


class TestLookupsNeverRaise:
    def test_unknown_slug(self) -> None:
        cfg = LocaleConfig(supported_locales={"en": "english", "nl": "dutch"})
        assert cfg.find_locale_by_slug("nl") is None
        assert cfg.find_locale_by_slug(None) is None

    def test_unsupported_code_is_not_its_own_slug(self) -> None:
        cfg = LocaleConfig(supported_locales=("en", "nl"))
        assert cfg.find_locale_by_slug("de") is None

    def test_slug_lookup_disabled_with_domains(self) -> None:
        cfg = LocaleConfig(supported_locales={"en": "english.test", "nl": "dutch.test"})
        assert cfg.find_locale_by_slug("nl") is None

    def test_unknown_domain_and_locale(self) -> None:
        cfg = LocaleConfig(supported_locales={"en": "english.test"})
        assert cfg.find_locale_by_domain("other.test") is None
        assert cfg.find_locale_by_domain(None) is None
        assert cfg.find_domain_by_locale("de") is None
        assert cfg.find_slug_by_locale("de") is None

    def test_is_supported_locale(self) -> None:
        cfg = LocaleConfig(supported_locales=("en", "nl"))
        assert cfg.is_supported_locale("nl") is True
        assert cfg.is_supported_locale("de") is False
        assert cfg.is_supported_locale(None) is False


class TestWithOverrides:
    def test_returns_new_snapshot(self) -> None:
        cfg = LocaleConfig(supported_locales=("en",))
        scoped = cfg.with_overrides({"supported_locales": ("en", "nl"), "omitted_locale": "en"})

        assert scoped.locales == ("en", "nl")
        assert scoped.omitted_locale == "en"
        assert cfg.locales == ("en",)

    def test_empty_overrides_return_same_snapshot(self) -> None:
        cfg = LocaleConfig()
        assert cfg.with_overrides({}) is cfg

    def test_unknown_option_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown locale option"):
            LocaleConfig().with_overrides({"supported_languages": ("en",)})

    def test_derived_fields_are_not_options(self) -> None:
        with pytest.raises(ConfigurationError):
            LocaleConfig().with_overrides({"_codes": ("nl",)})


class TestLocaleSettings:
    def test_config_is_global_by_default(self) -> None:
        cfg = LocaleConfig(supported_locales=("en", "nl"))
        settings = LocaleSettings(cfg)

        assert settings.config is cfg
        assert settings.global_config is cfg

    def test_scoped_overlay(self) -> None:
        settings = LocaleSettings(LocaleConfig(supported_locales=("en",)))

        with settings.scoped({"supported_locales": ("en", "nl", "de")}) as scoped:
            assert scoped.locales == ("en", "nl", "de")
            assert settings.config is scoped
            assert settings.global_config.locales == ("en",)

        assert settings.config.locales == ("en",)

    def test_scope_restored_after_error(self) -> None:
        settings = LocaleSettings(LocaleConfig(supported_locales=("en",)))

        with pytest.raises(RuntimeError):
            with settings.scoped({"supported_locales": ("en", "nl")}):
                raise RuntimeError("boom")

        assert settings.config.locales == ("en",)

    def test_nested_scopes_layer_on_global(self) -> None:
        settings = LocaleSettings(LocaleConfig(supported_locales=("en",), default_locale="en"))

        with settings.scoped({"default_locale": "en", "supported_locales": ("en", "nl")}):
            with settings.scoped({"route_action": "lang"}) as inner:
                assert inner.route_action == "lang"
                assert inner.locales == ("en",)
            assert settings.config.locales == ("en", "nl")

    def test_empty_scope_yields_current(self) -> None:
        settings = LocaleSettings()
        with settings.scoped(None) as cfg:
            assert cfg is settings.config

    async def test_scopes_are_task_local(self) -> None:
        settings = LocaleSettings(LocaleConfig(supported_locales=("en",)))
        seen: dict[str, tuple[str, ...]] = {}
        entered = asyncio.Event()
        release = asyncio.Event()

        async def scoped_task() -> None:
            with settings.scoped({"supported_locales": ("en", "nl")}):
                entered.set()
                await release.wait()
                seen["scoped"] = settings.config.locales

        async def plain_task() -> None:
            await entered.wait()
            seen["plain"] = settings.config.locales
            release.set()

        await asyncio.gather(scoped_task(), plain_task())

        assert seen == {"scoped": ("en", "nl"), "plain": ("en",)}


class TestAppConfig:
    def test_defaults(self) -> None:
        cfg = AppConfig()
        assert cfg.debug is False
        assert cfg.locale == LocaleConfig()

    def test_override(self) -> None:
        locale = LocaleConfig(supported_locales=("en", "nl"))
        cfg = AppConfig(debug=True, locale=locale)
        assert cfg.debug is True
        assert cfg.locale is locale
