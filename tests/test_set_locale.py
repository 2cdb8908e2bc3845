"""Tests for SetLocale — locale detection end to end through the app."""

from dataclasses import dataclass, replace

from itsdangerous import URLSafeTimedSerializer

from polyroute.app import App
from polyroute.config import AppConfig, LocaleConfig
from polyroute.context import get_locale
from polyroute.http.request import Request
from polyroute.middleware.locale import SetLocale
from polyroute.middleware.protocol import Next
from polyroute.middleware.sessions import SessionConfig, SessionMiddleware, get_session
from polyroute.testing import TestClient, assert_locale_cookie, response_cookie

SECRET = "test-secret"


def _app(*, sessions: bool = True, user: object = None, **options: object) -> App:
    app = App(AppConfig(locale=LocaleConfig(**options)))
    if sessions:
        app.add_middleware(SessionMiddleware(SessionConfig(secret_key=SECRET)))
    if user is not None:
        app.add_middleware(_acting_as(user))
    app.add_middleware(SetLocale(app.locales))
    return app


def _session_data(response) -> dict:
    cookie = response_cookie(response, "polyroute_session")
    assert cookie is not None, "Response sets no session cookie"
    serializer = URLSafeTimedSerializer(SECRET, salt="polyroute.session")
    return serializer.loads(cookie)


def _current_locale() -> str:
    return get_locale() or ""


@dataclass
class User:
    locale: str | None = None


@dataclass
class Anonymous:
    name: str = "guest"


def _acting_as(user: object):
    async def login(request: Request, next: Next):
        return await next(replace(request, user=user))

    return login


class TestDetectionSources:
    async def test_route_action(self) -> None:
        app = _app(supported_locales=("en", "nl"))
        app.route("/some/route", action={"locale": "nl"})(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/some/route")

        assert response.text == "nl"
        assert _session_data(response)["locale"] == "nl"
        assert_locale_cookie(response, "nl")

    async def test_url_slug(self) -> None:
        app = _app(supported_locales=("en", "nl"))
        app.route("/nl/some/route")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/nl/some/route")

        assert response.text == "nl"
        assert_locale_cookie(response, "nl")

    async def test_custom_slug(self) -> None:
        app = _app(supported_locales={"en": "english", "nl": "dutch"})
        app.route("/dutch/some/route")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/dutch/some/route")

        assert response.text == "nl"
        assert_locale_cookie(response, "nl")

    async def test_custom_domain(self) -> None:
        app = _app(supported_locales={"en": "english.test", "nl": "dutch.test"})
        app.route("/some/route")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("http://dutch.test/some/route")

        assert response.text == "nl"
        assert_locale_cookie(response, "nl")

    async def test_omitted_locale(self) -> None:
        app = _app(supported_locales=("en", "nl"), omitted_locale="nl")
        app.route("/some/route")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/some/route")

        assert response.text == "nl"
        assert_locale_cookie(response, "nl")

    async def test_authenticated_user(self) -> None:
        app = _app(supported_locales=("en", "nl"), user=User(locale="nl"))
        app.route("/some/route")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/some/route")

        assert response.text == "nl"

    async def test_user_without_locale_attribute(self) -> None:
        app = _app(supported_locales=("en", "nl"), default_locale="en", user=Anonymous())
        app.route("/some/route")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/some/route")

        assert response.text == "en"
        assert_locale_cookie(response, "en")

    async def test_user_mapping(self) -> None:
        app = _app(
            supported_locales=("en", "nl"),
            user_attribute="language",
            user={"language": "nl"},
        )
        app.route("/some/route")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/some/route")

        assert response.text == "nl"

    async def test_session(self) -> None:
        app = _app(supported_locales=("en", "nl"))

        @app.route("/remember")
        def remember():
            get_session()["locale"] = "nl"
            return "ok"

        app.route("/some/route")(_current_locale)

        async with TestClient(app) as client:
            first = await client.get("/remember")
            session_cookie = response_cookie(first, "polyroute_session")
            response = await client.get(
                "/some/route", cookies={"polyroute_session": session_cookie}
            )

        assert response.text == "nl"
        assert _session_data(response)["locale"] == "nl"

    async def test_cookie(self) -> None:
        app = _app(supported_locales=("en", "nl"))
        app.route("/some/route")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/some/route", cookies={"locale": "nl"})

        assert response.text == "nl"
        assert_locale_cookie(response, "nl")

    async def test_browser(self) -> None:
        app = _app(supported_locales=("en", "nl"))
        app.route("/some/route")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/some/route", headers={"Accept-Language": "nl"})

        assert response.text == "nl"

    async def test_browser_best_match(self) -> None:
        app = _app(supported_locales=("en", "nl", "fr"))
        app.route("/some/route")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get(
                "/some/route", headers={"Accept-Language": "de,fr;q=0.4,nl-BE;q=0.8"}
            )

        assert response.text == "nl"

    async def test_app_default(self) -> None:
        app = _app(supported_locales=("en", "nl"), default_locale="nl")
        app.route("/some/route")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/some/route")

        assert response.text == "nl"
        assert_locale_cookie(response, "nl")


class TestPriority:
    async def test_url_beats_cookie(self) -> None:
        app = _app(supported_locales=("en", "nl"))
        app.route("/nl/page")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/nl/page", cookies={"locale": "en"})

        assert response.text == "nl"

    async def test_cookie_beats_browser(self) -> None:
        app = _app(supported_locales=("en", "nl"))
        app.route("/page")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get(
                "/page", cookies={"locale": "nl"}, headers={"Accept-Language": "en"}
            )

        assert response.text == "nl"

    async def test_unsupported_cookie_is_skipped(self) -> None:
        app = _app(supported_locales=("en", "nl"))
        app.route("/page")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get(
                "/page", cookies={"locale": "de"}, headers={"Accept-Language": "nl"}
            )

        assert response.text == "nl"

    async def test_trusted_detector_may_set_any_locale(self) -> None:
        app = _app(
            supported_locales=("en",),
            default_locale="en",
            trusted_detectors=("route_action",),
        )
        app.route("/some/route", action={"locale": "nl"})(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/some/route")

        assert response.text == "nl"
        assert _session_data(response)["locale"] == "nl"
        assert_locale_cookie(response, "nl")

    async def test_untrusted_route_action_must_be_supported(self) -> None:
        app = _app(supported_locales=("en",), default_locale="en")
        app.route("/some/route", action={"locale": "nl"})(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/some/route")

        assert response.text == "en"


class TestPersistence:
    async def test_without_sessions_only_the_cookie_is_written(self) -> None:
        app = _app(sessions=False, supported_locales=("en", "nl"))
        app.route("/nl/page")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/nl/page")

        assert response.text == "nl"
        assert response_cookie(response, "polyroute_session") is None
        assert_locale_cookie(response, "nl")

    async def test_locale_cookie_written_once(self) -> None:
        app = _app(sessions=False, supported_locales=("en", "nl"))
        app.add_middleware(SetLocale(app.locales))
        app.route("/nl/page")(_current_locale)

        async with TestClient(app) as client:
            response = await client.get("/nl/page")

        cookies = [v for k, v in response.headers if k == "set-cookie" and v.startswith("locale=")]
        assert len(cookies) == 1

    async def test_locale_is_reset_after_request(self) -> None:
        app = _app(supported_locales=("en", "nl"))
        app.route("/nl/page")(_current_locale)

        async with TestClient(app) as client:
            await client.get("/nl/page")

        assert get_locale() is None


class TestScopedConfig:
    async def test_routes_use_scoped_config(self) -> None:
        app = _app(supported_locales=("en",), default_locale="en")

        def routes() -> None:
            app.route("/with-scoped-config")(_current_locale)

        app.localized(
            routes,
            {"omitted_locale": "en", "supported_locales": ("en", "nl", "de")},
        )

        async with TestClient(app) as client:
            assert (await client.get("/with-scoped-config")).text == "en"
            assert (await client.get("/nl/with-scoped-config")).text == "nl"
            assert (await client.get("/de/with-scoped-config")).text == "de"

    async def test_scoped_config_does_not_override_global_config(self) -> None:
        app = _app(supported_locales=("en",))

        def routes() -> None:
            app.route("/with-scoped-config")(_current_locale)

        app.localized(routes, {"supported_locales": ("en", "nl")})

        assert app.locales.config.supported_locales == ("en",)
        assert app.locales.global_config.supported_locales == ("en",)

    async def test_unscoped_routes_keep_global_config(self) -> None:
        app = _app(supported_locales=("en",), default_locale="en")

        def routes() -> None:
            app.route("/scoped")(_current_locale)

        app.localized(routes, {"supported_locales": ("en", "de")})
        app.route("/de/plain")(_current_locale)

        async with TestClient(app) as client:
            assert (await client.get("/de/scoped")).text == "de"
            # de is not supported outside the group
            assert (await client.get("/de/plain")).text == "en"
