"""SetLocale middleware — resolve, activate and remember the locale.

Runs the detector chain once per request, makes the result the active
locale for the rest of the pipeline, stores it in the session (when
``SessionMiddleware`` is active) and sets the locale cookie on the
response, so the session and cookie detectors see it next time.
"""

import logging

from polyroute.config import LocaleSettings
from polyroute.context import locale_var, set_locale
from polyroute.detection import LocaleDetectorChain
from polyroute.http.request import Request
from polyroute.http.response import Response
from polyroute.middleware.protocol import Next
from polyroute.middleware.sessions import get_session

logger = logging.getLogger("polyroute.locale")


class SetLocale:
    """Locale resolution middleware.

    Usage::

        app.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))
        app.add_middleware(SetLocale(app.locales))

    The effective config is read per request, so routes registered in a
    ``localized()`` group with overrides detect against their own
    supported locales.
    """

    __slots__ = ("_settings",)

    def __init__(self, settings: LocaleSettings) -> None:
        self._settings = settings

    def resolve(self, request: Request) -> str:
        """Run the detector chain for *request* against the effective config."""
        config = self._settings.config
        return LocaleDetectorChain.from_config(config).detect(request, config)

    async def __call__(self, request: Request, next: Next) -> Response:
        config = self._settings.config
        locale = self.resolve(request)
        logger.debug("%s %s resolved to locale %r", request.method, request.path, locale)

        try:
            get_session()[config.session_key] = locale
        except LookupError:
            logger.debug("No session active, locale stored in cookie only")

        token = set_locale(locale)
        try:
            response = await next(request)
        finally:
            locale_var.reset(token)

        return response.with_cookie(config.cookie_name, locale, max_age=config.cookie_max_age)
