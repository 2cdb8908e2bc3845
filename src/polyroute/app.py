"""Polyroute application class.

Mutable during setup (route registration, localized groups, middleware).
Frozen at runtime when ``__call__()`` is first invoked.
"""

import threading
from collections.abc import Callable, Iterable, Mapping
from typing import Any, TypeAlias

from polyroute._internal.asgi import Receive, Scope, Send
from polyroute.config import AppConfig, LocaleSettings
from polyroute.context import get_locale, get_request
from polyroute.errors import ConfigurationError
from polyroute.generator import LocalizedUrlGenerator, Parameters, localized_route_name
from polyroute.helpers import RouteHelper
from polyroute.middleware.protocol import Middleware
from polyroute.registrar import localize_routes
from polyroute.routing.route import PendingRoute
from polyroute.routing.router import Router
from polyroute.server.handler import handle_request

Handler: TypeAlias = Callable[..., Any]
ErrorHandler: TypeAlias = Callable[..., Any]


class App:
    """The polyroute application.

    Usage::

        app = App(AppConfig(locale=LocaleConfig(
            supported_locales=("en", "nl"),
            omitted_locale="en",
        )))
        app.add_middleware(SetLocale(app.locales))

        def pages() -> None:
            @app.route("/about", name="about")
            def about() -> str:
                return app.localized_url("nl")

        app.localized(pages)

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check to ensure exactly
        one thread compiles the app.
    """

    __slots__ = (
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_localizing",
        "_middleware",
        "_middleware_list",
        "_pending_routes",
        # Compiled state (populated by _freeze)
        "_router",
        "config",
        "locales",
    )

    def __init__(self, config: AppConfig | None = None) -> None:
        self.config: AppConfig = config or AppConfig()
        self.locales: LocaleSettings = LocaleSettings(self.config.locale)
        self._pending_routes: list[PendingRoute] = []
        self._middleware_list: list[Middleware] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._localizing: bool = False
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._router: Router | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
        action: Mapping[str, Any] | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. ``{param}``, ``{param:int}``,
                ``{post:slug}`` (binding field) and ``{param?}`` are supported.
            methods: HTTP methods. Defaults to ``["GET"]``.
            name: Optional route name for URL generation.
            action: Extra route metadata.
        """

        def decorator(func: Handler) -> Handler:
            self._check_not_frozen()
            self._pending_routes.append(
                PendingRoute(path, func, methods, name, action=dict(action or {}))
            )
            return func

        return decorator

    def fallback(self, func: Handler) -> Handler:
        """Register the route served when nothing else matches."""
        self._check_not_frozen()
        self._pending_routes.append(
            PendingRoute("/{fallback:path}", func, ["GET", "HEAD"], fallback=True)
        )
        return func

    def localized(
        self,
        routes: Callable[[], None],
        options: Mapping[str, Any] | None = None,
    ) -> None:
        """Register the routes declared by *routes* once per supported locale.

        *options* override ``LocaleConfig`` fields for these routes only,
        both while they are registered and while they serve requests.

        Raises ``ConfigurationError`` for unknown options and for nested
        localized groups.
        """
        self._check_not_frozen()
        if self._localizing:
            msg = "Localized route groups cannot be nested."
            raise ConfigurationError(msg)

        start = len(self._pending_routes)
        self._localizing = True
        try:
            with self.locales.scoped(options) as config:
                routes()
                declared = self._pending_routes[start:]
                del self._pending_routes[start:]
                self._pending_routes.extend(localize_routes(declared, config, dict(options or {})))
        finally:
            self._localizing = False

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator."""

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- URLs and route introspection (request-scoped) --

    @property
    def router(self) -> Router:
        self._ensure_frozen()
        if self._router is None:
            msg = "App froze without compiling a router."
            raise RuntimeError(msg)
        return self._router

    def url_for(
        self,
        name: str,
        params: Mapping[str, Any] | None = None,
        *,
        locale: str | None = None,
        absolute: bool = False,
    ) -> str:
        """Build the URL of a named route, preferring its variant for *locale*.

        *locale* defaults to the active locale. ``url_for("about")`` on a
        Dutch page gives ``/nl/about``; routes outside localized groups
        are found by their plain name.

        Raises ``RouteNotFound`` if no variant of *name* is registered.
        """
        router = self.router
        config = self.locales.config
        locale = locale or get_locale(config.default_locale)
        resolved = localized_route_name(router, name, locale, config)
        path = router.url_for(resolved, params)
        if not absolute:
            return path

        route = router.get(resolved)
        return get_request().absolute_url(path, route.domain if route else None)

    def localized_url(
        self,
        locale: str | None = None,
        parameters: Parameters | None = None,
        *,
        absolute: bool = True,
        keep_query: bool = True,
    ) -> str:
        """The current request's URL in *locale*. See ``LocalizedUrlGenerator``."""
        generator = LocalizedUrlGenerator(get_request(), self.router, self.locales.config)
        return generator.generate(locale, parameters, absolute=absolute, keep_query=keep_query)

    def is_localized(
        self,
        patterns: str | Iterable[str] | None = None,
        locales: str | Iterable[str] = "*",
    ) -> bool:
        return self._route_helper().is_localized(patterns, locales)

    def has_localized(self, name: str, locale: str | None = None) -> bool:
        return self._route_helper().has_localized(name, locale)

    def is_fallback(self) -> bool:
        return self._route_helper().is_fallback()

    def _route_helper(self) -> RouteHelper:
        return RouteHelper(get_request(), self.router, self.locales.config)

    # -- ASGI --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point. Lifespan scopes are acknowledged, HTTP dispatched."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        await handle_request(
            scope,
            receive,
            send,
            router=self.router,
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            settings=self.locales,
            debug=self.config.debug,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            if message["type"] == "lifespan.startup":
                self._ensure_frozen()
                await send({"type": "lifespan.startup.complete"})
            elif message["type"] == "lifespan.shutdown":
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        router = Router()
        for pending in self._pending_routes:
            router.add(pending.to_route())
        router.compile()
        self._router = router

        self._middleware = tuple(self._middleware_list)
        self._frozen = True

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes and middleware before the first request."
            )
            raise RuntimeError(msg)
