"""ASGI handler — translates ASGI scope/messages to polyroute types.

The only component that touches raw ASGI directly. Converts the scope
to a Request, matches the route, then runs middleware and the handler
with the route's scoped locale config active, and sends the Response
back through ASGI send().

Routing happens before middleware so ``request.route`` is populated for
the locale detectors. Routing errors are raised inside the middleware
chain, so error pages are rendered with the locale already resolved.
"""

import inspect
from collections.abc import Callable
from dataclasses import replace
from typing import Any

from polyroute._internal.asgi import Receive, Scope, Send
from polyroute._internal.invoke import invoke
from polyroute.config import LocaleSettings
from polyroute.context import request_var
from polyroute.errors import HTTPError
from polyroute.http.request import Request
from polyroute.http.response import Response
from polyroute.middleware.protocol import Next
from polyroute.routing.route import RouteMatch
from polyroute.routing.router import Router
from polyroute.server.errors import handle_http_error, handle_internal_error
from polyroute.server.negotiation import negotiate
from polyroute.server.sender import send_response


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    router: Router,
    middleware: tuple[Callable[..., Any], ...],
    error_handlers: dict[int | type, Callable[..., Any]],
    settings: LocaleSettings,
    debug: bool,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope)

    outcome: RouteMatch | HTTPError
    try:
        outcome = router.match(request.method, request.path, request.host)
    except HTTPError as exc:
        outcome = exc

    match = outcome if isinstance(outcome, RouteMatch) else None
    if match is not None:
        request = replace(request, route=match.route, path_params=match.path_params)

    # Set request context var (reset after dispatch)
    token = request_var.set(request)

    async def dispatch(req: Request) -> Response:
        inner = request_var.set(req)
        try:
            if isinstance(outcome, HTTPError):
                raise outcome
            return await _invoke_handler(outcome, req)
        except HTTPError as exc:
            return await handle_http_error(exc, req, error_handlers, debug)
        finally:
            request_var.reset(inner)

    # Wrap middleware around the dispatch
    handler: Next = dispatch
    for mw in reversed(middleware):

        async def make_next(req: Request, _mw: Any = mw, _next: Next = handler) -> Response:
            return await _mw(req, _next)

        handler = make_next

    try:
        with settings.scoped(match.route.locale_options if match else None):
            try:
                response = await handler(request)
            except HTTPError as exc:
                response = await handle_http_error(exc, request, error_handlers, debug)
            except Exception as exc:
                response = await handle_internal_error(exc, request, error_handlers, debug)
    finally:
        request_var.reset(token)

    await send_response(response, send)


async def _invoke_handler(match: RouteMatch, request: Request) -> Response:
    """Call the matched route handler, converting path params and return value."""
    handler = match.route.handler
    kwargs = _build_handler_kwargs(handler, request, match.path_params)
    result = await invoke(handler, **kwargs)
    return negotiate(result)


def _build_handler_kwargs(
    handler: Callable[..., Any],
    request: Request,
    path_params: dict[str, str],
) -> dict[str, Any]:
    """Inspect handler signature and build kwargs from request + path params.

    Resolution order:
    1. ``request`` parameter (by name or ``Request`` annotation)
    2. Path parameters (by name, with type conversion)
    """
    sig = inspect.signature(handler, eval_str=True)
    kwargs: dict[str, Any] = {}

    for name, param in sig.parameters.items():
        if name == "request" or param.annotation is Request:
            kwargs[name] = request
        elif name in path_params:
            value = path_params[name]
            if param.annotation is not inspect.Parameter.empty:
                try:
                    kwargs[name] = param.annotation(value)
                except (ValueError, TypeError):
                    kwargs[name] = value
            else:
                kwargs[name] = value

    return kwargs
