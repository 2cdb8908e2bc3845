"""Middleware protocol and Next type alias.

A middleware is any callable matching::

    async def my_mw(request: Request, next: Next) -> Response: ...

No base class required. The framework checks the shape, not the lineage.
Middleware runs after routing, so ``request.route`` is already the
matched route (or ``None`` when nothing matched).
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias

from polyroute.http.request import Request
from polyroute.http.response import Response

# The next handler in the middleware chain
Next: TypeAlias = Callable[[Request], Awaitable[Response]]


class Middleware(Protocol):
    """Protocol for polyroute middleware.

    Accepts both functions and callable objects::

        # Function middleware
        async def vary(request: Request, next: Next) -> Response:
            response = await next(request)
            return response.with_header("Vary", "Accept-Language")

        # Class middleware
        class SetLocale:
            async def __call__(self, request: Request, next: Next) -> Response:
                ...
    """

    async def __call__(self, request: Request, next: Next) -> Response: ...
