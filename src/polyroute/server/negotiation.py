"""Content negotiation — maps handler return values to Response objects.

isinstance-based dispatch, no magic, fully predictable.
"""

import json as json_module
from typing import Any

from polyroute.http.response import Redirect, Response


def negotiate(value: Any) -> Response:
    """Convert a route handler's return value to a Response.

    Dispatch order:

    1. ``Response``         -> pass through
    2. ``Redirect``         -> redirect with Location header
    3. ``str``              -> 200, text/html
    4. ``bytes``            -> 200, application/octet-stream
    5. ``dict`` / ``list``  -> 200, application/json
    6. ``(value, int)``     -> negotiate value, override status
    """
    match value:
        case Response():
            return value
        case Redirect():
            return value.to_response()
        case str():
            return Response(body=value)
        case bytes():
            return Response(body=value, content_type="application/octet-stream")
        case dict() | list():
            return Response(
                body=json_module.dumps(value, default=str),
                content_type="application/json; charset=utf-8",
            )
        case (inner, int() as status):
            return negotiate(inner).with_status(status)
        case _:
            msg = (
                f"Cannot convert {type(value).__name__} to a response. "
                "Return str, bytes, dict, list, Response, or Redirect."
            )
            raise TypeError(msg)
