"""Test utilities for polyroute applications.

Provides a test client and cookie assertions::

    from polyroute.testing import TestClient, assert_locale_cookie
"""

from polyroute.testing.assertions import (
    assert_locale_cookie,
    response_cookie,
    response_cookies,
)
from polyroute.testing.client import TestClient

__all__ = [
    "TestClient",
    "assert_locale_cookie",
    "response_cookie",
    "response_cookies",
]
