"""Routing — compiled route table, named URLs and URL building.

Routes are registered during setup and compiled into an immutable
lookup structure when the app freezes.
"""

from polyroute.routing.route import Route, RouteMatch
from polyroute.routing.router import Router
from polyroute.routing.urls import UrlBuilder

__all__ = ["Route", "RouteMatch", "Router", "UrlBuilder"]
