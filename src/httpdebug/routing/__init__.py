"""Routing — trie-based route table with O(path-depth) matching.

Routes may be added at any time; each addition publishes a fresh
lookup structure, so concurrent matches never see a half-built trie.
"""

from httpdebug.routing.route import Route, RouteMatch
from httpdebug.routing.router import Router

__all__ = ["Route", "RouteMatch", "Router"]
