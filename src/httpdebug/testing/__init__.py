"""Testing utilities for httpdebug.

Provides a test client that drives debug endpoints through ASGI with a
chosen peer address.
"""

from httpdebug.testing.client import TestClient

__all__ = ["TestClient"]
