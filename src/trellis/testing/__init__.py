"""Test utilities for trellis applications.

    from trellis.testing import TestClient
"""

from trellis.testing.client import ClientResponse, TestClient

__all__ = ["ClientResponse", "TestClient"]
