"""Pytest bootstrap configuration.

Ensure environment variables are set before test collection and module
imports that depend on SDK settings.
"""
import os

# The SDK must never reconfigure the root logger under test
os.environ.setdefault("PAYGATE_LOG_SETUP", "false")
os.environ.setdefault("PAYGATE_MODE", "test")

import httpx
import pytest

from paygate import Paygate
from tests.factories import PRIVATE_KEY


def _no_network(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"unexpected remote call: {request.method} {request.url}")


@pytest.fixture
def paygate() -> Paygate:
    """Client whose transport fails the test on any HTTP request."""
    return Paygate(PRIVATE_KEY, transport=httpx.MockTransport(_no_network))
