"""Shared fixtures."""

import httpx
import pytest

from .helpers import FakeYahoo


@pytest.fixture
def fake_yahoo():
    return FakeYahoo()


@pytest.fixture
def http_client(fake_yahoo):
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_yahoo.handler))
