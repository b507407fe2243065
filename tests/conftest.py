"""
Shared test helpers.

HTTP is faked with httpx.MockTransport; no test touches the network.
"""

from collections.abc import Callable

import httpx
import pytest

from valuta.cache import MemoryCache
from valuta.config import Settings, get_settings
from valuta.providers.http import HttpClient


class RecordingHandler:
    """MockTransport handler that records requests and routes by path."""
    
    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]):
        self.respond = respond
        self.requests: list[httpx.Request] = []
    
    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)
    
    @property
    def count(self) -> int:
        return len(self.requests)
    
    def methods(self) -> list[str]:
        return [r.method for r in self.requests]


def make_http(handler: Callable[[httpx.Request], httpx.Response], provider: str = "test") -> HttpClient:
    return HttpClient(provider, timeout=1.0, transport=httpx.MockTransport(handler))


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep real credentials out of the tests."""
    for name in ("ALPHA_VANTAGE_API_KEY", "EXCHANGE_RATE_API_KEY", "LOGO_DEV_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache()
