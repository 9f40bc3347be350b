import sys
from pathlib import Path
from typing import Callable, Dict, List, Tuple, Union

import httpx
import pytest
import pytest_asyncio

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fcrepo_connector.config.settings import EndpointSettings  # noqa: E402
from fcrepo_connector.utils.http.client_manager import http_client_manager  # noqa: E402

BASE_URL = "http://localhost:8080/rest"

Handler = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


def pytest_configure(config):
    # Add custom markers for test organization
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove FCREPO_* variables so settings only see test values."""
    import os

    for name in list(os.environ):
        if name.upper().startswith("FCREPO_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(Path(__file__).parent)
    yield


class FakeRepository:
    """In-memory stand-in for the repository's HTTP interface.

    Routes map ``(METHOD, url)`` to a response or a callable producing
    one. Every request sent is recorded in ``requests``.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Handler] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, url: str, handler: Handler) -> None:
        self.routes[(method.upper(), url)] = handler

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, str(request.url)))
        if handler is None:
            return httpx.Response(404, text="Not Found")
        if callable(handler):
            return handler(request)
        return handler

    def sent(self, method: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@pytest.fixture
def repository() -> FakeRepository:
    return FakeRepository()


@pytest_asyncio.fixture
async def client(repository):
    async with httpx.AsyncClient(transport=repository.transport()) as c:
        yield c


@pytest.fixture
def make_settings() -> Callable[..., EndpointSettings]:
    def _make(**overrides) -> EndpointSettings:
        overrides.setdefault("base_url", BASE_URL)
        return EndpointSettings(**overrides)

    return _make


@pytest_asyncio.fixture
async def managed_clients():
    """Close clients created through the shared client manager."""
    yield http_client_manager
    await http_client_manager.close_all()
