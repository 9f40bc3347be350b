"""Unit tests for host-scoped basic authentication."""

import base64

import httpx
import pytest

from fcrepo_connector.utils.http.auth import (
    ScopedBasicAuth,
    auth_host_from_base_url,
    build_auth,
)


@pytest.mark.parametrize(
    "base_url, host",
    [
        ("http://localhost:8080/rest", "localhost:8080"),
        ("https://repo.example.org/fcrepo/rest/", "repo.example.org"),
        ("localhost:8080/rest", "localhost:8080"),
        ("http://host", "host"),
        (None, None),
    ],
)
def test_auth_host_from_base_url(base_url, host):
    assert auth_host_from_base_url(base_url) == host


def test_scope_matches_host_and_port():
    auth = ScopedBasicAuth("user", "pass", "localhost:8080")
    assert auth.matches(httpx.URL("http://localhost:8080/rest/a"))
    assert not auth.matches(httpx.URL("http://localhost:9090/rest/a"))
    assert not auth.matches(httpx.URL("http://other:8080/rest/a"))


def test_scope_default_port():
    auth = ScopedBasicAuth("user", "pass", "repo.example.org:443")
    assert auth.matches(httpx.URL("https://repo.example.org/rest"))


def test_build_auth_requires_username_and_host():
    assert build_auth(None, "pass", "host") is None
    assert build_auth("user", "pass", None) is None
    assert isinstance(build_auth("user", None, "host"), ScopedBasicAuth)


@pytest.mark.asyncio
async def test_credentials_sent_only_in_scope():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen[request.url.host] = request.headers.get("Authorization")
        return httpx.Response(200)

    auth = ScopedBasicAuth("fedoraAdmin", "secret", "repo:8080")
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(handler), auth=auth
    ) as client:
        await client.get("http://repo:8080/rest/a")
        await client.get("http://elsewhere:8080/rest/a")

    expected = "Basic " + base64.b64encode(b"fedoraAdmin:secret").decode("ascii")
    assert seen["repo"] == expected
    assert seen["elsewhere"] is None
