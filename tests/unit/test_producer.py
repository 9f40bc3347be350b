"""Unit tests for the repository producer."""

import httpx
import pytest

from fcrepo_connector.exceptions import (
    HttpOperationFailedError,
    TransactionSystemError,
)
from fcrepo_connector.models.messages import FcrepoRequest, ResponseOutcome
from fcrepo_connector.producer.producer import FcrepoProducer, is_valid_response
from fcrepo_connector.transaction.manager import TransactionManager
from fcrepo_connector.utils.http.stream_cache import StreamCache

BASE = "http://localhost:8080/rest"


@pytest.mark.parametrize(
    "status, valid",
    [(0, False), (200, True), (201, True), (204, True), (299, True), (300, False), (404, False)],
)
def test_is_valid_response(status, valid):
    assert is_valid_response(status) is valid


@pytest.mark.asyncio
async def test_get_returns_cached_body(make_settings, repository, client):
    repository.add(
        "GET",
        BASE + "/a",
        httpx.Response(200, content=b"<> a <#x> .", headers={"Content-Type": "text/turtle"}),
    )
    producer = FcrepoProducer(make_settings(metadata=False), client)

    response = await producer.process(FcrepoRequest(identifier="/a"))

    assert response.outcome is ResponseOutcome.SUCCESS
    assert response.succeeded
    assert response.status_code == 200
    assert response.content_type == "text/turtle"
    assert isinstance(response.body, StreamCache)
    assert response.text() == "<> a <#x> ."
    assert response.request_url == BASE + "/a"
    assert repository.requests[0].headers["Accept"] == "*/*"
    response.close()


@pytest.mark.asyncio
async def test_get_in_metadata_mode_sends_rdf_accept(make_settings, repository, client):
    repository.add("HEAD", BASE + "/a", httpx.Response(200))
    repository.add("GET", BASE + "/a", httpx.Response(200, content=b"x"))
    producer = FcrepoProducer(make_settings(), client)

    await producer.process(FcrepoRequest(identifier="/a"))

    get = repository.sent("GET")[0]
    assert get.headers["Accept"] == "application/rdf+xml"


@pytest.mark.asyncio
async def test_raw_body_when_stream_cache_disabled(make_settings, repository, client):
    repository.add("GET", BASE + "/a", httpx.Response(200, content=b"raw"))
    producer = FcrepoProducer(make_settings(metadata=False), client)

    response = await producer.process(
        FcrepoRequest(identifier="/a", disable_stream_cache=True)
    )

    assert response.body == b"raw"


class BrokenBody(httpx.AsyncByteStream):
    async def __aiter__(self):
        yield b"partial"
        raise httpx.ReadError("connection reset")


@pytest.mark.asyncio
async def test_broken_body_is_logged_and_dropped(make_settings, repository, client, caplog):
    repository.add("GET", BASE + "/a", httpx.Response(200, stream=BrokenBody()))
    producer = FcrepoProducer(make_settings(metadata=False), client)

    response = await producer.process(FcrepoRequest(identifier="/a"))

    assert response.outcome is ResponseOutcome.SUCCESS
    assert response.status_code == 200
    assert response.body is None
    assert "Error extracting body from http response" in caplog.text


@pytest.mark.asyncio
async def test_empty_body_is_none(make_settings, repository, client):
    repository.add("DELETE", BASE + "/a", httpx.Response(204))
    producer = FcrepoProducer(make_settings(), client)

    response = await producer.process(FcrepoRequest(identifier="/a", method="delete"))

    assert response.status_code == 204
    assert response.body is None


@pytest.mark.asyncio
async def test_head_has_no_body(make_settings, repository, client):
    repository.add(
        "HEAD", BASE + "/a", httpx.Response(200, headers={"Content-Type": "text/turtle"})
    )
    producer = FcrepoProducer(make_settings(), client)

    response = await producer.process(FcrepoRequest(identifier="/a", method="HEAD"))

    assert response.status_code == 200
    assert response.content_type == "text/turtle"
    assert response.body is None


@pytest.mark.asyncio
async def test_endpoint_content_type_overrides_request(make_settings, repository, client):
    repository.add("PUT", BASE + "/a", httpx.Response(201, content=BASE.encode() + b"/a"))
    producer = FcrepoProducer(make_settings(content_type="text/turtle"), client)

    await producer.process(
        FcrepoRequest(
            identifier="/a",
            method="PUT",
            content_type="application/ld+json",
            body="<> a <#x> .",
        )
    )

    put = repository.sent("PUT")[0]
    assert put.headers["Content-Type"] == "text/turtle"
    assert put.content == b"<> a <#x> ."


@pytest.mark.asyncio
async def test_failure_raises_with_body(make_settings, repository, client):
    repository.add("GET", BASE + "/missing", httpx.Response(404, text="Not\r\nFound"))
    producer = FcrepoProducer(make_settings(metadata=False), client)

    with pytest.raises(HttpOperationFailedError) as exc:
        await producer.process(FcrepoRequest(identifier="/missing"))

    assert exc.value.status_code == 404
    assert exc.value.url == BASE + "/missing"
    assert exc.value.status_text == "Not\nFound"
    assert str(exc.value) == (
        f"HTTP operation failed invoking {BASE}/missing with statusCode: 404 "
        "and message: Not\nFound"
    )


@pytest.mark.asyncio
async def test_failure_suppressed(make_settings, repository, client):
    repository.add(
        "GET",
        BASE + "/missing",
        httpx.Response(404, text="Not Found", headers={"Content-Type": "text/plain"}),
    )
    producer = FcrepoProducer(
        make_settings(metadata=False, throw_exception_on_failure=False), client
    )

    response = await producer.process(FcrepoRequest(identifier="/missing"))

    assert response.outcome is ResponseOutcome.SUPPRESSED
    assert not response.succeeded
    assert response.status_code == 404
    assert response.content_type == "text/plain"
    assert response.body is None


@pytest.mark.asyncio
async def test_transport_error_raises(make_settings):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        producer = FcrepoProducer(make_settings(metadata=False), client)
        with pytest.raises(httpx.ConnectError):
            await producer.process(FcrepoRequest(identifier="/a"))


@pytest.mark.asyncio
async def test_transport_error_suppressed(make_settings):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        producer = FcrepoProducer(
            make_settings(metadata=False, throw_exception_on_failure=False), client
        )
        response = await producer.process(FcrepoRequest(identifier="/a"))

    assert response.outcome is ResponseOutcome.SUPPRESSED
    assert response.status_code is None
    assert isinstance(response.error, httpx.ConnectError)


@pytest.mark.asyncio
async def test_transacted_request_uses_session(make_settings, repository, client):
    repository.add(
        "POST",
        BASE + "/fcr:tx",
        httpx.Response(201, headers={"Location": BASE + "/tx:7"}),
    )
    repository.add("DELETE", BASE + "/tx:7/a", httpx.Response(204))
    repository.add("POST", BASE + "/tx:7/fcr:tx/fcr:commit", httpx.Response(204))
    manager = TransactionManager(base_url=BASE, client=client)
    producer = FcrepoProducer(make_settings(), client, transaction_manager=manager)

    response = await producer.process(
        FcrepoRequest(identifier="/a", method="DELETE", transacted=True)
    )

    assert response.status_code == 204
    assert [str(r.url) for r in repository.requests] == [
        BASE + "/fcr:tx",
        BASE + "/tx:7/a",
        BASE + "/tx:7/fcr:tx/fcr:commit",
    ]


@pytest.mark.asyncio
async def test_transacted_failure_rolls_back(make_settings, repository, client):
    repository.add(
        "POST",
        BASE + "/fcr:tx",
        httpx.Response(201, headers={"Location": BASE + "/tx:7"}),
    )
    repository.add("PUT", BASE + "/tx:7/a", httpx.Response(409, text="conflict"))
    repository.add("POST", BASE + "/tx:7/fcr:tx/fcr:rollback", httpx.Response(204))
    manager = TransactionManager(base_url=BASE, client=client)
    producer = FcrepoProducer(
        make_settings(transacted=True), client, transaction_manager=manager
    )

    with pytest.raises(TransactionSystemError) as exc:
        await producer.process(FcrepoRequest(identifier="/a", method="PUT", body="x"))

    assert isinstance(exc.value.__cause__, HttpOperationFailedError)
    assert str(repository.requests[-1].url) == BASE + "/tx:7/fcr:tx/fcr:rollback"


@pytest.mark.asyncio
async def test_transacted_without_manager(make_settings, client):
    producer = FcrepoProducer(make_settings(), client)
    with pytest.raises(TransactionSystemError):
        await producer.process(FcrepoRequest(identifier="/a", transacted=True))
