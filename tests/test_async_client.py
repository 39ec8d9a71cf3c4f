import asyncio

import httpx
import pytest

from conftest import BASE_URL, StalledStream, error_body, etcd_headers, make_response, mock_async_client, node_body
from etcd_client.core.domain.error_codes import EtcdErrorCode
from etcd_client.core.errors import (
    EtcdClientClosedError,
    EtcdDomainError,
    EtcdEmptyResponseError,
    EtcdTransportError,
)
from etcd_client.core.services.async_client import AsyncEtcdClient

pytestmark = pytest.mark.asyncio


def recording(recorded, template):
    def handler(request: httpx.Request) -> httpx.Response:
        recorded.append(request)
        return httpx.Response(template.status_code, headers=template.headers, content=template.content)

    return handler


async def test_get_returns_result(recorded):
    response = httpx.Response(200, json=node_body("/a/b", "1"), headers=etcd_headers(8))
    async with mock_async_client(recording(recorded, response)) as client:
        result = await client.get("/a/b")

    assert result is not None
    assert result.node.key == "/a/b"
    assert result.etcd_index == 8
    assert recorded[0].method == "GET"
    assert str(recorded[0].url) == f"{BASE_URL}/v2/keys/a/b"


async def test_get_missing_key_returns_none():
    response = httpx.Response(404, json=error_body(100, "Key not found"))
    async with mock_async_client(lambda request: response) as client:
        assert await client.get("/missing") is None


async def test_get_404_with_unexpected_code_raises_domain_error():
    response = httpx.Response(404, json=error_body(104, "Not a directory"))
    async with mock_async_client(lambda request: response) as client:
        with pytest.raises(EtcdDomainError) as excinfo:
            await client.get("/a/b")

    assert excinfo.value.message == "Not a directory"
    assert excinfo.value.result.error is EtcdErrorCode.NOT_DIR


async def test_get_unexpected_status_raises_transport_error():
    response = httpx.Response(503, text="unavailable")
    async with mock_async_client(lambda request: response) as client:
        with pytest.raises(EtcdTransportError) as excinfo:
            await client.get("/k")

    assert excinfo.value.http_status_code == 503


async def test_connection_failure_is_wrapped():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with mock_async_client(handler) as client:
        with pytest.raises(EtcdTransportError) as excinfo:
            await client.get("/k")

    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


async def test_set_sends_form_body(recorded):
    response = httpx.Response(201, json=node_body("/k", "v", action="set"))
    async with mock_async_client(recording(recorded, response)) as client:
        result = await client.set("/k", "v", ttl=10)
        await client.set("/k", "v")

    assert result.action == "set"
    first, second = recorded
    assert first.method == "PUT"
    assert first.headers["content-type"] == "application/x-www-form-urlencoded"
    assert first.content == b"value=v&ttl=10"
    assert second.content == b"value=v"


async def test_create_directory(recorded):
    response = httpx.Response(201, json=node_body("/dir", None, action="set", dir=True))
    async with mock_async_client(recording(recorded, response)) as client:
        result = await client.create_directory("dir")

    assert result.node.dir is True
    assert recorded[0].content == b"dir=true"


async def test_delete_sends_delete_request(recorded):
    response = httpx.Response(200, json=node_body("/k", None, action="delete"))
    async with mock_async_client(recording(recorded, response)) as client:
        result = await client.delete("/k")

    assert result.action == "delete"
    assert recorded[0].method == "DELETE"


async def test_delete_missing_key_is_a_domain_error():
    response = httpx.Response(404, json=error_body(100, "Key not found"))
    async with mock_async_client(lambda request: response) as client:
        with pytest.raises(EtcdDomainError):
            await client.delete("/k")


async def test_delete_directory_requires_202(recorded):
    accepted = httpx.Response(202, json=node_body("/dir", None, action="delete", dir=True))
    async with mock_async_client(recording(recorded, accepted)) as client:
        result = await client.delete_directory("/dir")

    assert result.node.dir is True
    assert str(recorded[0].url) == f"{BASE_URL}/v2/keys/dir?dir=true"

    rejected = httpx.Response(200, json=node_body("/dir", None, action="delete", dir=True))
    async with mock_async_client(lambda request: rejected) as client:
        with pytest.raises(EtcdTransportError):
            await client.delete_directory("/dir")


async def test_cas_success(recorded):
    response = httpx.Response(200, json=node_body("/k", "new", action="compareAndSwap"))
    async with mock_async_client(recording(recorded, response)) as client:
        result = await client.cas("/k", "old", "new")

    assert not result.is_error
    assert recorded[0].content == b"value=new&prevValue=old"


async def test_cas_comparison_failure_is_returned():
    response = httpx.Response(412, json=error_body(101, "Compare failed", "[old != current]"))
    async with mock_async_client(lambda request: response) as client:
        result = await client.cas("/k", "old", "new")

    assert result.is_error
    assert result.error is EtcdErrorCode.TEST_FAILED
    assert result.message == "Compare failed"


async def test_cas_412_with_unexpected_code_raises():
    response = httpx.Response(412, json=error_body(105, "Key already exists"))
    async with mock_async_client(lambda request: response) as client:
        with pytest.raises(EtcdDomainError) as excinfo:
            await client.cas("/k", "old", "new")

    assert excinfo.value.message == "Key already exists"


async def test_cas_bad_request_surfaces_service_message():
    response = httpx.Response(400, json=error_body(201, "PrevValue is Required in POST form"))
    async with mock_async_client(lambda request: response) as client:
        with pytest.raises(EtcdDomainError) as excinfo:
            await client.cas("/k", "", "new")

    assert excinfo.value.error_code == EtcdErrorCode.PREV_VALUE_REQUIRED
    assert excinfo.value.http_status_code == 400


async def test_watch_query_and_long_poll_timeout(recorded):
    response = httpx.Response(200, json=node_body("/dir/k", "v", action="set"))
    async with mock_async_client(recording(recorded, response)) as client:
        await client.watch("/dir")
        await client.watch("/dir", index=12, recursive=True)

    plain, full = recorded
    assert str(plain.url) == f"{BASE_URL}/v2/keys/dir?wait=true"
    assert str(full.url) == f"{BASE_URL}/v2/keys/dir?wait=true&waitIndex=12&recursive=true"
    assert plain.extensions["timeout"]["read"] is None


async def test_pending_watch_does_not_block_other_operations():
    started = asyncio.Event()
    release = asyncio.Event()

    async def handler(request):
        if request.url.params.get("wait") == "true":
            started.set()
            await release.wait()
            return httpx.Response(200, json=node_body("/k", "changed", action="set"))
        return httpx.Response(200, json=node_body("/k", "current"))

    async with mock_async_client(handler) as client:
        watch = asyncio.create_task(client.watch("/k"))
        await asyncio.wait_for(started.wait(), timeout=1)

        results = await asyncio.wait_for(
            asyncio.gather(*(client.get("/k") for _ in range(20))), timeout=2
        )
        assert all(result.node.value == "current" for result in results)
        assert not watch.done()

        release.set()
        changed = await asyncio.wait_for(watch, timeout=1)

    assert changed.node.value == "changed"


async def test_watch_empty_body_when_service_goes_away():
    response = httpx.Response(200, content=b"")
    async with mock_async_client(lambda request: response) as client:
        with pytest.raises(EtcdEmptyResponseError):
            await client.watch("/k")


async def test_cancelling_a_watch_propagates_cancellation():
    started = asyncio.Event()

    async def handler(request):
        started.set()
        await asyncio.Event().wait()

    async with mock_async_client(handler) as client:
        watch = asyncio.create_task(client.watch("/k"))
        await asyncio.wait_for(started.wait(), timeout=1)
        watch.cancel()
        with pytest.raises(asyncio.CancelledError):
            await watch


async def test_close_fails_pending_watch_and_later_calls():
    started = asyncio.Event()

    async def handler(request):
        started.set()
        await asyncio.Event().wait()

    client = mock_async_client(handler)
    watch = asyncio.create_task(client.watch("/k"))
    await asyncio.wait_for(started.wait(), timeout=1)

    await client.aclose()
    await client.aclose()

    with pytest.raises(EtcdClientClosedError):
        await asyncio.wait_for(watch, timeout=1)
    with pytest.raises(EtcdClientClosedError):
        await client.get("/k")
    assert client.is_closed


async def test_get_reads_body_sent_without_length_headers():
    async def handler(request):
        return make_response(200, node_body("/k", "streamed"), headers=etcd_headers(3), declare_length=False)[0]

    async with mock_async_client(handler) as client:
        result = await client.get("/k")

    assert result.node.value == "streamed"
    assert result.etcd_index == 3


async def test_close_cancels_watch_blocked_reading_its_body():
    stream = StalledStream()

    def handler(request):
        return httpx.Response(200, headers={"Transfer-Encoding": "chunked"}, stream=stream)

    client = mock_async_client(handler)
    watch = asyncio.create_task(client.watch("/k"))
    assert await asyncio.to_thread(stream.reading.wait, 1)

    await client.aclose()

    with pytest.raises(EtcdClientClosedError):
        await asyncio.wait_for(watch, timeout=1)
    assert stream.close_calls == 1


async def test_cancelling_a_watch_blocked_reading_its_body_releases_it():
    stream = StalledStream()

    def handler(request):
        return httpx.Response(200, headers={"Transfer-Encoding": "chunked"}, stream=stream)

    async with mock_async_client(handler) as client:
        watch = asyncio.create_task(client.watch("/k"))
        assert await asyncio.to_thread(stream.reading.wait, 1)
        watch.cancel()
        with pytest.raises(asyncio.CancelledError):
            await watch
        assert not client.is_closed

    assert stream.close_calls == 1


async def test_list_directory(recorded):
    body = node_body("/dir", None, dir=True, nodes=[{"key": "/dir/a", "value": "1"}, {"key": "/dir/b", "dir": True}])
    response = httpx.Response(200, json=body)
    async with mock_async_client(recording(recorded, response)) as client:
        nodes = await client.list_directory("/dir")

    assert isinstance(nodes, tuple)
    assert [node.key for node in nodes] == ["/dir/a", "/dir/b"]
    assert nodes[1].dir is True
    assert str(recorded[0].url) == f"{BASE_URL}/v2/keys/dir/"


async def test_list_directory_missing_returns_none():
    missing = httpx.Response(404, json=error_body(100, "Key not found"))
    async with mock_async_client(lambda request: missing) as client:
        assert await client.list_directory("/dir") is None

    no_node = httpx.Response(200, json={"action": "get"})
    async with mock_async_client(lambda request: no_node) as client:
        assert await client.list_directory("/dir") is None


async def test_list_children(recorded):
    response = httpx.Response(200, json=node_body("/dir", None, dir=True, nodes=[{"key": "/dir/a"}]))
    async with mock_async_client(recording(recorded, response)) as client:
        result = await client.list_children("dir")

    assert result.node.nodes[0].key == "/dir/a"
    assert str(recorded[0].url) == f"{BASE_URL}/v2/keys/dir/"


async def test_get_version_returns_raw_text(recorded):
    response = httpx.Response(200, text="etcd 2.3.8")
    async with mock_async_client(recording(recorded, response)) as client:
        version = await client.get_version()

    assert version == "etcd 2.3.8"
    assert str(recorded[0].url) == f"{BASE_URL}/version"


async def test_get_version_rejects_bad_request():
    response = httpx.Response(400, text="nope")
    async with mock_async_client(lambda request: response) as client:
        with pytest.raises(EtcdTransportError) as excinfo:
            await client.get_version()

    assert excinfo.value.http_status_code == 400


async def test_base_url_from_settings():
    from etcd_client.core.config import ClientSettings

    client = AsyncEtcdClient(settings=ClientSettings(base_url="http://from-settings:4001"))
    try:
        assert client.base_url == "http://from-settings:4001/"
        assert client.build_key_uri("k") == "http://from-settings:4001/v2/keys/k"
    finally:
        await client.aclose()
