from __future__ import annotations

import asyncio
import json
import threading
from typing import Any, Callable

import httpx
import pytest

from etcd_client.core.services.async_client import AsyncEtcdClient

BASE_URL = "http://etcd.test:2379"


class CountingStream(httpx.AsyncByteStream):
    """Async body that records how many times it is released."""

    def __init__(self, data: bytes = b"", *, fail: bool = False) -> None:
        self.data = data
        self.fail = fail
        self.close_calls = 0

    async def __aiter__(self):
        if self.fail:
            raise httpx.ReadError("connection reset while reading body")
        if self.data:
            yield self.data

    async def aclose(self) -> None:
        self.close_calls += 1


class StalledStream(httpx.AsyncByteStream):
    """Body whose first chunk never arrives, like a watch with no changes yet."""

    def __init__(self) -> None:
        self.reading = threading.Event()
        self.close_calls = 0

    async def __aiter__(self):
        self.reading.set()
        await asyncio.Event().wait()
        yield b""

    async def aclose(self) -> None:
        self.close_calls += 1


def make_response(
    status_code: int,
    body: str | dict[str, Any] | None = None,
    *,
    headers: dict[str, str] | None = None,
    fail: bool = False,
    declare_length: bool = True,
) -> tuple[httpx.Response, CountingStream]:
    """Streamed response whose release can be counted.

    With `declare_length=False` the body is sent without `Content-Length`,
    the way a close-delimited HTTP/1.0 or an HTTP/2 response arrives.
    """

    all_headers = dict(headers or {})
    data = b""
    if body is not None:
        text = body if isinstance(body, str) else json.dumps(body)
        data = text.encode("utf-8")
        if declare_length:
            all_headers["Content-Length"] = str(len(data))
    stream = CountingStream(data, fail=fail)
    return httpx.Response(status_code, headers=all_headers, stream=stream), stream


def etcd_headers(etcd_index: int = 7, raft_index: int = 21, raft_term: int = 2) -> dict[str, str]:
    return {
        "X-Etcd-Index": str(etcd_index),
        "X-Raft-Index": str(raft_index),
        "X-Raft-Term": str(raft_term),
    }


def node_body(key: str, value: str | None = "v", *, action: str = "get", **extra: Any) -> dict[str, Any]:
    node: dict[str, Any] = {"key": key, "modifiedIndex": 5, "createdIndex": 5}
    if value is not None:
        node["value"] = value
    node.update(extra)
    return {"action": action, "node": node}


def error_body(code: int, message: str, cause: str = "/k") -> dict[str, Any]:
    return {"errorCode": code, "message": message, "cause": cause, "index": 9}


Handler = Callable[[httpx.Request], Any]


def mock_async_client(handler: Handler) -> AsyncEtcdClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AsyncEtcdClient(BASE_URL, http_client=http_client)


@pytest.fixture
def recorded() -> list[httpx.Request]:
    return []
