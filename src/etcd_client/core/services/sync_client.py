"""Blocking facade over `AsyncEtcdClient`.

The client owns a dedicated daemon thread running an asyncio event loop.
Each operation is submitted to that loop with `run_coroutine_threadsafe`;
blocking methods wait on the resulting `concurrent.futures.Future`, while
`watch` hands the future back so callers can keep several long-polls
pending without tying up a thread per request.

Waiting is centralised in `wait`: it surfaces the innermost
`EtcdClientError` of the chain, turns cancellation into
`EtcdInterruptedError` and never swallows a `KeyboardInterrupt`.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
from types import TracebackType
from typing import Any, Coroutine, TypeVar

import httpx

from etcd_client.core.config import ClientSettings
from etcd_client.core.domain.models import EtcdNode, EtcdResult
from etcd_client.core.errors import (
    EtcdClientClosedError,
    EtcdClientError,
    EtcdInterruptedError,
    EtcdTransportError,
)
from etcd_client.core.interfaces.transport import HttpTransport
from etcd_client.core.services.async_client import AsyncEtcdClient

T = TypeVar("T")

logger = logging.getLogger(__name__)

#: Seconds to wait for the loop thread to finish on close.
DEFAULT_JOIN_TIMEOUT: float = 5.0


class EtcdClient:
    """Synchronous etcd v2 client.

    Thread-safe: any number of threads may call operations concurrently.
    `close()` is idempotent; operations issued after it raise
    `EtcdClientClosedError` without touching the network, and pending
    watches fail with the same error instead of hanging.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        transport: HttpTransport | None = None,
        settings: ClientSettings | None = None,
        join_timeout_s: float = DEFAULT_JOIN_TIMEOUT,
    ) -> None:
        self._async = AsyncEtcdClient(
            base_url,
            http_client=http_client,
            transport=transport,
            settings=settings,
        )
        self._join_timeout_s = float(join_timeout_s)
        self._lock = threading.RLock()
        self._closed = False
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="etcd_client_loop",
            daemon=True,
        )
        self._thread.start()

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    @property
    def base_url(self) -> str:
        return self._async.base_url

    @property
    def is_closed(self) -> bool:
        return self._closed

    def __enter__(self) -> EtcdClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the transport and stop the loop thread."""

        with self._lock:
            if self._closed:
                return
            self._closed = True

        try:
            asyncio.run_coroutine_threadsafe(self._shutdown(), self._loop).result(
                timeout=self._join_timeout_s
            )
        except concurrent.futures.TimeoutError:
            logger.warning("etcd client shutdown did not finish in %.1fs", self._join_timeout_s)
        finally:
            self._loop.call_soon_threadsafe(self._loop.stop)
            self._thread.join(timeout=self._join_timeout_s)
            if not self._thread.is_alive():
                self._loop.close()

    async def _shutdown(self) -> None:
        await self._async.aclose()
        current = asyncio.current_task()
        pending = [task for task in asyncio.all_tasks() if task is not current]
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------ #
    # Bridging
    # ------------------------------------------------------------------ #

    def submit(self, coro: Coroutine[Any, Any, T]) -> concurrent.futures.Future[T]:
        """Schedule `coro` on the client loop and return its future."""

        with self._lock:
            if self._closed:
                coro.close()
                raise EtcdClientClosedError("etcd client is closed")
            return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def wait(self, future: concurrent.futures.Future[T], timeout: float | None = None) -> T:
        """Block until `future` completes and translate its failure."""

        try:
            return future.result(timeout=timeout)
        except concurrent.futures.CancelledError as exc:
            raise EtcdInterruptedError("Interrupted during request") from exc
        except concurrent.futures.TimeoutError as exc:
            raise EtcdTransportError(f"No response from etcd within {timeout}s") from exc
        except KeyboardInterrupt:
            future.cancel()
            raise
        except EtcdClientError:
            raise
        except Exception as exc:
            raise EtcdClientError("Error executing request") from exc

    def _call(self, coro: Coroutine[Any, Any, T]) -> T:
        return self.wait(self.submit(coro))

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def get(self, key: str) -> EtcdResult | None:
        """Retrieve a key; `None` if it does not exist."""

        return self._call(self._async.get(key))

    def delete(self, key: str) -> EtcdResult:
        return self._call(self._async.delete(key))

    def set(self, key: str, value: str, ttl: int | None = None) -> EtcdResult:
        return self._call(self._async.set(key, value, ttl))

    def create_directory(self, key: str) -> EtcdResult:
        return self._call(self._async.create_directory(key))

    def list_directory(self, key: str) -> tuple[EtcdNode, ...] | None:
        return self._call(self._async.list_directory(key))

    def delete_directory(self, key: str) -> EtcdResult:
        return self._call(self._async.delete_directory(key))

    def cas(self, key: str, prev_value: str, value: str) -> EtcdResult:
        return self._call(self._async.cas(key, prev_value, value))

    def watch(
        self,
        key: str,
        index: int | None = None,
        recursive: bool = False,
    ) -> concurrent.futures.Future[EtcdResult]:
        """Start a long-poll watch; the future resolves on the next change.

        Use `wait(future)` to block on it with the client's error translation.
        """

        return self.submit(self._async.watch(key, index, recursive))

    def list_children(self, key: str) -> EtcdResult:
        return self._call(self._async.list_children(key))

    def get_version(self) -> str:
        return self._call(self._async.get_version())
