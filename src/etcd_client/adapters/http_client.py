"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers y límites de conexión para todas las
  operaciones del cliente.
- Facilita testeo: se puede sustituir por un cliente con `MockTransport`.

Nota:
- Los watch mantienen la conexión abierta indefinidamente, así que el pool
  no puede tener tope por destino (el default de httpx es demasiado bajo).
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Mapping, TypeVar

import httpx

from etcd_client.core.config import ClientSettings
from etcd_client.core.errors import EtcdClientClosedError

T = TypeVar("T")

logger = logging.getLogger(__name__)


def build_async_client(
    settings: ClientSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` sin tope de conexiones por destino.

    Por qué un builder:
    - Centraliza timeouts/headers para que todas las operaciones se comporten igual.
    - Un solo cliente compartido multiplexa watch y operaciones cortas.
    """

    settings = settings or ClientSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json, text/plain;q=0.9, */*;q=0.8",
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            settings.request_timeout_seconds,
            connect=settings.connect_timeout_seconds,
        ),
        limits=httpx.Limits(max_connections=None, max_keepalive_connections=None),
        headers=headers,
    )


def long_poll_timeout(settings: ClientSettings | None = None) -> httpx.Timeout:
    """Timeout para long-poll: sin límite de lectura, conexión acotada."""

    settings = settings or ClientSettings()
    return httpx.Timeout(None, connect=settings.connect_timeout_seconds)


class HttpxTransport:
    """Despacho mecánico de requests sobre un `httpx.AsyncClient` compartido.

    Reglas:
    - `send` devuelve la respuesta en modo streaming, con el cuerpo sin leer.
    - Cada operación en curso (envío y lectura del cuerpo) se registra con
      `tracked`; `aclose` las cancela antes de cerrar el cliente, así un watch
      bloqueado leyendo el cuerpo no queda esperando una conexión muerta.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client
        self._inflight: set[asyncio.Future[Any]] = set()
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed or self._client.is_closed

    def build_request(
        self,
        method: str,
        url: str,
        *,
        form: Mapping[str, str] | None = None,
        timeout: httpx.Timeout | None = None,
    ) -> httpx.Request:
        if timeout is None:
            return self._client.build_request(method, url, data=form)
        return self._client.build_request(method, url, data=form, timeout=timeout)

    async def send(self, request: httpx.Request) -> httpx.Response:
        if self.is_closed:
            raise EtcdClientClosedError("etcd client is closed")
        logger.debug("dispatch %s %s", request.method, request.url)
        return await self._client.send(request, stream=True)

    async def tracked(self, operation: Awaitable[T]) -> T:
        """Ejecuta `operation` (envío + lectura del cuerpo) como trabajo en curso.

        Si `aclose` la cancela, quien espera recibe `EtcdClientClosedError`;
        si la cancela quien llama, la cancelación se propaga tal cual.
        """

        if self.is_closed:
            if inspect.iscoroutine(operation):
                operation.close()
            raise EtcdClientClosedError("etcd client is closed")

        task = asyncio.ensure_future(operation)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        try:
            return await task
        except asyncio.CancelledError:
            if self._closed and task.cancelled():
                raise EtcdClientClosedError(
                    "etcd client closed while the request was in flight"
                ) from None
            raise

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        pending = list(self._inflight)
        for task in pending:
            task.cancel()
        if pending:
            logger.debug("cancelling %d in-flight request(s) on close", len(pending))
            await asyncio.gather(*pending, return_exceptions=True)
        await self._client.aclose()

