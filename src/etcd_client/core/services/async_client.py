"""Operaciones públicas del keyspace (API asíncrona).

Por qué una fachada:
- Cada operación es una receta fija: URI, verbo, cuerpo y los códigos HTTP
  y de aplicación que esa semántica acepta. El pipeline hace el resto.
- Los estados "no encontrado" esperables se devuelven como `None`; los
  fallos reales siguen siendo excepciones `EtcdClientError`.
"""

from __future__ import annotations

import logging
from types import TracebackType

import httpx

from etcd_client.adapters.http_client import HttpxTransport, build_async_client, long_poll_timeout
from etcd_client.adapters.uri_builder import KEYS_PREFIX, VERSION_PATH, KeyUriBuilder
from etcd_client.core.config import ClientSettings
from etcd_client.core.domain.error_codes import EtcdErrorCode
from etcd_client.core.domain.models import EtcdNode, EtcdResult
from etcd_client.core.errors import EtcdTransportError
from etcd_client.core.interfaces.transport import HttpTransport
from etcd_client.core.services.pipeline import execute, fetch_raw

logger = logging.getLogger(__name__)

_GET_STATUS = frozenset({200, 404})
_DELETE_STATUS = frozenset({200, 404})
_SET_STATUS = frozenset({200, 201})
_DELETE_DIR_STATUS = frozenset({202})
_CAS_STATUS = frozenset({200, 412})
_OK = frozenset({200})

_GET_ERRORS = frozenset({EtcdErrorCode.KEY_NOT_FOUND})
_CAS_ERRORS = frozenset({EtcdErrorCode.TEST_FAILED})


class AsyncEtcdClient:
    """Cliente asíncrono del API v2 de etcd.

    Seguro para uso concurrente: todas las operaciones comparten un único
    transporte sin tope de conexiones, así que un watch pendiente no bloquea
    lecturas ni escrituras contra el mismo host.
    """

    def __init__(
        self,
        base_url: str | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        transport: HttpTransport | None = None,
        settings: ClientSettings | None = None,
    ) -> None:
        self._settings = settings or ClientSettings()
        self._uris = KeyUriBuilder(base_url or self._settings.base_url)
        if transport is None:
            transport = HttpxTransport(http_client or build_async_client(self._settings))
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._uris.base_url

    @property
    def is_closed(self) -> bool:
        return self._transport.is_closed

    async def __aenter__(self) -> AsyncEtcdClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cierra el transporte; los requests en curso fallan con `EtcdClientClosedError`."""

        await self._transport.aclose()

    def build_key_uri(self, key: str, suffix: str = "") -> str:
        return self._uris.build_key_uri(KEYS_PREFIX, key, suffix)

    async def get(self, key: str) -> EtcdResult | None:
        """Lee una clave. Devuelve `None` si no existe."""

        request = self._transport.build_request("GET", self.build_key_uri(key))
        result = await execute(self._transport, request, _GET_STATUS, _GET_ERRORS)
        if result.error_code == EtcdErrorCode.KEY_NOT_FOUND:
            return None
        return result

    async def delete(self, key: str) -> EtcdResult:
        request = self._transport.build_request("DELETE", self.build_key_uri(key))
        return await execute(self._transport, request, _DELETE_STATUS)

    async def set(self, key: str, value: str, ttl: int | None = None) -> EtcdResult:
        """Asigna `value` a `key`, con TTL opcional en segundos."""

        form = {"value": value}
        if ttl is not None:
            form["ttl"] = str(ttl)
        return await self._put(key, form, _SET_STATUS)

    async def create_directory(self, key: str) -> EtcdResult:
        return await self._put(key, {"dir": "true"}, _SET_STATUS)

    async def list_directory(self, key: str) -> tuple[EtcdNode, ...] | None:
        """Hijos de un directorio, o `None` si no existe o no trae nodo."""

        result = await self.get(key + "/")
        if result is None or result.node is None:
            return None
        return result.node.nodes

    async def delete_directory(self, key: str) -> EtcdResult:
        request = self._transport.build_request("DELETE", self.build_key_uri(key, "?dir=true"))
        return await execute(self._transport, request, _DELETE_DIR_STATUS)

    async def cas(self, key: str, prev_value: str, value: str) -> EtcdResult:
        """Compare-and-swap: asigna `value` solo si el valor actual es `prev_value`.

        Una comparación fallida no lanza: el resultado trae
        `error == EtcdErrorCode.TEST_FAILED`.
        """

        form = {"value": value, "prevValue": prev_value}
        return await self._put(key, form, _CAS_STATUS, _CAS_ERRORS)

    async def watch(
        self,
        key: str,
        index: int | None = None,
        recursive: bool = False,
    ) -> EtcdResult:
        """Long-poll: termina cuando el servicio reporta un cambio en `key`.

        Con `index` se observan cambios desde esa versión; con `recursive`
        también los de todo el subárbol.
        """

        suffix = "?wait=true"
        if index is not None:
            suffix += f"&waitIndex={index}"
        if recursive:
            suffix += "&recursive=true"
        request = self._transport.build_request(
            "GET",
            self.build_key_uri(key, suffix),
            timeout=long_poll_timeout(self._settings),
        )
        logger.debug("watching %s (index=%s, recursive=%s)", key, index, recursive)
        return await execute(self._transport, request, _OK)

    async def list_children(self, key: str) -> EtcdResult:
        request = self._transport.build_request("GET", self.build_key_uri(key, "/"))
        return await execute(self._transport, request, _OK)

    async def get_version(self) -> str:
        """Versión del servicio; el cuerpo se devuelve como texto sin parsear."""

        request = self._transport.build_request("GET", self._uris.resolve(VERSION_PATH))
        raw = await fetch_raw(self._transport, request, _OK)
        if raw.status_code != 200 or raw.body is None:
            raise EtcdTransportError("Error while fetching versions", http_status_code=raw.status_code)
        return raw.body

    async def _put(
        self,
        key: str,
        form: dict[str, str],
        accepted_status: frozenset[int],
        accepted_error_codes: frozenset[int] = frozenset(),
    ) -> EtcdResult:
        request = self._transport.build_request("PUT", self.build_key_uri(key), form=form)
        return await execute(self._transport, request, accepted_status, accepted_error_codes)
