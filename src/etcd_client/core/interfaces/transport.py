"""Contrato del transporte HTTP.

Por qué Protocol:
- El pipeline solo necesita "construir request" y "enviar request"; no
  depende de la clase concreta del adaptador.
- Permite sustituir el transporte en tests sin herencia rígida.
"""

from __future__ import annotations

from typing import Awaitable, Mapping, Protocol, TypeVar, runtime_checkable

import httpx

T = TypeVar("T")


@runtime_checkable
class HttpTransport(Protocol):
    """Contrato mínimo para despachar requests sin interpretar la respuesta.

    Reglas de diseño:
    - ``send`` devuelve la respuesta cruda con el cuerpo sin leer; leerlo y
      liberarlo es responsabilidad del extractor.
    - `tracked` envuelve la operación completa (envío + lectura) para que
      cerrar el transporte la cancele aunque ya haya recibido los headers.
    - No hay reintentos ni inspección de status codes.
    - ``timeout=None`` en ``build_request`` significa "usar el default del
      cliente", no "sin timeout".
    """

    @property
    def is_closed(self) -> bool: ...

    def build_request(
        self,
        method: str,
        url: str,
        *,
        form: Mapping[str, str] | None = None,
        timeout: httpx.Timeout | None = None,
    ) -> httpx.Request: ...

    async def send(self, request: httpx.Request) -> httpx.Response: ...

    async def tracked(self, operation: Awaitable[T]) -> T: ...

    async def aclose(self) -> None: ...
