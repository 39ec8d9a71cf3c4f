"""Taxonomía de errores del cliente.

Por qué una jerarquía con una sola raíz:
- Quien llama captura ``EtcdClientError`` y obtiene siempre el mensaje y,
  cuando existen, el código HTTP, el código de aplicación y el resultado
  parseado.
- Las subclases permiten distinguir transporte, parseo, dominio e
  interrupción sin inspeccionar mensajes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from etcd_client.core.domain.models import EtcdResult


class EtcdClientError(Exception):
    """Base exception for every failure surfaced by the client."""

    def __init__(
        self,
        message: str | None,
        *,
        http_status_code: int | None = None,
        result: EtcdResult | None = None,
    ) -> None:
        self.message = message or "etcd client error"
        self.http_status_code = http_status_code
        self.result = result
        super().__init__(self.message)

    @property
    def error_code(self) -> int | None:
        """Application error code of the parsed result, if any."""

        if self.result is None:
            return None
        return self.result.error_code

    def __str__(self) -> str:
        parts = [self.message]
        if self.http_status_code is not None:
            parts.append(f"[http {self.http_status_code}]")
        if self.error_code is not None:
            parts.append(f"[errorCode {self.error_code}]")
        return " ".join(parts)


class EtcdTransportError(EtcdClientError):
    """Connection failure, unacceptable HTTP status or unreadable body."""


class EtcdEmptyResponseError(EtcdTransportError):
    """The service answered without a body (typically it went away mid-watch)."""


class EtcdClientClosedError(EtcdTransportError):
    """The client was closed before or while the request was in flight."""


class EtcdParseError(EtcdClientError):
    """Malformed JSON body or malformed protocol header."""


class EtcdDomainError(EtcdClientError):
    """The service reported an error code the operation does not accept."""


class EtcdInterruptedError(EtcdClientError):
    """A blocking wait was cancelled before the operation completed."""
