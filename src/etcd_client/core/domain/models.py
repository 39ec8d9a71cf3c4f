"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- El cuerpo JSON de etcd se valida en el borde: un cuerpo mal formado es un
  error de parseo, nunca un resultado vacío por defecto.
- Los modelos son inmutables (``frozen``): cada respuesta produce un
  resultado nuevo que pertenece solo a quien lo recibe.

Nota:
- Estos modelos describen *qué* devuelve el servicio, no *cómo* se obtiene.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from etcd_client.core.domain.error_codes import EtcdErrorCode


class EtcdNode(BaseModel):
    """Nodo del keyspace: una clave con valor o un directorio con hijos."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    key: str | None = Field(
        default=None,
        description="Ruta completa del nodo (p.ej. '/config/db').",
    )
    value: str | None = Field(
        default=None,
        description="Valor almacenado (ausente en directorios).",
    )
    dir: bool = Field(
        default=False,
        description="Indica si el nodo es un directorio.",
    )
    nodes: tuple[EtcdNode, ...] = Field(
        default_factory=tuple,
        description="Hijos del directorio, en el orden devuelto por el servicio.",
    )
    created_index: int | None = Field(
        default=None,
        alias="createdIndex",
        description="Índice en el que se creó el nodo.",
    )
    modified_index: int | None = Field(
        default=None,
        alias="modifiedIndex",
        description="Índice de la última modificación del nodo.",
    )
    expiration: str | None = Field(
        default=None,
        description="Momento de expiración (RFC3339) si el nodo tiene TTL.",
    )
    ttl: int | None = Field(
        default=None,
        description="Segundos restantes de vida si el nodo tiene TTL.",
    )


class EtcdResult(BaseModel):
    """Resultado de una operación sobre el keyspace.

    Por qué un único modelo:
    - El servicio responde con ``{node: ...}`` en éxito o con
      ``{errorCode, message, ...}`` en error; ambos se normalizan aquí.
    - Los contadores de protocolo vienen de headers, no del cuerpo. ``None``
      significa "header ausente" y nunca se confunde con un índice real.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    action: str | None = Field(
        default=None,
        description="Acción aplicada por el servicio (get, set, delete, ...).",
    )
    node: EtcdNode | None = Field(
        default=None,
        description="Nodo afectado por la operación (ausente en errores).",
    )
    prev_node: EtcdNode | None = Field(
        default=None,
        alias="prevNode",
        description="Estado previo del nodo, si el servicio lo reporta.",
    )
    error_code: int | None = Field(
        default=None,
        alias="errorCode",
        description="Código de error de aplicación (ausente en éxito).",
    )
    message: str | None = Field(
        default=None,
        description="Mensaje de error del servicio.",
    )
    cause: str | None = Field(
        default=None,
        description="Clave o campo que causó el error.",
    )
    index: int | None = Field(
        default=None,
        description="Índice reportado en el cuerpo de los errores.",
    )

    etcd_index: int | None = Field(
        default=None,
        description="Header X-Etcd-Index: versión del estado aplicado.",
    )
    raft_index: int | None = Field(
        default=None,
        description="Header X-Raft-Index: posición en el log de consenso.",
    )
    raft_term: int | None = Field(
        default=None,
        description="Header X-Raft-Term: término del log de consenso.",
    )

    @property
    def is_error(self) -> bool:
        return self.error_code is not None

    @property
    def error(self) -> EtcdErrorCode | None:
        """Código de error tipado, o ``None`` si no hay error o es desconocido."""

        return EtcdErrorCode.lookup(self.error_code)


@dataclass(frozen=True)
class RawResponse:
    """Envoltorio transitorio entre el extractor y el traductor.

    Nunca se expone a quien llama a las operaciones públicas.
    """

    body: str | None
    status_code: int
    etcd_index: int | None = None
    raft_index: int | None = None
    raft_term: int | None = None
