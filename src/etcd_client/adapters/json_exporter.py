"""Exportación JSON de resultados.

Por qué JSON:
- Interoperabilidad con otras herramientas (jq, scripts, logs).
- Permite inspeccionar resultados sin depender del render de la CLI.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel


def _payload(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(obj, (list, tuple)):
        return [_payload(item) for item in obj]
    return obj


def format_result(obj: Any, *, indent: int | None = 2) -> str:
    """Representa `obj` (resultado, nodo o lista de nodos) como JSON estable.

    Pensado para diagnóstico: nunca lanza, devuelve el motivo del fallo.
    """

    try:
        return json.dumps(_payload(obj), ensure_ascii=False, indent=indent, sort_keys=True)
    except (TypeError, ValueError) as exc:
        return f"Error formatting: {exc}"


def export_result_json(*, obj: Any, output_path: Path) -> Path:
    """Exporta `obj` a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(format_result(obj) + "\n", encoding="utf-8")
    return output_path
