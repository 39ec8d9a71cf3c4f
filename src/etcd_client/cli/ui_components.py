"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

import logging
from typing import Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from etcd_client.core.domain.models import EtcdNode, EtcdResult


def configure_logging(level: str, console: Console | None = None) -> None:
    """Instala un `RichHandler` en el logger raíz.

    Solo la CLI lo llama: la librería nunca configura handlers.
    """

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console or Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def build_nodes_table(nodes: Sequence[EtcdNode], *, title: str = "Nodes") -> Table:
    """Tabla Rich con una fila por nodo."""

    table = Table(title=title)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Type", style="white")
    table.add_column("Value", style="green")
    table.add_column("Modified", style="magenta", justify="right")
    table.add_column("TTL", style="dim", justify="right")
    for node in nodes:
        table.add_row(
            node.key or "",
            "dir" if node.dir else "key",
            "" if node.dir else (node.value or ""),
            "" if node.modified_index is None else str(node.modified_index),
            "" if node.ttl is None else str(node.ttl),
        )
    return table


def build_result_panel(result: EtcdResult) -> Panel:
    """Panel para presentar un `EtcdResult` (éxito o error aceptado)."""

    body = Text()
    if result.is_error:
        body.append(f"{result.message or 'error'}\n", style="bold red")
        body.append(f"errorCode: {result.error_code}\n")
        if result.cause:
            body.append(f"cause: {result.cause}\n")
    if result.node is not None:
        node = result.node
        body.append(f"{node.key or '/'}", style="bold cyan")
        if node.dir:
            body.append(f"  (dir, {len(node.nodes)} children)\n", style="dim")
        else:
            body.append(f" = {node.value}\n")
    counters = (
        f"etcd_index={_counter(result.etcd_index)} "
        f"raft_index={_counter(result.raft_index)} "
        f"raft_term={_counter(result.raft_term)}"
    )
    body.append(counters, style="dim")

    title = Text(result.action or "result", style="bold yellow")
    return Panel(body, title=title, border_style="red" if result.is_error else "yellow")


def _counter(value: int | None) -> str:
    return "-" if value is None else str(value)
