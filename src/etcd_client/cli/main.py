"""Command line entry point (`etcdv2`)."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

import typer
from rich.console import Console

from etcd_client.adapters.json_exporter import export_result_json, format_result
from etcd_client.cli import doctor
from etcd_client.cli.ui_components import build_nodes_table, build_result_panel, configure_logging
from etcd_client.core.config import ClientSettings
from etcd_client.core.domain.models import EtcdResult
from etcd_client.core.errors import EtcdClientError
from etcd_client.core.services.sync_client import EtcdClient

app = typer.Typer(no_args_is_help=True, help="Client for the etcd v2 keyspace API.")
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)

EXIT_CLIENT_ERROR = 1
EXIT_NOT_FOUND = 2


@dataclass
class CliState:
    settings: ClientSettings
    endpoint: str | None = None
    as_json: bool = False


def open_client(state: CliState) -> EtcdClient:
    return EtcdClient(state.endpoint, settings=state.settings)


@contextmanager
def _session(ctx: typer.Context) -> Iterator[EtcdClient]:
    state: CliState = ctx.obj
    try:
        client = open_client(state)
    except ValueError as exc:
        _err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=EXIT_CLIENT_ERROR) from exc
    try:
        yield client
    except EtcdClientError as exc:
        _err_console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=EXIT_CLIENT_ERROR) from exc
    finally:
        client.close()


def _emit(ctx: typer.Context, obj: Any) -> None:
    state: CliState = ctx.obj
    if state.as_json:
        typer.echo(format_result(obj))
    elif isinstance(obj, EtcdResult):
        _console.print(build_result_panel(obj))
    elif isinstance(obj, (list, tuple)):
        _console.print(build_nodes_table(obj))
    else:
        _console.print(obj)


@app.callback()
def main(
    ctx: typer.Context,
    endpoint: str | None = typer.Option(None, "--endpoint", "-e", help="Service base URL."),
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON instead of tables."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    settings = ClientSettings()
    configure_logging("DEBUG" if verbose else settings.log_level, _err_console)
    ctx.obj = CliState(settings=settings, endpoint=endpoint, as_json=as_json)


@app.command()
def get(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Key to read."),
    output: Path | None = typer.Option(None, "--output", "-o", help="Also write the result as JSON."),
) -> None:
    """Read a key."""

    with _session(ctx) as client:
        result = client.get(key)
    if result is None:
        _err_console.print(f"[yellow]Key not found:[/yellow] {key}")
        raise typer.Exit(code=EXIT_NOT_FOUND)
    if output is not None:
        export_result_json(obj=result, output_path=output)
    _emit(ctx, result)


@app.command(name="set")
def set_(
    ctx: typer.Context,
    key: str = typer.Argument(...),
    value: str = typer.Argument(...),
    ttl: int | None = typer.Option(None, "--ttl", min=1, help="Time to live in seconds."),
) -> None:
    """Set a key to a value."""

    with _session(ctx) as client:
        result = client.set(key, value, ttl)
    _emit(ctx, result)


@app.command()
def rm(ctx: typer.Context, key: str = typer.Argument(...)) -> None:
    """Delete a key."""

    with _session(ctx) as client:
        result = client.delete(key)
    _emit(ctx, result)


@app.command()
def mkdir(ctx: typer.Context, key: str = typer.Argument(...)) -> None:
    """Create a directory."""

    with _session(ctx) as client:
        result = client.create_directory(key)
    _emit(ctx, result)


@app.command()
def rmdir(ctx: typer.Context, key: str = typer.Argument(...)) -> None:
    """Delete a directory."""

    with _session(ctx) as client:
        result = client.delete_directory(key)
    _emit(ctx, result)


@app.command()
def ls(ctx: typer.Context, key: str = typer.Argument("", help="Directory to list (root when omitted).")) -> None:
    """List the children of a directory."""

    with _session(ctx) as client:
        nodes = client.list_directory(key)
    if nodes is None:
        _err_console.print(f"[yellow]Directory not found:[/yellow] {key}")
        raise typer.Exit(code=EXIT_NOT_FOUND)
    _emit(ctx, nodes)


@app.command()
def children(ctx: typer.Context, key: str = typer.Argument(...)) -> None:
    """Fetch a directory node with its children."""

    with _session(ctx) as client:
        result = client.list_children(key)
    _emit(ctx, result)


@app.command()
def cas(
    ctx: typer.Context,
    key: str = typer.Argument(...),
    prev_value: str = typer.Argument(..., help="Expected current value."),
    value: str = typer.Argument(..., help="New value."),
) -> None:
    """Compare-and-swap a key."""

    with _session(ctx) as client:
        result = client.cas(key, prev_value, value)
    _emit(ctx, result)
    if result.is_error:
        raise typer.Exit(code=EXIT_CLIENT_ERROR)


@app.command()
def watch(
    ctx: typer.Context,
    key: str = typer.Argument(...),
    index: int | None = typer.Option(None, "--index", help="Watch changes since this index."),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Watch the whole subtree."),
    count: int = typer.Option(1, "--count", "-n", min=1, help="Number of changes to wait for."),
) -> None:
    """Block until the key (or subtree) changes."""

    with _session(ctx) as client:
        for _ in range(count):
            result = client.wait(client.watch(key, index, recursive))
            _emit(ctx, result)
            if result.node is not None and result.node.modified_index is not None:
                index = result.node.modified_index + 1


@app.command()
def version(ctx: typer.Context) -> None:
    """Print the service version string."""

    with _session(ctx) as client:
        text = client.get_version()
    typer.echo(text.strip())


def run() -> None:
    app()
