"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from etcd_client.core.config import ClientSettings, write_user_env_vars
from etcd_client.core.errors import EtcdClientError
from etcd_client.core.services.async_client import AsyncEtcdClient

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def open_async_client(endpoint: str, settings: ClientSettings) -> AsyncEtcdClient:
    return AsyncEtcdClient(endpoint, settings=settings)


async def _check_version(endpoint: str, settings: ClientSettings) -> tuple[bool, str]:
    try:
        async with open_async_client(endpoint, settings) as client:
            version = await client.get_version()
        return True, version.strip()
    except (ValueError, EtcdClientError) as exc:
        return False, str(exc)


@app.command()
def run(
    endpoint: str | None = typer.Option(None, "--endpoint", "-e", help="Override the configured endpoint."),
) -> None:
    """Show the effective configuration and check the service version."""

    settings = ClientSettings()
    target = endpoint or settings.base_url

    table = Table(title="etcd client doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("Endpoint", "OK", target)
    table.add_row("Connect timeout", "OK", f"{settings.connect_timeout_seconds:.1f}s")
    table.add_row("Request timeout", "OK", f"{settings.request_timeout_seconds:.1f}s (watch: unbounded)")

    ok_version, detail_version = asyncio.run(_check_version(target, settings))
    table.add_row("Service version", "OK" if ok_version else "FAIL", detail_version)

    _console.print(table)

    if not ok_version:
        _console.print(
            "\n[yellow]Note:[/yellow] set ETCD_CLIENT_BASE_URL or run `etcdv2 doctor configure`."
        )
        raise typer.Exit(code=1)


@app.command()
def configure() -> None:
    """Interactive setup (stores the endpoint in the user config .env)."""

    settings = ClientSettings()
    base_url = typer.prompt("etcd endpoint", default=settings.base_url, show_default=True).strip()
    if not base_url:
        raise typer.BadParameter("endpoint is required")

    env_path = write_user_env_vars({"ETCD_CLIENT_BASE_URL": base_url})
    _console.print(f"[green]Saved client config to:[/green] {env_path}")
