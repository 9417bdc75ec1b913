"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from adapters.backend_gateway import STATUS_PATH, HttpCommerceBackend
from adapters.http_client import build_async_client
from core.config import AppSettings, get_user_env_file, write_user_env_vars
from core.services.status_probe import StatusProbe

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(STATUS_PATH)
        return response.is_success, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="comercio-dash Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    table.add_row("API base_url", "OK", settings.api_base_url)
    if settings.api_token:
        table.add_row("API token", "OK", "Authorization header enabled")
    else:
        table.add_row("API token", "OPTIONAL", "No token set -> anonymous requests")
    table.add_row("AI timeout", "OK", f"{settings.ai_timeout_seconds:g}s before local fallback")

    ok_http, detail_http = asyncio.run(_check_http(settings))
    table.add_row("Backend connectivity", "OK" if ok_http else "FAIL", detail_http)

    probe = asyncio.run(StatusProbe(HttpCommerceBackend(settings)).probe())
    if probe.ai_available:
        table.add_row("Backend AI", "OK", "Text and audio commands use AI")
    else:
        table.add_row("Backend AI", "DEGRADED", "Text -> local interpreter, audio disabled")

    _console.print(table)

    if not ok_http:
        _console.print(
            f"\n[yellow]Note:[/yellow] run `doctor setup-api` or set COMERCIO_DASH_API_BASE_URL "
            f"(user config: {get_user_env_file()})."
        )


@app.command(name="setup-api")
def setup_api() -> None:
    """Interactive API setup (stores config in the user config .env)."""

    settings = AppSettings()
    base_url = typer.prompt("API base URL", default=settings.api_base_url, show_default=True).strip()
    token = typer.prompt(
        "API token (empty for none)",
        default="",
        show_default=False,
        hide_input=True,
    ).strip()

    if not base_url:
        raise typer.BadParameter("base_url is required")

    values = {"COMERCIO_DASH_API_BASE_URL": base_url}
    if token:
        values["COMERCIO_DASH_API_TOKEN"] = token
    env_path = write_user_env_vars(values)

    _console.print(f"[green]Saved API config to:[/green] {env_path}")
