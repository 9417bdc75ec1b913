"""CLI principal (Typer).

Comandos:
- status                          estado del backend / disponibilidad IA
- command TEXTO                   comando de texto (IA con fallback local)
- audio ARCHIVO                   comando de voz (solo IA)
- relations create/replace        vínculos dueño <-> miembros
- doctor run/setup-api            diagnóstico y configuración
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from adapters.backend_gateway import HttpCommerceBackend
from adapters.json_exporter import export_result_json
from cli import doctor
from cli.ui_components import (
    build_outcome_panel,
    build_reconciliation_table,
    build_status_table,
    print_banner,
)
from core.config import AppSettings
from core.domain.models import AudioCommand, TextCommand
from core.logging_config import configure_logging
from core.services.command_dispatch import AudioDispatcher, CommandDispatcher
from core.services.relation_reconciler import RelationReconciler
from core.services.status_probe import StatusProbe

app = typer.Typer(no_args_is_help=True, help="Consola del backend comercial: comandos de reportes y relaciones.")
relations_app = typer.Typer(no_args_is_help=True, help="Vínculos muchos-a-muchos (promoción <-> productos).")
app.add_typer(relations_app, name="relations")
app.add_typer(doctor.app, name="doctor")

_console = Console()


@app.callback()
def _setup(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Logs en nivel DEBUG."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Sin banner."),
) -> None:
    settings = AppSettings()
    configure_logging(
        level="DEBUG" if verbose else settings.log_level,
        json_output=settings.log_json,
    )
    if not quiet:
        print_banner(_console)


def _write_output(result, output: Path | None) -> None:
    if output is None:
        return
    path = export_result_json(result=result, output_path=output)
    _console.print(f"[dim]Guardado en {path}[/dim]")


@app.command()
def status() -> None:
    """Consulta el estado del backend y la disponibilidad de la IA."""

    settings = AppSettings()
    probe = StatusProbe(HttpCommerceBackend(settings))
    result = asyncio.run(probe.probe())
    _console.print(build_status_table(result.snapshot, ai_available=result.ai_available))


@app.command()
def command(
    text: str = typer.Argument(..., help="Comando en lenguaje natural."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Plazo IA en segundos."),
    local: bool = typer.Option(False, "--local", help="Usar solo el intérprete local."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Guardar el resultado en JSON."),
) -> None:
    """Envía un comando de texto (IA con fallback automático al intérprete local)."""

    settings = AppSettings()
    dispatcher = CommandDispatcher(HttpCommerceBackend(settings), settings=settings)
    outcome = asyncio.run(
        dispatcher.dispatch(TextCommand(content=text), timeout=timeout, force_local=local)
    )
    _console.print(build_outcome_panel(outcome))
    _write_output(outcome, output)
    if not outcome.succeeded:
        raise typer.Exit(code=1)


@app.command()
def audio(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Clip de audio."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Plazo IA en segundos."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Guardar el resultado en JSON."),
) -> None:
    """Envía un clip de audio (solo IA; si falla, reintenta como texto)."""

    settings = AppSettings()
    dispatcher = AudioDispatcher(HttpCommerceBackend(settings), settings=settings)
    clip = AudioCommand(payload=file.read_bytes(), filename=file.name)
    outcome = asyncio.run(dispatcher.dispatch(clip, timeout=timeout))
    _console.print(build_outcome_panel(outcome))
    _write_output(outcome, output)
    if not outcome.succeeded:
        raise typer.Exit(code=1)


def _reconciler() -> RelationReconciler:
    settings = AppSettings()
    return RelationReconciler(HttpCommerceBackend(settings), settings=settings)


@relations_app.command("create")
def relations_create(
    owner_id: int = typer.Argument(..., help="Id del dueño (p.ej. promoción)."),
    member_ids: list[int] = typer.Argument(..., help="Ids de miembros (p.ej. productos)."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Guardar el reporte en JSON."),
) -> None:
    """Crea un vínculo por miembro, en orden, sin cortar ante errores."""

    report = asyncio.run(_reconciler().create_all(owner_id, member_ids))
    _console.print(build_reconciliation_table(report))
    _console.print(report.summary())
    _write_output(report, output)
    if not report.succeeded:
        raise typer.Exit(code=1)


@relations_app.command("replace")
def relations_replace(
    owner_id: int = typer.Argument(..., help="Id del dueño (p.ej. promoción)."),
    member_ids: list[int] = typer.Argument(..., help="Nuevo conjunto de miembros."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Guardar el reporte en JSON."),
) -> None:
    """Borra los vínculos actuales y crea los nuevos (best-effort, sin rollback)."""

    report = asyncio.run(_reconciler().replace_all(owner_id, member_ids))
    _console.print(build_reconciliation_table(report))
    _console.print(report.summary())
    _write_output(report, output)
    if not report.succeeded:
        raise typer.Exit(code=1)


@relations_app.command("list")
def relations_list(owner_id: int = typer.Argument(..., help="Id del dueño.")) -> None:
    """Muestra los miembros vinculados hoy al dueño."""

    members = asyncio.run(_reconciler().current_member_ids(owner_id))
    _console.print(", ".join(str(m) for m in members) or "[dim](sin vínculos)[/dim]")


def run() -> None:
    app()
