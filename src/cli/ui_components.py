"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

import json

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import DispatchOutcome, ReconciliationReport, StatusSnapshot

_PATH_LABELS = {
    "ai": "IA",
    "local": "Intérprete local",
    "ai-only-failed": "IA (falló, sin alternativa)",
}


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("comercio-dash", style="bold cyan")
    subtitle = Text("Comandos de reportes • Relaciones • Backend comercial", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_status_table(snapshot: StatusSnapshot | None, *, ai_available: bool) -> Table:
    table = Table(title="Estado del backend")
    table.add_column("Campo", style="cyan", no_wrap=True)
    table.add_column("Valor", style="white")
    table.add_row("IA disponible", "sí" if ai_available else "no")
    if snapshot is None:
        table.add_row("Estado", "[red]sin respuesta[/red]")
        return table
    table.add_row("Estado", snapshot.status)
    for name, path in sorted(snapshot.endpoints.items()):
        if not isinstance(path, str):
            path = json.dumps(path, ensure_ascii=False, default=str)
        table.add_row(f"endpoint:{name}", path)
    return table


def build_outcome_panel(outcome: DispatchOutcome) -> Panel:
    """Panel para presentar un `DispatchOutcome`."""

    style = "green" if outcome.succeeded else "red"
    title = Text("Resultado del comando", style=f"bold {style}")
    body = Text()
    path = outcome.path_taken.value if outcome.path_taken else None
    body.append(f"Intérprete: {_PATH_LABELS.get(path or '', 'ninguno')}\n", style="bold")
    if outcome.fallback_reason:
        body.append(f"Fallback por: {outcome.fallback_reason.value}\n", style="yellow")
    if outcome.processed_command:
        body.append(f"Comando interpretado: {outcome.processed_command}\n", style="dim")
    if outcome.error_message:
        body.append(f"\nError: {outcome.error_message}\n", style="red")
    if outcome.report is not None:
        if outcome.report.kpis:
            body.append("\nKPIs:\n", style="bold")
            for name, value in outcome.report.kpis.items():
                body.append(f"- {name}: {value}\n")
        datos = outcome.report.datos
        if datos is not None:
            count = len(datos)
            body.append(f"\nFilas: {count}\n", style="dim")
            preview = datos[:3] if isinstance(datos, list) else dict(list(datos.items())[:3])
            body.append(json.dumps(preview, ensure_ascii=False, indent=2, default=str) + "\n")
    return Panel(body, title=title, border_style=style)


def build_reconciliation_table(report: ReconciliationReport) -> Table:
    """Tabla con el detalle de un lote de relaciones."""

    caption = f"{report.success_count} ok / {report.failure_count} con error / {report.total} total"
    table = Table(title="Relaciones", caption=caption)
    table.add_column("Miembro", style="cyan", no_wrap=True)
    table.add_column("Error", style="red")
    for item in report.per_item_errors:
        table.add_row(str(item.member_id), item.message)
    for warning in report.warnings:
        table.add_row("[yellow]aviso[/yellow]", f"[yellow]{warning}[/yellow]")
    return table
