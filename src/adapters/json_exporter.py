"""Exportación JSON de resultados.

Por qué JSON:
- Interoperabilidad con otras herramientas (hojas de cálculo, scripts).
- Permite conservar el reporte crudo del backend sin depender del render
  PDF/Excel del dashboard.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel


def export_result_json(*, result: BaseModel, output_path: Path) -> Path:
    """Exporta un `DispatchOutcome`/`ReconciliationReport` a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = result.model_dump(mode="json")
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path
