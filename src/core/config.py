"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP) y servicios (dispatch/reconciliación) lean
  config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.language import Language


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "comercio-dash"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "comercio-dash"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "comercio-dash"
    return Path.home() / ".config" / "comercio-dash"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# comercio-dash user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters/servicios.
    """

    model_config = SettingsConfigDict(
        env_prefix="COMERCIO_DASH_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    api_base_url: str = Field(
        default="http://127.0.0.1:8000/api",
        min_length=8,
        description="URL base del backend comercial (sin barra final).",
    )
    api_token: str | None = Field(
        default=None,
        description="Token de autenticación (se envía como 'Authorization: Token <token>').",
    )
    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request HTTP (segundos).",
    )
    user_agent: str = Field(
        default="comercio-dash/0.1",
        min_length=1,
        description="User-Agent para las peticiones al backend.",
    )

    ai_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Plazo máximo para la interpretación IA antes de caer al modo local.",
    )
    ai_provider_error_markers: list[str] = Field(
        default_factory=lambda: ["OpenAI"],
        description="Fragmentos de mensaje que identifican un fallo del proveedor IA.",
    )

    relation_max_concurrency: int = Field(
        default=1,
        ge=1,
        le=20,
        description="Llamadas simultáneas al crear relaciones (1 = secuencial).",
    )

    log_level: str = Field(
        default="INFO",
        description="Nivel de logging (DEBUG, INFO, WARNING, ...).",
    )
    log_json: bool = Field(
        default=False,
        description="Emitir logs como JSON de una línea.",
    )

    default_language: Language = Field(
        default=Language.SPANISH,
        description="Idioma de los mensajes de error generados localmente (es/en).",
    )
