"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza base_url, timeouts, headers y autenticación contra el backend.
- Facilita testeo: se puede inyectar un `httpx.MockTransport`.
"""

from __future__ import annotations

from typing import Any

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` apuntando al backend comercial.

    Por qué un builder:
    - Centraliza timeouts/headers para que todos los endpoints se comporten igual.
    - El token viaja como `Authorization: Token <token>` solo si está configurado.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": "application/json",
    }
    if settings.api_token:
        headers["Authorization"] = f"Token {settings.api_token}"
    return httpx.AsyncClient(
        base_url=settings.api_base_url.rstrip("/"),
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers=headers,
        transport=transport,
    )


def _join_messages(value: object) -> str | None:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list) and value:
        return ", ".join(str(v) for v in value)
    return None


def parse_json_body(response: httpx.Response) -> Any:
    """JSON del cuerpo; None si está vacío o no es JSON."""

    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def extract_error_message(response: httpx.Response) -> str:
    """Mensaje legible a partir de una respuesta de error del backend.

    Prioridad:
    1. `detail` (string o lista)
    2. `message` (string o lista)
    3. Mapa de errores por campo: "campo: a, b; otro: c"
    4. "Error <status>: <reason>"

    La clave `error` de los endpoints de comando no pasa por aquí: el gateway
    la lee antes desde `BackendReply.error`.
    """

    fallback = f"Error {response.status_code}: {response.reason_phrase}".rstrip(": ")
    data = parse_json_body(response)
    if data is None:
        return fallback
    if not isinstance(data, dict):
        return _join_messages(data) or fallback

    for key in ("detail", "message"):
        found = _join_messages(data.get(key))
        if found:
            return found

    field_errors = "; ".join(
        f"{field}: {_join_messages(errors) or str(errors)}" for field, errors in data.items()
    ).strip()
    return field_errors or fallback
