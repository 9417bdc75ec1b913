"""Language utilities for comercio-dash.

This module centralizes the language options for messages the core
generates itself (timeouts, missing AI for audio, fatal errors). Backend
messages are passed through untouched. Keeping it in the domain layer lets
both the CLI and the services share one source of truth.
"""

from __future__ import annotations

from enum import Enum


class Language(str, Enum):
    """Supported natural-language choices for user-facing output."""

    ENGLISH = "en"
    SPANISH = "es"


_MESSAGES: dict[str, dict[Language, str]] = {
    "audio_ai_unavailable": {
        Language.SPANISH: "La IA no está disponible para procesar audio. Intenta con texto en su lugar.",
        Language.ENGLISH: "AI is not available to process audio. Try a text command instead.",
    },
    "audio_ai_failed": {
        Language.SPANISH: "No se pudo procesar el audio. La IA no está disponible. Intenta con texto.",
        Language.ENGLISH: "The audio could not be processed because the AI is unavailable. Try text instead.",
    },
    "empty_command": {
        Language.SPANISH: "El comando está vacío.",
        Language.ENGLISH: "The command is empty.",
    },
    "empty_audio": {
        Language.SPANISH: "El audio está vacío.",
        Language.ENGLISH: "The audio clip is empty.",
    },
    "invalid_owner": {
        Language.SPANISH: "Id de dueño inválido: {owner_id}",
        Language.ENGLISH: "Invalid owner id: {owner_id}",
    },
    "invalid_member": {
        Language.SPANISH: "Id de miembro inválido: {member_id}",
        Language.ENGLISH: "Invalid member id: {member_id}",
    },
    "list_failed": {
        Language.SPANISH: "No se pudieron obtener las relaciones actuales: {detail}",
        Language.ENGLISH: "Could not fetch current relations: {detail}",
    },
    "delete_failed": {
        Language.SPANISH: "No se pudo eliminar la relación {relation_id}: {detail}",
        Language.ENGLISH: "Could not delete relation {relation_id}: {detail}",
    },
    "command_fatal": {
        Language.SPANISH: "Error al procesar comando: {detail}",
        Language.ENGLISH: "Error processing command: {detail}",
    },
    "audio_fatal": {
        Language.SPANISH: "Error al procesar audio: {detail}",
        Language.ENGLISH: "Error processing audio: {detail}",
    },
}


def message(key: str, language: Language, **kwargs: object) -> str:
    """Devuelve un mensaje de usuario traducido."""

    template = _MESSAGES[key][language]
    return template.format(**kwargs) if kwargs else template
