# app/core/errors.py
from __future__ import annotations

from typing import Iterable


class SubmissionError(Exception):
    """Base de los errores del pipeline de consentimientos/encuestas."""


class ValidationError(SubmissionError):
    """Payload mal formado o incompleto (400). Nunca se persiste nada."""

    def __init__(self, messages: Iterable[str] | str):
        if isinstance(messages, str):
            messages = [messages]
        self.messages: list[str] = [m for m in messages if m] or ["Invalid payload"]
        super().__init__("; ".join(self.messages))


class NotFoundError(SubmissionError):
    """El identificador no corresponde a ningún registro (404)."""

    def __init__(self, message: str = "Not found"):
        self.message = message
        super().__init__(message)


class StorageError(SubmissionError):
    """Fallo de la capa de persistencia (500, sin detalle hacia el cliente)."""
