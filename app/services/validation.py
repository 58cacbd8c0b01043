# app/services/validation.py
"""
Validación estructural de los payloads.

Dos reglas independientes (consentimiento y encuesta), más la del PATCH de
encuestas. Cada función devuelve un ``ValidationResult``: éxito con el valor
saneado, o fallo con la lista de mensajes.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.core.errors import ValidationError
from app.schemas.consent import ConsentIn
from app.schemas.surveys import SurveyIn, SurveyPatchIn

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class ValidationResult(Generic[M]):
    ok: bool
    value: Optional[M] = None
    errors: list[str] = field(default_factory=list)

    @classmethod
    def success(cls, value: M) -> "ValidationResult[M]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, errors: list[str]) -> "ValidationResult[M]":
        return cls(ok=False, errors=list(errors))

    def unwrap(self) -> M:
        """Devuelve el valor o lanza ``ValidationError`` con todos los mensajes."""
        if not self.ok:
            raise ValidationError(self.errors)
        return self.value  # type: ignore[return-value]


def error_messages(exc: PydanticValidationError) -> list[str]:
    messages: list[str] = []
    for err in exc.errors():
        ctx_error = (err.get("ctx") or {}).get("error")
        if err["type"] == "value_error" and ctx_error is not None:
            # mensajes propios de los validadores (ej. "consent3 must be checked")
            messages.append(str(ctx_error))
            continue
        where = ".".join(str(p) for p in err["loc"])
        messages.append(f"{where}: {err['msg']}" if where else err["msg"])
    return messages


def _validate(model: Type[M], payload: Any) -> ValidationResult[M]:
    if not isinstance(payload, dict):
        return ValidationResult.failure(["Request body must be a JSON object"])
    try:
        return ValidationResult.success(model.model_validate(payload))
    except PydanticValidationError as exc:
        return ValidationResult.failure(error_messages(exc))


def validate_consent(payload: Any) -> ValidationResult[ConsentIn]:
    return _validate(ConsentIn, payload)


def validate_survey(payload: Any) -> ValidationResult[SurveyIn]:
    return _validate(SurveyIn, payload)


def validate_survey_patch(payload: Any) -> ValidationResult[SurveyPatchIn]:
    return _validate(SurveyPatchIn, payload)
