# app/schemas/surveys.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StrictStr, conint, field_validator

from app.services.answers import normalize_answers

Likert = conint(strict=True, ge=1, le=5)  # 1..5

# mismos límites que las columnas VARCHAR de app/models
QUESTION_ID_MAX = 120
TEXT_MAX = 255
IP_MAX = 64


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite devuelve datetimes naive; se asumen en UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------- Entradas ----------

class AnswerIn(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    question_id: StrictStr = Field(alias="questionId", max_length=QUESTION_ID_MAX)
    value: Likert


class SurveyMetadataIn(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: Optional[str] = Field(default=None, max_length=TEXT_MAX)
    respondent_id: Optional[StrictStr] = Field(default=None, alias="respondentId", max_length=TEXT_MAX)
    ip: Optional[str] = Field(default=None, max_length=IP_MAX)
    submitted_at: Optional[datetime] = Field(default=None, alias="submittedAt")


class SectionIn(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: StrictStr
    title: str = ""
    question_ids: List[StrictStr] = Field(default_factory=list, alias="questionIds")


class _AnswersMixin(BaseModel):
    @field_validator("answers", mode="before", check_fields=False)
    @classmethod
    def _normalize(cls, v: Any) -> Any:
        """Acepta lista de pares o mapa questionId -> valor."""
        return normalize_answers(v)


class SurveyIn(_AnswersMixin):
    """Entrega completa de la encuesta. Los campos desconocidos se descartan."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    metadata: Optional[SurveyMetadataIn] = None
    answers: List[AnswerIn]
    comments: Dict[str, StrictStr] = Field(default_factory=dict)
    sections: List[SectionIn] = Field(default_factory=list)
    tags: List[StrictStr] = Field(default_factory=list)
    reviewed: bool = False


class SurveyPatchIn(_AnswersMixin):
    """Campos mutables de una encuesta. Cualquier otro campo se ignora."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    reviewed: Optional[bool] = None
    reviewed_by: Optional[str] = Field(default=None, alias="reviewedBy", max_length=TEXT_MAX)
    reviewed_at: Optional[datetime] = Field(default=None, alias="reviewedAt")
    comments: Optional[Dict[str, StrictStr]] = None
    answers: Optional[List[AnswerIn]] = None


# ---------- Salidas ----------

class _CamelOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AnswerOut(_CamelOut):
    question_id: str = Field(alias="questionId")
    value: int


class SectionOut(_CamelOut):
    id: str
    title: str = ""
    question_ids: List[str] = Field(default_factory=list, alias="questionIds")


class SurveyMetadataOut(_CamelOut):
    title: str
    respondent_id: Optional[str] = Field(default=None, alias="respondentId")
    ip: Optional[str] = None
    submitted_at: datetime = Field(alias="submittedAt")

    @field_validator("submitted_at")
    @classmethod
    def _utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class SurveyOut(_CamelOut):
    id: UUID
    metadata: SurveyMetadataOut
    answers: List[AnswerOut]
    comments: Dict[str, str] = Field(default_factory=dict)
    sections: List[SectionOut] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    reviewed: bool = False
    reviewed_at: Optional[datetime] = Field(default=None, alias="reviewedAt")
    reviewed_by: Optional[str] = Field(default=None, alias="reviewedBy")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    @field_validator("reviewed_at", "created_at", "updated_at")
    @classmethod
    def _utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class SurveyPageOut(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
    results: List[SurveyOut]


class SurveyCreatedOut(BaseModel):
    id: UUID
    message: str = "Survey saved"


class SurveyDeletedOut(BaseModel):
    id: UUID
    message: str = "Deleted"
