# app/schemas/consent.py
from __future__ import annotations

import datetime as dt
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

# mismos límites que las columnas de consents
TEXT_MAX = 255
IP_MAX = 64

CONSENT_FIELDS = ("consent1", "consent2", "consent3", "consent4", "consent5", "consent6")


def parse_calendar_date(value: Any) -> Optional[dt.date]:
    """Acepta 'YYYY-MM-DD' o un datetime ISO-8601 (con 'Z' u offset). None si no parsea."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return dt.datetime.fromisoformat(text).date()
    except ValueError:
        pass
    try:
        return dt.date.fromisoformat(text)
    except ValueError:
        return None


# ---------- Entradas ----------

class ConsentIn(BaseModel):
    """Consentimiento informado enviado por el participante (ya saneado)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    consent1: bool = Field(default=False, validate_default=True)
    consent2: bool = Field(default=False, validate_default=True)
    consent3: bool = Field(default=False, validate_default=True)
    consent4: bool = Field(default=False, validate_default=True)
    consent5: bool = Field(default=False, validate_default=True)
    consent6: bool = Field(default=False, validate_default=True)

    participant_name: str = Field(default="", alias="participantName", max_length=TEXT_MAX, validate_default=True)
    signature: str = Field(default="", max_length=TEXT_MAX, validate_default=True)
    date: Optional[dt.date] = Field(default=None, validate_default=True)

    ip_address: Optional[str] = Field(default=None, alias="ipAddress", max_length=IP_MAX)
    user_agent: Optional[str] = Field(default=None, alias="userAgent")

    @field_validator(*CONSENT_FIELDS, mode="before")
    @classmethod
    def _must_be_checked(cls, v: Any, info: ValidationInfo) -> bool:
        # exactamente True: "true", 1, etc. no cuentan como aceptación explícita
        if v is not True:
            raise ValueError(f"{info.field_name} must be checked")
        return v

    @field_validator("participant_name", "signature", mode="before")
    @classmethod
    def _required_text(cls, v: Any, info: ValidationInfo) -> str:
        name = cls.model_fields[info.field_name].alias or info.field_name
        if not isinstance(v, str) or len(v.strip()) < 2:
            raise ValueError(f"{name} is required")
        return v.strip()

    @field_validator("date", mode="before")
    @classmethod
    def _valid_date(cls, v: Any) -> dt.date:
        if v is None or v == "":
            raise ValueError("date is required")
        parsed = parse_calendar_date(v)
        if parsed is None:
            raise ValueError("date is invalid")
        return parsed

    @field_validator("ip_address", "user_agent", mode="before")
    @classmethod
    def _optional_text(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        return str(v).strip() or None


# ---------- Salidas ----------

class ConsentCreatedOut(BaseModel):
    id: UUID
    message: str = "Consent stored"


class MessageOut(BaseModel):
    message: str
