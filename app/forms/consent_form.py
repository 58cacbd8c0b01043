# app/forms/consent_form.py
"""
Controlador del formulario de consentimiento informado.

Seis casillas independientes y tres campos de texto. El envío queda
deshabilitado hasta que todo esté marcado y completo; si el servidor rechaza,
se conserva lo escrito para corregir y reintentar.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from app.forms.api_client import ApiError, NetworkError, StudyApiClient

logger = logging.getLogger(__name__)

CONSENT_KEYS = ("consent1", "consent2", "consent3", "consent4", "consent5", "consent6")
TEXT_FIELDS = ("participantName", "signature", "date")

DEBRIEF_LOCATION = "/debrief"
ACK_SECONDS = 2.5
ACK_NOTICE = "Consent submitted successfully."
INCOMPLETE_MSG = "Please complete the form."
NETWORK_ERROR_MSG = "Network error submitting consent."


class ConsentPhase(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    ACKNOWLEDGED = "acknowledged"
    DEBRIEF = "debrief"


def _unchecked() -> dict[str, bool]:
    return {k: False for k in CONSENT_KEYS}


@dataclass(frozen=True)
class ConsentFormState:
    consents: Mapping[str, bool] = field(default_factory=_unchecked)
    participant_name: str = ""
    signature: str = ""
    date: str = ""
    phase: ConsentPhase = ConsentPhase.EDITING
    error: str = ""
    notice: str = ""
    location: Optional[str] = None


@dataclass(frozen=True)
class ConsentToggled:
    name: str
    checked: bool


@dataclass(frozen=True)
class FieldChanged:
    name: str  # participantName | signature | date
    value: str


@dataclass(frozen=True)
class SubmitRequested:
    pass


@dataclass(frozen=True)
class SubmitSucceeded:
    pass


@dataclass(frozen=True)
class SubmitFailed:
    message: str


@dataclass(frozen=True)
class AcknowledgementClosed:
    pass


ConsentEvent = Union[
    ConsentToggled, FieldChanged, SubmitRequested, SubmitSucceeded, SubmitFailed, AcknowledgementClosed,
]

_FIELD_ATTRS = {"participantName": "participant_name", "signature": "signature", "date": "date"}


def all_checked(state: ConsentFormState) -> bool:
    return all(state.consents.get(k) is True for k in CONSENT_KEYS)


def fields_complete(state: ConsentFormState) -> bool:
    return all(getattr(state, attr).strip() for attr in _FIELD_ATTRS.values())


def can_submit(state: ConsentFormState) -> bool:
    return state.phase is ConsentPhase.EDITING and all_checked(state) and fields_complete(state)


def build_payload(state: ConsentFormState) -> dict[str, Any]:
    return {
        **{k: bool(state.consents.get(k)) for k in CONSENT_KEYS},
        "participantName": state.participant_name,
        "signature": state.signature,
        "date": state.date,
    }


def transition(state: ConsentFormState, event: ConsentEvent) -> ConsentFormState:
    if state.phase is ConsentPhase.SUBMITTING:
        if isinstance(event, SubmitSucceeded):
            return replace(state, phase=ConsentPhase.ACKNOWLEDGED, error="", notice=ACK_NOTICE)
        if isinstance(event, SubmitFailed):
            # sin reset: el participante corrige y reintenta
            return replace(state, phase=ConsentPhase.EDITING, error=event.message)
        return state

    if state.phase is ConsentPhase.ACKNOWLEDGED:
        if isinstance(event, AcknowledgementClosed):
            return replace(state, phase=ConsentPhase.DEBRIEF, notice="", location=DEBRIEF_LOCATION)
        return state

    if state.phase is ConsentPhase.DEBRIEF:
        return state

    if isinstance(event, ConsentToggled):
        if event.name not in CONSENT_KEYS:
            return state
        return replace(state, consents={**state.consents, event.name: bool(event.checked)})

    if isinstance(event, FieldChanged):
        attr = _FIELD_ATTRS.get(event.name)
        if attr is None:
            return state
        return replace(state, **{attr: event.value})

    if isinstance(event, SubmitRequested):
        if not can_submit(state):
            return replace(state, error=INCOMPLETE_MSG)
        return replace(state, phase=ConsentPhase.SUBMITTING, error="")

    return state


class ConsentFormController:
    def __init__(self, api: StudyApiClient):
        self.api = api
        self._state = ConsentFormState()

    @property
    def state(self) -> ConsentFormState:
        return self._state

    @property
    def submit_enabled(self) -> bool:
        return can_submit(self._state)

    def dispatch(self, event: ConsentEvent) -> ConsentFormState:
        self._state = transition(self._state, event)
        return self._state

    def toggle(self, name: str, checked: bool) -> ConsentFormState:
        return self.dispatch(ConsentToggled(name, checked))

    def set_field(self, name: str, value: str) -> ConsentFormState:
        return self.dispatch(FieldChanged(name, value))

    async def submit(self) -> ConsentFormState:
        if self._state.phase is ConsentPhase.SUBMITTING:
            return self._state
        state = self.dispatch(SubmitRequested())
        if state.phase is not ConsentPhase.SUBMITTING:
            return state

        try:
            await self.api.submit_consent(build_payload(state))
        except ApiError as e:
            return self.dispatch(SubmitFailed(e.message))
        except NetworkError as e:
            logger.error("Consent submit error: %s", e)
            return self.dispatch(SubmitFailed(NETWORK_ERROR_MSG))
        return self.dispatch(SubmitSucceeded())

    async def finish(self, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep) -> ConsentFormState:
        """Cierra el aviso tras ACK_SECONDS y pasa a la vista de debrief."""
        if self._state.phase is not ConsentPhase.ACKNOWLEDGED:
            return self._state
        await sleep(ACK_SECONDS)
        return self.dispatch(AcknowledgementClosed())
