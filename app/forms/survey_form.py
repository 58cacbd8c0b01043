# app/forms/survey_form.py
"""
Controlador del formulario de encuesta por secciones.

Máquina de estados explícita: ``SurveyFormState`` es inmutable y
``transition(config, state, event)`` es pura. Los valores derivados
(sección completa, faltantes, ...) se calculan siempre desde el estado.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Union

from app.forms.api_client import ApiError, NetworkError, StudyApiClient
from app.forms.catalog import (
    DEFAULT_SECTIONS,
    DEFAULT_SURVEY_TITLE,
    FINAL_COMMENT_KEY,
    LIKERT_VALUES,
    Section,
)

logger = logging.getLogger(__name__)

DEBRIEF_LOCATION = "/debrief"
SUCCESS_NOTICE_SECONDS = 1.5
SUCCESS_NOTICE = "Survey submitted. Thank you!"
NETWORK_ERROR_MSG = "Network error submitting survey. Please check your connection and try again."
INVALID_VALUE_MSG = "Please choose a value between 1 and 5."


class Phase(str, Enum):
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"  # aviso de éxito visible
    FINISHED = "finished"    # ya se navegó al debrief


@dataclass(frozen=True)
class SurveyFormConfig:
    sections: Sequence[Section] = DEFAULT_SECTIONS
    require_all: bool = True
    title: str = DEFAULT_SURVEY_TITLE

    def __post_init__(self):
        if not self.sections:
            raise ValueError("A survey needs at least one section")

    @property
    def last_index(self) -> int:
        return len(self.sections) - 1


@dataclass(frozen=True)
class SurveyFormState:
    active_index: int = 0
    # mapas dispersos: una pregunta sin responder simplemente no aparece
    answers: Mapping[str, int] = field(default_factory=dict)
    comments: Mapping[str, str] = field(default_factory=dict)
    phase: Phase = Phase.EDITING
    error: str = ""
    notice: str = ""
    location: Optional[str] = None


# ---------- Eventos ----------

@dataclass(frozen=True)
class AnswerSelected:
    question_id: str
    value: Any


@dataclass(frozen=True)
class CommentChanged:
    section_id: str
    text: str


@dataclass(frozen=True)
class NextRequested:
    pass


@dataclass(frozen=True)
class BackRequested:
    pass


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
class NoticeElapsed:
    pass


Event = Union[
    AnswerSelected, CommentChanged, NextRequested, BackRequested,
    SubmitRequested, SubmitSucceeded, SubmitFailed, NoticeElapsed,
]


# ---------- Valores derivados ----------

def missing_in_section(section: Section, answers: Mapping[str, int]) -> list[str]:
    return [qid for qid in section.question_ids if answers.get(qid) not in LIKERT_VALUES]


def missing_questions(sections: Sequence[Section], answers: Mapping[str, int]) -> list[str]:
    """Preguntas sin responder, en el orden de las secciones (nunca el del mapa)."""
    return [qid for s in sections for qid in missing_in_section(s, answers)]


def first_incomplete_section(sections: Sequence[Section], answers: Mapping[str, int]) -> Optional[int]:
    for i, s in enumerate(sections):
        if missing_in_section(s, answers):
            return i
    return None


def is_section_complete(config: SurveyFormConfig, state: SurveyFormState, index: Optional[int] = None) -> bool:
    if not config.require_all:
        return True
    section = config.sections[state.active_index if index is None else index]
    return not missing_in_section(section, state.answers)


def all_answered(config: SurveyFormConfig, state: SurveyFormState) -> bool:
    return not missing_questions(config.sections, state.answers)


def can_submit(config: SurveyFormConfig, state: SurveyFormState) -> bool:
    if state.phase is not Phase.EDITING or state.active_index != config.last_index:
        return False
    return not config.require_all or all_answered(config, state)


def _likert(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    try:
        v = int(value)
    except (TypeError, ValueError):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    return v if v in LIKERT_VALUES else None


# ---------- Transiciones ----------

def transition(config: SurveyFormConfig, state: SurveyFormState, event: Event) -> SurveyFormState:
    if state.phase is Phase.SUBMITTING:
        if isinstance(event, SubmitSucceeded):
            return SurveyFormState(phase=Phase.SUBMITTED, notice=SUCCESS_NOTICE)
        if isinstance(event, SubmitFailed):
            return replace(state, phase=Phase.EDITING, error=event.message)
        # una sola petición en vuelo: todo lo demás se ignora
        return state

    if state.phase is Phase.SUBMITTED:
        if isinstance(event, NoticeElapsed):
            return replace(state, phase=Phase.FINISHED, notice="", location=DEBRIEF_LOCATION)
        return state

    if state.phase is Phase.FINISHED:
        return state

    # Phase.EDITING
    if isinstance(event, AnswerSelected):
        known = {qid for s in config.sections for qid in s.question_ids}
        if event.question_id not in known:
            return state
        value = _likert(event.value)
        if value is None:
            return replace(state, error=INVALID_VALUE_MSG)
        return replace(state, answers={**state.answers, event.question_id: value}, error="")

    if isinstance(event, CommentChanged):
        keys = {s.id for s in config.sections} | {FINAL_COMMENT_KEY}
        if event.section_id not in keys:
            return state
        return replace(state, comments={**state.comments, event.section_id: event.text})

    if isinstance(event, NextRequested):
        if not is_section_complete(config, state):
            missing = missing_in_section(config.sections[state.active_index], state.answers)
            return replace(
                state,
                error=f"Please answer all questions in this section before continuing. Missing: {len(missing)}",
            )
        return replace(state, active_index=min(state.active_index + 1, config.last_index), error="")

    if isinstance(event, BackRequested):
        return replace(state, active_index=max(state.active_index - 1, 0), error="")

    if isinstance(event, SubmitRequested):
        if state.active_index != config.last_index:
            return state
        if config.require_all:
            missing = missing_questions(config.sections, state.answers)
            if missing:
                first = first_incomplete_section(config.sections, state.answers)
                return replace(
                    state,
                    active_index=state.active_index if first is None else first,
                    error=f"Please answer all questions before submitting. Missing: {len(missing)}",
                )
        return replace(state, phase=Phase.SUBMITTING, error="")

    return state


def build_payload(config: SurveyFormConfig, state: SurveyFormState, now: datetime) -> dict[str, Any]:
    """Payload para POST /api/surveys (answers como mapa questionId -> valor)."""
    return {
        "metadata": {"title": config.title, "submittedAt": now.isoformat()},
        "answers": dict(state.answers),
        "comments": dict(state.comments),
        "sections": [s.snapshot() for s in config.sections],
    }


# ---------- Controlador ----------

class SurveyFormController:
    def __init__(
        self,
        api: StudyApiClient,
        sections: Sequence[Section] = DEFAULT_SECTIONS,
        *,
        require_all: bool = True,
        title: str = DEFAULT_SURVEY_TITLE,
        on_success: Optional[Callable[[dict[str, Any]], None]] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.api = api
        self.config = SurveyFormConfig(sections=tuple(sections), require_all=require_all, title=title)
        self.on_success = on_success
        self.clock = clock
        self._state = SurveyFormState()

    @property
    def state(self) -> SurveyFormState:
        return self._state

    @property
    def current_section(self) -> Section:
        return self.config.sections[self._state.active_index]

    def dispatch(self, event: Event) -> SurveyFormState:
        self._state = transition(self.config, self._state, event)
        return self._state

    def answer(self, question_id: str, value: Any) -> SurveyFormState:
        return self.dispatch(AnswerSelected(question_id, value))

    def comment(self, section_id: str, text: str) -> SurveyFormState:
        return self.dispatch(CommentChanged(section_id, text))

    def next(self) -> SurveyFormState:
        return self.dispatch(NextRequested())

    def back(self) -> SurveyFormState:
        return self.dispatch(BackRequested())

    async def submit(self) -> SurveyFormState:
        before = self._state
        if before.phase is Phase.SUBMITTING:
            return before
        state = self.dispatch(SubmitRequested())
        if state.phase is not Phase.SUBMITTING:
            return state

        payload = build_payload(self.config, state, self.clock())
        try:
            data = await self.api.submit_survey(payload)
        except ApiError as e:
            return self.dispatch(SubmitFailed(e.message))
        except NetworkError as e:
            logger.error("Survey submit error: %s", e)
            return self.dispatch(SubmitFailed(NETWORK_ERROR_MSG))

        self.dispatch(SubmitSucceeded())
        if self.on_success is not None:
            self.on_success(data)
        return self._state

    async def finish(self, sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep) -> SurveyFormState:
        """Deja visible el aviso de éxito y luego navega al debrief."""
        if self._state.phase is not Phase.SUBMITTED:
            return self._state
        await sleep(SUCCESS_NOTICE_SECONDS)
        return self.dispatch(NoticeElapsed())
