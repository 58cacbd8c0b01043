# app/services/store.py
"""
Persistencia de consentimientos y encuestas.

Cada operación valida antes de escribir (nunca queda un registro parcial) y
toca un único registro por transacción.
"""
from __future__ import annotations

import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFoundError, StorageError, ValidationError
from app.models.consent import Consent
from app.models.survey import Survey, SurveyAnswer
from app.models.types import utcnow
from app.schemas.consent import CONSENT_FIELDS
from app.schemas.surveys import AnswerIn
from app.services.answers import duplicate_question_ids
from app.services.validation import validate_consent, validate_survey, validate_survey_patch

logger = logging.getLogger(__name__)

DUPLICATE_ANSWERS_MSG = "Duplicate questionId found in answers"


@dataclass
class SurveyPage:
    results: list[Survey]
    total: int
    page: int
    pages: int
    limit: int


# -------------------- helpers -------------------- #

def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_id(raw: Any, not_found_msg: str) -> uuid.UUID:
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw))
    except (TypeError, ValueError):
        # un id mal formado simplemente no existe
        raise NotFoundError(not_found_msg)


def _is_answer_conflict(exc: IntegrityError) -> bool:
    msg = str(exc.orig)
    return "uq_survey_answers_question" in msg or "survey_answers.question_id" in msg


def _commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if _is_answer_conflict(e):
            raise ValidationError(DUPLICATE_ANSWERS_MSG) from e
        logger.exception("Integrity error while trying to %s", action)
        raise StorageError(f"Could not {action}") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Database error while trying to %s", action)
        raise StorageError(f"Could not {action}") from e


def _answer_rows(answers: list[AnswerIn]) -> list[SurveyAnswer]:
    pairs = [{"questionId": a.question_id, "value": a.value} for a in answers]
    dups = duplicate_question_ids(pairs)
    if dups:
        raise ValidationError(f"{DUPLICATE_ANSWERS_MSG}: {', '.join(dups)}")
    return [
        SurveyAnswer(position=i, question_id=a.question_id, value=a.value)
        for i, a in enumerate(answers)
    ]


def _get_survey(db: Session, survey_id: Any) -> Survey:
    sid = _parse_id(survey_id, "Survey not found")
    survey = db.query(Survey).filter(Survey.id == sid).first()
    if not survey:
        raise NotFoundError("Survey not found")
    return survey


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        limit = settings.SURVEYS_PAGE_SIZE
    return min(settings.SURVEYS_MAX_PAGE_SIZE, max(settings.SURVEYS_MIN_PAGE_SIZE, int(limit)))


# -------------------- consentimientos -------------------- #

def create_consent(
    db: Session,
    payload: Any,
    *,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> uuid.UUID:
    record = validate_consent(payload).unwrap()

    consent = Consent(
        **{k: bool(getattr(record, k)) for k in CONSENT_FIELDS},
        participant_name=record.participant_name,
        signature=record.signature,
        date=record.date,
        ip_address=ip_address or record.ip_address,
        user_agent=user_agent or record.user_agent,
    )
    db.add(consent)
    _commit(db, "store consent")
    logger.info("Consent %s stored", consent.id)
    return consent.id


def delete_consent(db: Session, consent_id: Any) -> None:
    cid = _parse_id(consent_id, "Not found")
    consent = db.query(Consent).filter(Consent.id == cid).first()
    if not consent:
        raise NotFoundError("Not found")
    db.delete(consent)
    _commit(db, "delete consent")
    logger.info("Consent %s deleted", cid)


# -------------------- encuestas -------------------- #

def create_survey(db: Session, payload: Any, *, ip: Optional[str] = None) -> uuid.UUID:
    record = validate_survey(payload).unwrap()
    # invariante de almacenamiento, independiente del esquema
    answers = _answer_rows(record.answers)

    meta = record.metadata
    survey = Survey(
        title=(meta.title if meta and meta.title is not None else settings.SURVEY_TITLE),
        respondent_id=meta.respondent_id if meta else None,
        ip=ip or (meta.ip if meta else None),
        submitted_at=_to_utc(meta.submitted_at) if meta and meta.submitted_at else utcnow(),
        comments=dict(record.comments),
        sections=[s.model_dump(by_alias=True) for s in record.sections],
        tags=list(dict.fromkeys(record.tags)),  # sin repetidos, en orden
        reviewed=record.reviewed,
        answers=answers,
    )
    db.add(survey)
    _commit(db, "store survey")
    logger.info("Survey %s stored (%d answers)", survey.id, len(answers))
    return survey.id


def list_surveys(
    db: Session,
    *,
    reviewed: Optional[bool] = None,
    respondent_id: Optional[str] = None,
    page: int = 1,
    limit: Optional[int] = None,
) -> SurveyPage:
    page = max(1, int(page or 1))
    limit = clamp_limit(limit)

    q = db.query(Survey)
    if reviewed is not None:
        q = q.filter(Survey.reviewed == reviewed)
    if respondent_id:
        q = q.filter(Survey.respondent_id == respondent_id)

    total = q.count()
    rows = (
        q.order_by(Survey.submitted_at.desc(), Survey.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return SurveyPage(results=rows, total=total, page=page, pages=math.ceil(total / limit), limit=limit)


def get_survey(db: Session, survey_id: Any) -> Survey:
    return _get_survey(db, survey_id)


def update_survey(db: Session, survey_id: Any, payload: Any) -> Survey:
    """Actualización parcial: reviewed/reviewedBy/reviewedAt, comments (merge) y answers (reemplazo)."""
    patch = validate_survey_patch(payload).unwrap()
    new_answers = _answer_rows(patch.answers) if patch.answers is not None else None

    survey = _get_survey(db, survey_id)

    if patch.reviewed is not None:
        was_reviewed = bool(survey.reviewed)
        survey.reviewed = patch.reviewed
        if patch.reviewed and patch.reviewed_at is None and (not was_reviewed or survey.reviewed_at is None):
            survey.reviewed_at = utcnow()
    if patch.reviewed_at is not None:
        survey.reviewed_at = _to_utc(patch.reviewed_at)
    if patch.reviewed_by is not None:
        survey.reviewed_by = patch.reviewed_by
    if patch.comments is not None:
        survey.comments = {**(survey.comments or {}), **patch.comments}
    if new_answers is not None:
        # primero se borran las filas viejas: el UNIQUE (survey_id, question_id)
        # no tolera que los INSERT lleguen antes que los DELETE
        survey.answers.clear()
        db.flush()
        survey.answers.extend(new_answers)

    survey.updated_at = utcnow()
    _commit(db, "update survey")
    db.refresh(survey)
    return survey


def delete_survey(db: Session, survey_id: Any) -> uuid.UUID:
    survey = _get_survey(db, survey_id)
    sid = survey.id
    db.delete(survey)
    _commit(db, "delete survey")
    logger.info("Survey %s deleted", sid)
    return sid
