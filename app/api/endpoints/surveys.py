# app/api/endpoints/surveys.py
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.survey import Survey
from app.schemas.surveys import (
    AnswerOut,
    SectionOut,
    SurveyCreatedOut,
    SurveyDeletedOut,
    SurveyMetadataOut,
    SurveyOut,
    SurveyPageOut,
)
from app.services import store

router = APIRouter(prefix="/surveys", tags=["surveys"])


def survey_out(s: Survey) -> SurveyOut:
    return SurveyOut(
        id=s.id,
        metadata=SurveyMetadataOut(
            title=s.title,
            respondent_id=s.respondent_id,
            ip=s.ip,
            submitted_at=s.submitted_at,
        ),
        answers=[AnswerOut(question_id=a.question_id, value=a.value) for a in s.answers],
        comments=dict(s.comments or {}),
        sections=[SectionOut.model_validate(sec) for sec in (s.sections or [])],
        tags=list(s.tags or []),
        reviewed=bool(s.reviewed),
        reviewed_at=s.reviewed_at,
        reviewed_by=s.reviewed_by,
        created_at=s.created_at,
        updated_at=s.updated_at,
    )


@router.post("", response_model=SurveyCreatedOut, status_code=201)
def create_survey(
    request: Request,
    payload: Any = Body(...),
    db: Session = Depends(get_db),
):
    ip = request.client.host if request.client else None
    survey_id = store.create_survey(db, payload, ip=ip)
    return SurveyCreatedOut(id=survey_id, message="Survey saved")


@router.get("", response_model=SurveyPageOut)
def list_surveys(
    page: int = Query(1, description="Página (>= 1)"),
    limit: Optional[int] = Query(None, description="Tamaño de página, acotado a [5, 200]"),
    reviewed: Optional[bool] = Query(None),
    respondent_id: Optional[str] = Query(None, alias="respondentId"),
    db: Session = Depends(get_db),
):
    result = store.list_surveys(
        db, reviewed=reviewed, respondent_id=respondent_id, page=page, limit=limit
    )
    return SurveyPageOut(
        page=result.page,
        limit=result.limit,
        total=result.total,
        pages=result.pages,
        results=[survey_out(s) for s in result.results],
    )


@router.get("/{survey_id}", response_model=SurveyOut)
def get_survey(survey_id: str, db: Session = Depends(get_db)):
    return survey_out(store.get_survey(db, survey_id))


@router.patch("/{survey_id}", response_model=SurveyOut)
def patch_survey(
    survey_id: str,
    payload: Any = Body(...),
    db: Session = Depends(get_db),
):
    return survey_out(store.update_survey(db, survey_id, payload))


@router.delete("/{survey_id}", response_model=SurveyDeletedOut)
def delete_survey(survey_id: str, db: Session = Depends(get_db)):
    deleted_id = store.delete_survey(db, survey_id)
    return SurveyDeletedOut(id=deleted_id, message="Deleted")
