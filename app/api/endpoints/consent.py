# app/api/endpoints/consent.py
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.consent import ConsentCreatedOut, MessageOut
from app.services import store

router = APIRouter(prefix="/consent", tags=["consent"])


@router.post("", response_model=ConsentCreatedOut, status_code=201)
def create_consent(
    request: Request,
    payload: Any = Body(...),
    db: Session = Depends(get_db),
):
    ip = request.client.host if request.client else None
    ua = request.headers.get("user-agent")
    consent_id = store.create_consent(db, payload, ip_address=ip, user_agent=ua)
    return ConsentCreatedOut(id=consent_id, message="Consent stored")


# GDPR: borrado por id
@router.delete("/{consent_id}", response_model=MessageOut)
def delete_consent(consent_id: str, db: Session = Depends(get_db)):
    store.delete_consent(db, consent_id)
    return MessageOut(message="Deleted")
