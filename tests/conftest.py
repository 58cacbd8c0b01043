import os

# La app debe apuntar a SQLite en memoria antes de importar cualquier módulo de app.*
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_AUTO_CREATE"] = "false"

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.main import app


@pytest.fixture(autouse=True)
def fresh_schema():
    """Tablas limpias para cada test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def consent_payload():
    return {
        "consent1": True,
        "consent2": True,
        "consent3": True,
        "consent4": True,
        "consent5": True,
        "consent6": True,
        "participantName": "  Ada Lovelace ",
        "signature": "Ada Lovelace",
        "date": "2025-03-01",
    }


@pytest.fixture
def survey_payload():
    return {
        "metadata": {"title": "Pilot", "respondentId": "r-1"},
        "answers": [
            {"questionId": "u1", "value": 3},
            {"questionId": "u2", "value": 5},
            {"questionId": "s1", "value": 1},
        ],
        "comments": {"usability": "ok", "final": ""},
        "sections": [
            {"id": "usability", "title": "Usability", "questionIds": ["u1", "u2"]},
            {"id": "scalability", "title": "Scalability", "questionIds": ["s1"]},
        ],
        "tags": ["pilot"],
    }


def as_utc(value: datetime) -> datetime:
    """SQLite devuelve datetimes naive (en UTC)."""
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
