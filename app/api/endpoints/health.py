# app/api/endpoints/health.py
from fastapi import APIRouter

from app.core.errors import StorageError
from app.db.session import check_db_connection

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"status": "ok"}


# health rápido de DB
@router.get("/health/db")
def health_db():
    if not check_db_connection():
        raise StorageError("Database unreachable")
    return {"db": "ok"}
