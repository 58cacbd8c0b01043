# app/db/session.py
import logging
import re

from sqlalchemy import create_engine
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings

logger = logging.getLogger(__name__)


def _mask(u: str) -> str:
    """Enmascara la contraseña en la URL para logs seguros"""
    return re.sub(r"://([^:]+):([^@]+)@", r"://\1:***@", u)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        opts: dict = {"connect_args": {"check_same_thread": False}}
        # SQLite en memoria: una sola conexión compartida entre hilos
        if url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url:
            opts["poolclass"] = StaticPool
        return opts
    return {
        "pool_size": 5,           # 5 conexiones concurrentes
        "max_overflow": 10,       # Hasta 15 total en picos
        "pool_timeout": 30,       # 30s para obtener conexión
        "pool_recycle": 1800,     # Recicla cada 30 min
        "pool_pre_ping": True,    # Verifica que la conexión esté viva
    }


db_url = settings.db_url
logger.info("[DB] Using: %s", _mask(db_url))

engine = create_engine(db_url, echo=False, **_engine_options(db_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Dependency para FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Crea las tablas que falten (solo desarrollo / tests)."""
    from app.db.base import Base

    Base.metadata.create_all(bind=engine)


def check_db_connection() -> bool:
    """Verifica que la conexión funcione"""
    try:
        with engine.connect() as conn:
            row = conn.execute(text("SELECT 1")).fetchone()
            return bool(row and row[0] == 1)
    except SQLAlchemyError as e:
        logger.error("[DB] Connection failed: %s", e)
        return False
