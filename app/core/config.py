# app/core/config.py
from __future__ import annotations

from pathlib import Path
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict

ROOT_DIR = Path(__file__).resolve().parents[2]  # raíz del repo
ENV_FILE = ROOT_DIR / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # App
    APP_NAME: str = "Research Consent & Survey API"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    # CORS (ej: CORS_ORIGINS=http://localhost:5173,https://study.example.org)
    CORS_ORIGINS: str = ""

    # Build estático del cliente (index.html + assets)
    CLIENT_BUILD_DIR: str = str(ROOT_DIR / "client" / "dist")

    # DB URLs (acepta cualquiera de las dos)
    DATABASE_URL: str | None = None
    SQLALCHEMY_DATABASE_URI: str | None = None
    # Solo para desarrollo: crea las tablas al arrancar (en prod usar alembic)
    DB_AUTO_CREATE: bool = False

    # Encuestas
    SURVEY_TITLE: str = "Cloud-Native Disaster Response Platform Survey"
    SURVEYS_PAGE_SIZE: int = 25
    SURVEYS_MIN_PAGE_SIZE: int = 5
    SURVEYS_MAX_PAGE_SIZE: int = 200

    @property
    def cors_list(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def db_url(self) -> str:
        """
        URL unificada para SQLAlchemy. Acepta DATABASE_URL o SQLALCHEMY_DATABASE_URI.
        Fuerza sslmode=require para Supabase si faltara.
        """
        url = (self.DATABASE_URL or self.SQLALCHEMY_DATABASE_URI or "").strip()
        if not url:
            raise ValueError("Define DATABASE_URL o SQLALCHEMY_DATABASE_URI en variables de entorno.")
        if ("supabase.co" in url or "supabase.com" in url) and "sslmode=" not in url:
            sep = "&" if "?" in url else "?"
            url = f"{url}{sep}sslmode=require"
        return url


@lru_cache
def get_settings() -> Settings:
    return Settings()


# Objeto listo para importar: from app.core.config import settings
settings = get_settings()
