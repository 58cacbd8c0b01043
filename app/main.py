# app/main.py
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, RedirectResponse

from app.api.endpoints import consent, health, surveys
from app.api.errors import register_exception_handlers
from app.core.config import settings
from app.core.errors import NotFoundError
from app.core.logging import configure_logging
from app.db.session import init_db

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

API_PREFIX = "/api"
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DB_AUTO_CREATE:
        logger.info("DB_AUTO_CREATE activo: creando tablas faltantes")
        init_db()
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="API para consentimientos informados y encuestas del estudio",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(health.router,   prefix=API_PREFIX)
app.include_router(consent.router,  prefix=API_PREFIX)
app.include_router(surveys.router,  prefix=API_PREFIX)


# Cliente estático (SPA). Debe registrarse después de los routers de la API.
# Acepta todos los métodos para que una ruta desconocida dé 404 y no 405.
@app.api_route("/{full_path:path}", methods=ALL_METHODS, include_in_schema=False)
def client_app(full_path: str, request: Request):
    if full_path == "api" or full_path.startswith("api/"):
        trimmed = full_path.rstrip("/")
        if trimmed != full_path and trimmed not in ("", "api"):
            # /api/surveys/ -> /api/surveys (307 conserva método y cuerpo)
            return RedirectResponse(request.url.replace(path=f"/{trimmed}"), status_code=307)
        raise NotFoundError("Not Found")

    if request.method not in ("GET", "HEAD"):
        raise NotFoundError("Not Found")

    build_dir = Path(settings.CLIENT_BUILD_DIR).resolve()
    if full_path:
        candidate = (build_dir / full_path).resolve()
        if candidate.is_file() and build_dir in candidate.parents:
            return FileResponse(candidate)

    # rutas del cliente (/consent, /debrief, ...) -> index.html
    index = build_dir / "index.html"
    if index.is_file():
        return FileResponse(index)
    raise NotFoundError("Not Found")
