# app/db/base.py
from app.db.base_class import Base  # noqa: F401

# Importa todos los modelos que definen tablas para que queden en Base.metadata
# (alembic autogenerate y create_all dependen de esto)
from app.models import consent  # noqa: F401
from app.models import survey  # noqa: F401
