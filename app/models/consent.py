# app/models/consent.py
import uuid

from sqlalchemy import Boolean, Column, Date, DateTime, String, Text, Uuid

from app.db.base_class import Base
from app.models.types import utcnow


class Consent(Base):
    __tablename__ = "consents"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    consent1 = Column(Boolean, nullable=False)
    consent2 = Column(Boolean, nullable=False)
    consent3 = Column(Boolean, nullable=False)
    consent4 = Column(Boolean, nullable=False)
    consent5 = Column(Boolean, nullable=False)
    consent6 = Column(Boolean, nullable=False)

    participant_name = Column(String(255), nullable=False)
    signature = Column(String(255), nullable=False)  # firma electrónica (nombre)
    date = Column(Date, nullable=False)

    # auditoría opcional (cuidado con la privacidad)
    ip_address = Column(String(64))
    user_agent = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
