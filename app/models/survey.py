# app/models/survey.py
import uuid

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, SmallInteger,
    String, UniqueConstraint, Uuid,
)
from sqlalchemy.orm import relationship

from app.db.base_class import Base
from app.models.types import JSONDocument, utcnow


class Survey(Base):
    __tablename__ = "surveys"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # metadata de la entrega
    title = Column(String(255), nullable=False)
    respondent_id = Column(String(255), index=True)
    ip = Column(String(64))
    submitted_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    comments = Column(JSONDocument, nullable=False, default=dict)  # {sectionId|"final": texto}
    sections = Column(JSONDocument, nullable=False, default=list)  # snapshot [{id, title, questionIds}]
    tags = Column(JSONDocument, nullable=False, default=list)

    reviewed = Column(Boolean, nullable=False, default=False)
    reviewed_at = Column(DateTime(timezone=True))
    reviewed_by = Column(String(255))

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    answers = relationship(
        "SurveyAnswer",
        back_populates="survey",
        cascade="all, delete-orphan",
        order_by="SurveyAnswer.position",
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_surveys_reviewed_submitted", "reviewed", "submitted_at"),
    )


class SurveyAnswer(Base):
    __tablename__ = "survey_answers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    survey_id = Column(Uuid, ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False)  # orden original de la entrega
    question_id = Column(String(120), nullable=False)
    value = Column(SmallInteger, nullable=False)

    survey = relationship("Survey", back_populates="answers")

    __table_args__ = (
        # una sola respuesta por pregunta dentro de la misma encuesta
        UniqueConstraint("survey_id", "question_id", name="uq_survey_answers_question"),
        CheckConstraint("value BETWEEN 1 AND 5", name="ck_survey_answers_value"),
    )
