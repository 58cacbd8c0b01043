# app/forms/catalog.py
"""Definición de la encuesta que presenta el cliente (secciones y preguntas Likert)."""
from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_SURVEY_TITLE = "Cloud-Native Disaster Response Platform Survey"
LIKERT_VALUES = (1, 2, 3, 4, 5)
FINAL_COMMENT_KEY = "final"


@dataclass(frozen=True)
class Question:
    id: str
    text: str


@dataclass(frozen=True)
class Section:
    id: str
    title: str
    description: str = ""
    questions: tuple[Question, ...] = field(default_factory=tuple)

    @property
    def question_ids(self) -> list[str]:
        return [q.id for q in self.questions]

    def snapshot(self) -> dict:
        """Estructura que viaja con la entrega (sections[] en la API)."""
        return {"id": self.id, "title": self.title, "questionIds": self.question_ids}


def _agree(statement: str) -> str:
    return f"On a scale of 1 to 5, how strongly do you agree that {statement}"


DEFAULT_SECTIONS: tuple[Section, ...] = (
    Section(
        id="usability",
        title="Section 1: Usability and User Experience",
        description=(
            "These questions assess how intuitive the platform feels, aligning with front-end "
            "choices like React UI for responsive dashboards."
        ),
        questions=(
            Question("u1", _agree("the platform's dashboard is easy to navigate during a high-stress situation like a flood response?")),
            Question("u2", _agree("the maps and alerts in the platform help you quickly understand aid needs without needing extra training?")),
            Question("u3", _agree("the platform works well in low-connectivity areas, such as rural zones with intermittent internet?")),
            Question("u4", _agree("the multi-language features make the platform accessible for diverse team members?")),
            Question("u5", _agree("the platform's interface reduces the time needed to coordinate logistics compared to your current tools?")),
        ),
    ),
    Section(
        id="scalability",
        title="Section 2: Scalability and Reliability",
        description=(
            "These questions evaluate the platform's ability to handle growth and maintain "
            "performance, based on features like automated deployments and backups."
        ),
        questions=(
            Question("s1", _agree("the platform handles sudden increases in users (e.g., during a major disaster) without slowing down?")),
            Question("s2", _agree("the platform's quick setup features (like automated deployments) make it practical for small teams with limited IT resources?")),
            Question("s3", _agree("the platform remains reliable across different regions or time zones?")),
            Question("s4", _agree("the platform minimizes downtime during updates, allowing continuous aid coordination?")),
            Question("s5", _agree("the platform's resilience features (e.g., backups) give you confidence in using it for critical tasks?")),
        ),
    ),
    Section(
        id="ai",
        title="Section 3: AI Integration and Effectiveness",
        description=(
            "These questions focus on the perceived value of AI features, such as alerts and "
            "resource prioritization, in humanitarian contexts."
        ),
        questions=(
            Question("a1", _agree("the platform's AI alerts help prioritize medical resources effectively in emergencies?")),
            Question("a2", _agree("the AI features make resource allocation faster and more accurate than manual methods?")),
            Question("a3", _agree("the platform's AI reduces errors in logistics planning, based on your experience?")),
            Question("a4", _agree("the AI updates (e.g., during crises) improve the platform's usefulness without complicating your workflow?")),
            Question("a5", _agree("the AI helps in coordinating with other organizations seamlessly?")),
        ),
    ),
)
