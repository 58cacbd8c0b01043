# alembic/versions/0001_consents_surveys.py
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

revision = "0001_consents_surveys"
down_revision = None
branch_labels = None
depends_on = None

JSONDocument = sa.JSON().with_variant(JSONB(), "postgresql")


def upgrade():
    op.create_table(
        "consents",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("consent1", sa.Boolean(), nullable=False),
        sa.Column("consent2", sa.Boolean(), nullable=False),
        sa.Column("consent3", sa.Boolean(), nullable=False),
        sa.Column("consent4", sa.Boolean(), nullable=False),
        sa.Column("consent5", sa.Boolean(), nullable=False),
        sa.Column("consent6", sa.Boolean(), nullable=False),
        sa.Column("participant_name", sa.String(255), nullable=False),
        sa.Column("signature", sa.String(255), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "surveys",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("respondent_id", sa.String(255), nullable=True),
        sa.Column("ip", sa.String(64), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("comments", JSONDocument, nullable=False),
        sa.Column("sections", JSONDocument, nullable=False),
        sa.Column("tags", JSONDocument, nullable=False),
        sa.Column("reviewed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_by", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_surveys_respondent_id", "surveys", ["respondent_id"])
    op.create_index("ix_surveys_reviewed_submitted", "surveys", ["reviewed", "submitted_at"])

    op.create_table(
        "survey_answers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("survey_id", sa.Uuid(), sa.ForeignKey("surveys.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("question_id", sa.String(120), nullable=False),
        sa.Column("value", sa.SmallInteger(), nullable=False),
        sa.UniqueConstraint("survey_id", "question_id", name="uq_survey_answers_question"),
        sa.CheckConstraint("value BETWEEN 1 AND 5", name="ck_survey_answers_value"),
    )
    op.create_index("ix_survey_answers_survey_id", "survey_answers", ["survey_id"])


def downgrade():
    op.drop_index("ix_survey_answers_survey_id", table_name="survey_answers")
    op.drop_table("survey_answers")
    op.drop_index("ix_surveys_reviewed_submitted", table_name="surveys")
    op.drop_index("ix_surveys_respondent_id", table_name="surveys")
    op.drop_table("surveys")
    op.drop_table("consents")
