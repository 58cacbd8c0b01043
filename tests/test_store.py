import uuid
from datetime import datetime, timedelta, timezone

import pytest

from app.core.errors import NotFoundError, ValidationError
from app.models.consent import Consent
from app.models.survey import Survey, SurveyAnswer
from app.services import store
from app.services.answers import normalize_answers

from conftest import as_utc


def _pairs(answers):
    return {(a["questionId"], a["value"]) for a in answers}


# -------------------- consentimientos -------------------- #

def test_create_consent_persists_sanitized_record(db, consent_payload):
    consent_id = store.create_consent(db, consent_payload, ip_address="10.0.0.1", user_agent="pytest")

    row = db.query(Consent).filter(Consent.id == consent_id).one()
    assert row.participant_name == "Ada Lovelace"
    assert row.consent6 is True
    assert row.ip_address == "10.0.0.1"
    assert row.user_agent == "pytest"
    assert row.created_at is not None


def test_invalid_consent_is_never_written(db, consent_payload):
    consent_payload["consent3"] = False
    with pytest.raises(ValidationError) as exc:
        store.create_consent(db, consent_payload)

    assert exc.value.messages == ["consent3 must be checked"]
    assert db.query(Consent).count() == 0


def test_delete_consent_twice(db, consent_payload):
    consent_id = store.create_consent(db, consent_payload)

    store.delete_consent(db, consent_id)
    with pytest.raises(NotFoundError):
        store.delete_consent(db, consent_id)


def test_delete_consent_with_malformed_id(db):
    with pytest.raises(NotFoundError):
        store.delete_consent(db, "not-a-uuid")


# -------------------- encuestas -------------------- #

def test_survey_round_trip(db, survey_payload):
    survey_id = store.create_survey(db, survey_payload, ip="127.0.0.1")
    survey = store.get_survey(db, str(survey_id))

    stored = [{"questionId": a.question_id, "value": a.value} for a in survey.answers]
    assert _pairs(normalize_answers(stored)) == _pairs(survey_payload["answers"])
    assert survey.comments == {"usability": "ok", "final": ""}
    assert survey.sections[0] == {"id": "usability", "title": "Usability", "questionIds": ["u1", "u2"]}
    assert survey.tags == ["pilot"]
    assert survey.respondent_id == "r-1"
    assert survey.ip == "127.0.0.1"
    assert survey.reviewed is False


def test_map_answers_keep_submission_order(db):
    survey_id = store.create_survey(db, {"answers": {"b": 2, "a": "4"}})
    survey = store.get_survey(db, survey_id)

    assert [(a.question_id, a.value) for a in survey.answers] == [("b", 2), ("a", 4)]


def test_defaults_for_metadata(db):
    before = datetime.now(timezone.utc)
    survey = store.get_survey(db, store.create_survey(db, {"answers": {"u1": 1}, "metadata": {"ip": "1.2.3.4"}}))

    assert survey.title == "Cloud-Native Disaster Response Platform Survey"
    assert survey.ip == "1.2.3.4"
    assert as_utc(survey.submitted_at) >= before


def test_duplicate_tags_are_collapsed_in_order(db):
    payload = {"answers": {"u1": 2}, "tags": ["pilot", "wave-2", "pilot", "wave-2", "late"]}

    survey = store.get_survey(db, store.create_survey(db, payload))

    assert survey.tags == ["pilot", "wave-2", "late"]


def test_over_long_question_id_is_a_validation_error(db):
    payload = {"answers": [{"questionId": "q" * 500, "value": 3}], "metadata": {"respondentId": "r" * 1000}}

    with pytest.raises(ValidationError) as exc:
        store.create_survey(db, payload)

    assert len(exc.value.messages) == 2
    assert db.query(Survey).count() == 0


def test_duplicate_question_id_rejected_at_persistence(db):
    payload = {"answers": [{"questionId": "u1", "value": 1}, {"questionId": "u1", "value": 2}]}

    with pytest.raises(ValidationError) as exc:
        store.create_survey(db, payload)

    assert "Duplicate questionId" in str(exc.value)
    assert db.query(Survey).count() == 0
    assert db.query(SurveyAnswer).count() == 0


def test_schema_violation_rejected(db):
    with pytest.raises(ValidationError):
        store.create_survey(db, {"answers": {"u1": 7}})
    assert db.query(Survey).count() == 0


def _seed(db, n=12, **extra):
    base = datetime(2025, 1, 1, tzinfo=timezone.utc)
    for i in range(1, n + 1):
        payload = {
            "metadata": {"respondentId": f"r{i}", "submittedAt": (base + timedelta(minutes=i)).isoformat()},
            "answers": {"u1": 3},
        }
        payload.update(extra)
        store.create_survey(db, payload)


def test_pagination_newest_first(db):
    _seed(db, 12)

    result = store.list_surveys(db, page=2, limit=5)

    assert result.total == 12
    assert result.pages == 3
    assert result.page == 2
    assert [s.respondent_id for s in result.results] == ["r7", "r6", "r5", "r4", "r3"]


def test_last_page_is_partial(db):
    _seed(db, 12)
    result = store.list_surveys(db, page=3, limit=5)
    assert [s.respondent_id for s in result.results] == ["r2", "r1"]


@pytest.mark.parametrize("limit, expected", [(1, 5), (5, 5), (50, 50), (1000, 200), (None, 25)])
def test_limit_is_clamped(db, limit, expected):
    assert store.list_surveys(db, limit=limit).limit == expected


def test_page_below_one_is_first_page(db):
    _seed(db, 3)
    result = store.list_surveys(db, page=0)
    assert result.page == 1
    assert len(result.results) == 3


def test_filters(db):
    _seed(db, 3)
    store.create_survey(db, {"metadata": {"respondentId": "r2"}, "answers": {"u1": 1}, "reviewed": True})

    reviewed = store.list_surveys(db, reviewed=True)
    assert reviewed.total == 1

    pending = store.list_surveys(db, reviewed=False)
    assert pending.total == 3

    by_respondent = store.list_surveys(db, respondent_id="r2")
    assert by_respondent.total == 2
    assert by_respondent.pages == 1


def test_get_survey_not_found(db):
    with pytest.raises(NotFoundError):
        store.get_survey(db, uuid.uuid4())
    with pytest.raises(NotFoundError):
        store.get_survey(db, "123")


def test_mark_reviewed_sets_timestamp_and_keeps_content(db, survey_payload):
    survey_id = store.create_survey(db, survey_payload)
    before = datetime.now(timezone.utc)

    survey = store.update_survey(db, survey_id, {"reviewed": True})

    assert survey.reviewed is True
    assert as_utc(survey.reviewed_at) >= before
    assert _pairs({"questionId": a.question_id, "value": a.value} for a in survey.answers) == _pairs(
        survey_payload["answers"]
    )
    assert survey.comments == survey_payload["comments"]


def test_explicit_reviewed_at_and_reviewer(db, survey_payload):
    survey_id = store.create_survey(db, survey_payload)
    when = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)

    survey = store.update_survey(
        db, survey_id, {"reviewed": True, "reviewedAt": when.isoformat(), "reviewedBy": "dr. who"}
    )

    assert as_utc(survey.reviewed_at) == when
    assert survey.reviewed_by == "dr. who"


def test_comments_are_merged(db, survey_payload):
    survey_id = store.create_survey(db, survey_payload)

    survey = store.update_survey(db, survey_id, {"comments": {"usability": "changed", "ai": "new"}})

    assert survey.comments == {"usability": "changed", "final": "", "ai": "new"}


def test_answers_are_replaced_wholesale(db, survey_payload):
    survey_id = store.create_survey(db, survey_payload)

    survey = store.update_survey(
        db, survey_id, {"answers": [{"questionId": "u1", "value": 1}, {"questionId": "a1", "value": 2}]}
    )

    assert [(a.question_id, a.value) for a in survey.answers] == [("u1", 1), ("a1", 2)]
    assert db.query(SurveyAnswer).count() == 2


def test_replacement_answers_must_be_unique(db, survey_payload):
    survey_id = store.create_survey(db, survey_payload)

    with pytest.raises(ValidationError):
        store.update_survey(
            db, survey_id, {"answers": [{"questionId": "u1", "value": 1}, {"questionId": "u1", "value": 2}]}
        )

    survey = store.get_survey(db, survey_id)
    assert len(survey.answers) == 3


def test_immutable_fields_are_ignored(db, survey_payload):
    survey_id = store.create_survey(db, survey_payload)

    survey = store.update_survey(db, survey_id, {"tags": ["x"], "metadata": {"title": "other"}})

    assert survey.tags == ["pilot"]
    assert survey.title == "Pilot"


def test_update_missing_survey(db):
    with pytest.raises(NotFoundError):
        store.update_survey(db, uuid.uuid4(), {"reviewed": True})


def test_delete_survey(db, survey_payload):
    survey_id = store.create_survey(db, survey_payload)

    assert store.delete_survey(db, survey_id) == survey_id
    assert db.query(SurveyAnswer).count() == 0
    with pytest.raises(NotFoundError):
        store.delete_survey(db, survey_id)
