import json
from datetime import datetime, timezone

import httpx
import pytest

from app.forms.api_client import StudyApiClient
from app.forms.catalog import DEFAULT_SECTIONS, Question, Section
from app.forms.survey_form import (
    DEBRIEF_LOCATION,
    NETWORK_ERROR_MSG,
    SUCCESS_NOTICE,
    SUCCESS_NOTICE_SECONDS,
    AnswerSelected,
    BackRequested,
    CommentChanged,
    NextRequested,
    Phase,
    SubmitRequested,
    SurveyFormConfig,
    SurveyFormController,
    SurveyFormState,
    all_answered,
    can_submit,
    first_incomplete_section,
    is_section_complete,
    missing_questions,
    transition,
)
from app.models.survey import Survey, SurveyAnswer

BASE_URL = "http://testserver"
FIXED_NOW = datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc)
ALL_IDS = [qid for s in DEFAULT_SECTIONS for qid in s.question_ids]

CONFIG = SurveyFormConfig()


def _run(state, *events, config=CONFIG):
    for event in events:
        state = transition(config, state, event)
    return state


def _answer_section(state, index, value=3):
    return _run(state, *(AnswerSelected(qid, value) for qid in DEFAULT_SECTIONS[index].question_ids))


def _complete_state():
    state = SurveyFormState()
    for i in range(len(DEFAULT_SECTIONS)):
        state = _answer_section(state, i)
        state = _run(state, NextRequested())
    return state


# -------------------- transiciones -------------------- #

class TestNavigation:
    def test_next_blocked_until_section_complete(self):
        state = _run(SurveyFormState(), AnswerSelected("u1", 4), NextRequested())

        assert state.active_index == 0
        assert state.error == "Please answer all questions in this section before continuing. Missing: 4"

        state = _answer_section(state, 0)
        assert state.error == ""
        state = _run(state, NextRequested())
        assert state.active_index == 1

    def test_back_has_no_gate(self):
        state = _run(_answer_section(SurveyFormState(), 0), NextRequested(), NextRequested())
        assert state.active_index == 1
        assert state.error

        state = _run(state, BackRequested())
        assert state.active_index == 0
        assert state.error == ""
        assert _run(state, BackRequested()).active_index == 0

    def test_next_never_passes_last_section(self):
        state = _complete_state()
        assert state.active_index == len(DEFAULT_SECTIONS) - 1
        assert _run(state, NextRequested()).active_index == len(DEFAULT_SECTIONS) - 1

    def test_require_all_disabled(self):
        config = SurveyFormConfig(require_all=False)
        state = _run(SurveyFormState(), NextRequested(), NextRequested(), config=config)

        assert state.active_index == 2
        assert is_section_complete(config, state)
        state = _run(state, SubmitRequested(), config=config)
        assert state.phase is Phase.SUBMITTING


class TestAnswersAndComments:
    def test_answers_are_sparse(self):
        state = _run(SurveyFormState(), AnswerSelected("u2", "5"))
        assert dict(state.answers) == {"u2": 5}

    @pytest.mark.parametrize("value", [0, 6, "x", None, 2.5, True])
    def test_invalid_values_are_not_stored(self, value):
        state = _run(SurveyFormState(), AnswerSelected("u1", value))
        assert "u1" not in state.answers
        assert state.error

    def test_unknown_question_is_ignored(self):
        state = SurveyFormState()
        assert _run(state, AnswerSelected("zz", 3)) == state

    def test_empty_comment_differs_from_absent(self):
        state = _run(SurveyFormState(), CommentChanged("usability", ""), CommentChanged("final", "bye"))
        assert dict(state.comments) == {"usability": "", "final": "bye"}
        assert "ai" not in state.comments

    def test_state_is_not_mutated(self):
        state = SurveyFormState()
        _run(state, AnswerSelected("u1", 1))
        assert dict(state.answers) == {}


class TestSubmitGate:
    def test_submit_ignored_before_last_section(self):
        state = _answer_section(SurveyFormState(), 0)
        assert _run(state, SubmitRequested()) == state

    def test_submit_jumps_to_first_incomplete_section(self):
        state = _complete_state()
        answers = dict(state.answers)
        del answers["s3"]
        state = SurveyFormState(active_index=2, answers=answers)

        state = _run(state, SubmitRequested())

        assert state.phase is Phase.EDITING
        assert state.active_index == 1
        assert state.error == "Please answer all questions before submitting. Missing: 1"

    @pytest.mark.parametrize("dropped", [None] + ALL_IDS)
    def test_submission_iff_all_answered(self, dropped):
        answers = {qid: 4 for qid in ALL_IDS if qid != dropped}
        state = SurveyFormState(active_index=2, answers=answers)

        submitted = _run(state, SubmitRequested()).phase is Phase.SUBMITTING

        assert submitted == (dropped is None)
        assert submitted == all_answered(CONFIG, state) == can_submit(CONFIG, state)

    def test_missing_follows_section_order(self):
        answers = {"a5": 1, "u1": 2}
        assert missing_questions(DEFAULT_SECTIONS, answers)[:2] == ["u2", "u3"]
        assert first_incomplete_section(DEFAULT_SECTIONS, {qid: 1 for qid in ALL_IDS}) is None

    def test_edits_ignored_while_submitting(self):
        state = _run(_complete_state(), SubmitRequested())
        assert state.phase is Phase.SUBMITTING
        assert _run(state, AnswerSelected("u1", 1), BackRequested(), SubmitRequested()) == state


def test_config_requires_sections():
    with pytest.raises(ValueError):
        SurveyFormConfig(sections=())


# -------------------- controlador -------------------- #

def _controller(http, **kwargs):
    ctrl = SurveyFormController(StudyApiClient(http), clock=lambda: FIXED_NOW, **kwargs)
    for i, section in enumerate(ctrl.config.sections):
        for qid in section.question_ids:
            ctrl.answer(qid, 1 + (i % 5))
        ctrl.next()
    ctrl.comment("final", "great study")
    return ctrl


@pytest.mark.asyncio
async def test_submit_success_resets_and_navigates(httpx_mock):
    httpx_mock.add_response(
        method="POST", url=f"{BASE_URL}/api/surveys", status_code=201, json={"id": "x1", "message": "Survey saved"}
    )
    received = []
    sleeps = []

    async def fake_sleep(seconds):
        sleeps.append(seconds)

    async with httpx.AsyncClient(base_url=BASE_URL) as http:
        ctrl = _controller(http, on_success=received.append)
        state = await ctrl.submit()

        assert state.phase is Phase.SUBMITTED
        assert state.notice == SUCCESS_NOTICE
        assert dict(state.answers) == {} and dict(state.comments) == {}
        assert state.active_index == 0
        assert received == [{"id": "x1", "message": "Survey saved"}]

        state = await ctrl.finish(sleep=fake_sleep)

    assert state.phase is Phase.FINISHED
    assert state.location == DEBRIEF_LOCATION
    assert sleeps == [SUCCESS_NOTICE_SECONDS]

    payload = json.loads(httpx_mock.get_request().content)
    assert payload["metadata"] == {
        "title": "Cloud-Native Disaster Response Platform Survey",
        "submittedAt": FIXED_NOW.isoformat(),
    }
    assert payload["answers"]["u1"] == 1 and payload["answers"]["a5"] == 3
    assert len(payload["answers"]) == 15
    assert payload["comments"] == {"final": "great study"}
    assert payload["sections"][0] == {
        "id": "usability",
        "title": "Section 1: Usability and User Experience",
        "questionIds": ["u1", "u2", "u3", "u4", "u5"],
    }


@pytest.mark.asyncio
async def test_server_error_is_shown_verbatim(httpx_mock):
    httpx_mock.add_response(method="POST", status_code=400, json={"error": "answers.0.value: too big"})

    async with httpx.AsyncClient(base_url=BASE_URL) as http:
        ctrl = _controller(http)
        state = await ctrl.submit()

    assert state.phase is Phase.EDITING
    assert state.error == "answers.0.value: too big"
    assert state.active_index == 2
    assert len(state.answers) == 15


@pytest.mark.asyncio
async def test_server_error_without_body(httpx_mock):
    httpx_mock.add_response(method="POST", status_code=502, text="bad gateway")

    async with httpx.AsyncClient(base_url=BASE_URL) as http:
        state = await _controller(http).submit()

    assert state.error == "Server returned 502"


@pytest.mark.asyncio
async def test_network_failure(httpx_mock):
    httpx_mock.add_exception(httpx.ConnectError("connection refused"))

    async with httpx.AsyncClient(base_url=BASE_URL) as http:
        state = await _controller(http).submit()

    assert state.phase is Phase.EDITING
    assert state.error == NETWORK_ERROR_MSG


@pytest.mark.asyncio
async def test_incomplete_survey_never_hits_the_network(httpx_mock):
    async with httpx.AsyncClient(base_url=BASE_URL) as http:
        ctrl = SurveyFormController(StudyApiClient(http))
        ctrl.next()
        ctrl.next()
        state = await ctrl.submit()

    assert state.phase is Phase.EDITING
    assert httpx_mock.get_requests() == []


@pytest.mark.asyncio
async def test_only_one_request_in_flight(httpx_mock):
    async with httpx.AsyncClient(base_url=BASE_URL) as http:
        ctrl = _controller(http)
        ctrl.dispatch(SubmitRequested())
        assert ctrl.state.phase is Phase.SUBMITTING

        state = await ctrl.submit()

    assert state.phase is Phase.SUBMITTING
    assert httpx_mock.get_requests() == []


@pytest.mark.asyncio
async def test_finish_is_noop_before_success():
    async with httpx.AsyncClient(base_url=BASE_URL) as http:
        ctrl = SurveyFormController(StudyApiClient(http))
        assert (await ctrl.finish()).phase is Phase.EDITING


@pytest.mark.asyncio
async def test_custom_sections_and_title(httpx_mock):
    httpx_mock.add_response(method="POST", status_code=201, json={"id": "x", "message": "Survey saved"})
    sections = (Section("only", "Only", questions=(Question("q1", "?"),)),)

    async with httpx.AsyncClient(base_url=BASE_URL) as http:
        ctrl = SurveyFormController(StudyApiClient(http), sections, title="Pilot")
        ctrl.answer("q1", 2)
        state = await ctrl.submit()

    assert state.phase is Phase.SUBMITTED
    payload = json.loads(httpx_mock.get_request().content)
    assert payload["metadata"]["title"] == "Pilot"
    assert payload["sections"] == [{"id": "only", "title": "Only", "questionIds": ["q1"]}]


@pytest.mark.asyncio
async def test_end_to_end_against_the_api(db):
    from app.main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url=BASE_URL) as http:
        state = await _controller(http).submit()

    assert state.phase is Phase.SUBMITTED
    survey = db.query(Survey).one()
    assert db.query(SurveyAnswer).count() == 15
    assert survey.comments == {"final": "great study"}
    assert [s["id"] for s in survey.sections] == ["usability", "scalability", "ai"]
