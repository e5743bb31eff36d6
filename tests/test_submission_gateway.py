import json
from datetime import datetime, timezone
from pathlib import Path

from fastapi.testclient import TestClient
import httpx
import pytest

from quiz_delivery.core.errors import (
    NetworkError,
    NotFoundError,
    ScoreNotAvailableError,
    ServerError,
    SubmissionRejectedError,
)
from quiz_delivery.core.models import AnswerEntry, AttemptPayload, QuestionType, SubmitOutcome, ViolationEvent
from quiz_delivery.core.schemas import QuizSchema
from quiz_delivery.core.services.response_store import QuizResponseStore
from quiz_delivery.core.services.submission_gateway import HttpQuizGateway
from quiz_delivery.server.api_server import create_api_app

SAMPLE_QUIZ = Path(__file__).resolve().parents[1] / "quiz_delivery" / "data" / "sample_quiz.json"


def _payload():
    return AttemptPayload(
        answers=[
            AnswerEntry("q1", 1),
            AnswerEntry("q2", False),
            AnswerEntry("q3", ""),
        ],
        violation_count=1,
        violation_events=[ViolationEvent(2, datetime(2026, 3, 2, 9, 1, tzinfo=timezone.utc))],
        question_times=[20, 15, 4],
    )


def _mock_gateway(handler):
    client = httpx.Client(base_url="http://quiz.test", transport=httpx.MockTransport(handler))
    return HttpQuizGateway("student-7", client=client)


@pytest.fixture
def store():
    store = QuizResponseStore()
    store.add_quiz(QuizSchema.model_validate(json.loads(SAMPLE_QUIZ.read_text(encoding="utf-8"))))
    return store


@pytest.fixture
def gateway(store):
    return HttpQuizGateway("student-7", client=TestClient(create_api_app(store)))


def test_load_quiz_from_service(gateway):
    quiz = gateway.load_quiz("sample-quiz")
    assert quiz.title == "Angles and Radians"
    assert quiz.shuffle_questions is True
    assert quiz.timing.duration_seconds() == 300
    assert [question.type for question in quiz.questions] == [
        QuestionType.MULTIPLE_CHOICE,
        QuestionType.TRUE_FALSE,
        QuestionType.IDENTIFICATION,
    ]
    assert quiz.questions[2].required is False
    assert quiz.total_points == 4


def test_unknown_quiz_is_not_found(gateway):
    with pytest.raises(NotFoundError):
        gateway.load_quiz("nope")


def test_submit_then_duplicate(gateway):
    assert gateway.load_prior_submission("sample-quiz", "student-7") is None
    assert gateway.submit_attempt("sample-quiz", _payload()) is SubmitOutcome.ACCEPTED
    assert gateway.submit_attempt("sample-quiz", _payload()) is SubmitOutcome.DUPLICATE

    prior = gateway.load_prior_submission("sample-quiz", "student-7")
    assert prior.test_taker_id == "student-7"
    assert prior.score == 2


def test_score_after_submission(gateway):
    with pytest.raises(ScoreNotAvailableError):
        gateway.fetch_score("sample-quiz")
    gateway.submit_attempt("sample-quiz", _payload())
    report = gateway.fetch_score("sample-quiz")
    assert (report.score, report.total) == (2, 4)


def test_sends_student_header_and_camel_case_body():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json={"message": "ok"})

    _mock_gateway(handler).submit_attempt("quiz-1", _payload())
    request = seen[0]
    assert request.headers["X-Student-Id"] == "student-7"
    body = json.loads(request.content)
    assert body["answers"][2] == {"questionId": "q3", "answer": ""}
    assert body["violationEvents"] == [{"question": 2, "time": "2026-03-02T09:01:00+00:00"}]
    assert body["questionTimes"] == [20, 15, 4]


def test_already_submitted_message_on_bad_request_is_duplicate():
    gateway = _mock_gateway(
        lambda request: httpx.Response(
            400, json={"error": "You have already submitted this quiz. You cannot submit again."}
        )
    )
    assert gateway.submit_attempt("quiz-1", _payload()) is SubmitOutcome.DUPLICATE


def test_other_bad_request_is_rejected():
    gateway = _mock_gateway(lambda request: httpx.Response(400, json={"error": "Answers are required."}))
    with pytest.raises(SubmissionRejectedError, match="Answers are required"):
        gateway.submit_attempt("quiz-1", _payload())


def test_server_failure_keeps_status():
    gateway = _mock_gateway(lambda request: httpx.Response(503, text="down"))
    with pytest.raises(ServerError) as excinfo:
        gateway.submit_attempt("quiz-1", _payload())
    assert excinfo.value.status_code == 503


def test_connection_failure_is_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError):
        _mock_gateway(handler).load_quiz("quiz-1")


def test_malformed_quiz_document_is_server_error():
    gateway = _mock_gateway(lambda request: httpx.Response(200, json={"title": "no id"}))
    with pytest.raises(ServerError):
        gateway.load_quiz("quiz-1")


def test_fractional_time_limit_loads():
    document = json.loads(SAMPLE_QUIZ.read_text(encoding="utf-8"))
    document["timing"]["timeLimit"] = 1.5
    gateway = _mock_gateway(lambda request: httpx.Response(200, json=document))
    assert gateway.load_quiz("sample-quiz").timing.duration_seconds() == 90


def test_redirect_loop_is_network_error():
    def handler(request):
        raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)

    with pytest.raises(NetworkError):
        _mock_gateway(handler).load_quiz("quiz-1")
