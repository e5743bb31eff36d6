import json
from pathlib import Path

from fastapi.testclient import TestClient
import pytest

from quiz_delivery.core.schemas import QuizSchema
from quiz_delivery.core.services.response_store import QuizResponseStore
from quiz_delivery.server.api_server import create_api_app

SAMPLE_QUIZ = Path(__file__).resolve().parents[1] / "quiz_delivery" / "data" / "sample_quiz.json"
HEADERS = {"X-Student-Id": "student-7"}


def _submission(q1=1, q2=True, q3="degree"):
    return {
        "answers": [
            {"questionId": "q2", "answer": q2},
            {"questionId": "q1", "answer": q1},
            {"questionId": "q3", "answer": q3},
        ],
        "violationCount": 1,
        "violationEvents": [{"question": 0, "time": "2026-03-02T09:00:12+00:00"}],
        "questionTimes": [12, 30, 5],
    }


@pytest.fixture
def store():
    store = QuizResponseStore()
    store.add_quiz(QuizSchema.model_validate(json.loads(SAMPLE_QUIZ.read_text(encoding="utf-8"))))
    return store


@pytest.fixture
def client(store):
    return TestClient(create_api_app(store))


def test_quiz_document_hides_answer_keys(client):
    response = client.get("/api/quizzes/sample-quiz", headers=HEADERS)
    assert response.status_code == 200
    document = response.json()
    assert document["_id"] == "sample-quiz"
    assert document["timing"]["timeLimit"] == 5
    assert document["questionBehaviour"]["shuffle"] is True
    for question in document["questions"]:
        assert "correctAnswers" not in question
        assert "correctAnswer" not in question


def test_missing_student_header_is_unauthorized(client):
    response = client.get("/api/quizzes/sample-quiz")
    assert response.status_code == 401
    assert response.json() == {"error": "Missing student identity."}


def test_unknown_quiz(client):
    assert client.get("/api/quizzes/nope", headers=HEADERS).status_code == 404
    response = client.post("/api/quizzes/nope/submit", json=_submission(), headers=HEADERS)
    assert response.status_code == 404
    assert response.json()["error"] == "Quiz not found"


def test_submit_grades_and_records(client, store):
    response = client.post("/api/quizzes/sample-quiz/submit", json=_submission(q3=" Degree "), headers=HEADERS)
    assert response.status_code == 201
    assert response.json()["score"] == 4

    recorded = store.find_response("sample-quiz", "student-7")
    assert recorded.violation_count == 1
    assert recorded.question_times == [12, 30, 5]
    assert [checked.correct for checked in recorded.checked_answers] == [True, True, True]


def test_unanswered_entries_score_zero(client):
    response = client.post(
        "/api/quizzes/sample-quiz/submit", json=_submission(q1="", q2="", q3=""), headers=HEADERS
    )
    assert response.status_code == 201
    assert response.json()["score"] == 0


def test_second_submission_is_conflict(client):
    client.post("/api/quizzes/sample-quiz/submit", json=_submission(), headers=HEADERS)
    response = client.post("/api/quizzes/sample-quiz/submit", json=_submission(q1=0), headers=HEADERS)
    assert response.status_code == 409
    assert "already submitted" in response.json()["error"]


def test_empty_answers_rejected(client):
    response = client.post(
        "/api/quizzes/sample-quiz/submit", json={"answers": []}, headers=HEADERS
    )
    assert response.status_code == 400


def test_prior_response_lookup(client):
    assert client.get("/api/quizzes/sample-quiz/response/student-7").status_code == 404
    client.post("/api/quizzes/sample-quiz/submit", json=_submission(), headers=HEADERS)
    response = client.get("/api/quizzes/sample-quiz/response/student-7")
    assert response.status_code == 200
    body = response.json()
    assert body["studentId"] == "student-7"
    assert body["violationEvents"][0]["question"] == 0


def test_my_score(client):
    missing = client.get("/api/quizzes/sample-quiz/myscore", headers=HEADERS)
    assert missing.status_code == 404
    client.post("/api/quizzes/sample-quiz/submit", json=_submission(q2=False), headers=HEADERS)
    response = client.get("/api/quizzes/sample-quiz/myscore", headers=HEADERS)
    assert response.json() == {"score": 3.0, "total": 4.0}


def test_responses_listed_per_quiz(client):
    client.post("/api/quizzes/sample-quiz/submit", json=_submission(), headers=HEADERS)
    client.post("/api/quizzes/sample-quiz/submit", json=_submission(), headers={"X-Student-Id": "student-8"})
    response = client.get("/api/quizzes/sample-quiz/responses")
    assert [entry["studentId"] for entry in response.json()] == ["student-7", "student-8"]
