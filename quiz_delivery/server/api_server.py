"""FastAPI server that records quiz submissions.

The server is a passive recorder: it stores whatever answers, violation
events and per-question times the client reports, grades the answers, and
refuses a second submission from the same student. It does not try to verify
that the client-side monitors were honest.
"""

from __future__ import annotations

import logging
from threading import Thread
import time

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse
import uvicorn

from quiz_delivery.constants.about import APP_NAME, APP_VERSION
from quiz_delivery.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT, STUDENT_ID_HEADER
from quiz_delivery.core.schemas import QuizResponseSchema, ScoreSchema, SubmissionSchema, SubmitResultSchema
from quiz_delivery.core.services.response_store import (
    DuplicateResponseError,
    QuizResponseStore,
    UnknownQuizError,
)

logger = logging.getLogger(__name__)


def _get_store_dependency(store: QuizResponseStore):
    def dependency() -> QuizResponseStore:
        return store

    return dependency


def _student_id(student_id: str | None = Header(default=None, alias=STUDENT_ID_HEADER)) -> str:
    if not student_id or not student_id.strip():
        raise HTTPException(status_code=401, detail="Missing student identity.")
    return student_id.strip()


def create_api_app(store: QuizResponseStore) -> FastAPI:
    """Create a FastAPI application wired to the provided response store."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    store_dep = _get_store_dependency(store)

    @app.exception_handler(HTTPException)
    def http_error(_request: Request, exc: HTTPException) -> JSONResponse:
        # Clients read the "error" key, matching the document store's API.
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    @app.get("/api/quizzes/{quiz_id}")
    def get_quiz(
        quiz_id: str,
        _student: str = Depends(_student_id),
        quiz_store: QuizResponseStore = Depends(store_dep),
    ) -> dict[str, object]:
        try:
            quiz = quiz_store.get_quiz(quiz_id)
        except UnknownQuizError as exc:
            raise HTTPException(status_code=404, detail="Quiz not found") from exc
        return quiz.public_document()

    @app.get("/api/quizzes/{quiz_id}/response/{student_id}")
    def get_response(
        quiz_id: str,
        student_id: str,
        quiz_store: QuizResponseStore = Depends(store_dep),
    ) -> dict[str, object]:
        response = quiz_store.find_response(quiz_id, student_id)
        if response is None:
            raise HTTPException(status_code=404, detail="Response not found.")
        return response.model_dump(mode="json", by_alias=True)

    @app.post("/api/quizzes/{quiz_id}/submit", status_code=201)
    def submit(
        quiz_id: str,
        payload: SubmissionSchema,
        student: str = Depends(_student_id),
        quiz_store: QuizResponseStore = Depends(store_dep),
    ) -> dict[str, object]:
        try:
            response = quiz_store.record_response(quiz_id, student, payload)
        except UnknownQuizError as exc:
            raise HTTPException(status_code=404, detail="Quiz not found") from exc
        except DuplicateResponseError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        logger.info(
            "Recorded quiz %s for %s: score=%s violations=%s",
            quiz_id,
            student,
            response.score,
            response.violation_count,
        )
        result = SubmitResultSchema(message="Quiz submitted successfully.", score=response.score)
        return result.model_dump(mode="json", by_alias=True)

    @app.get("/api/quizzes/{quiz_id}/myscore")
    def my_score(
        quiz_id: str,
        student: str = Depends(_student_id),
        quiz_store: QuizResponseStore = Depends(store_dep),
    ) -> dict[str, object]:
        try:
            result = quiz_store.score_for(quiz_id, student)
        except UnknownQuizError as exc:
            raise HTTPException(status_code=404, detail="Quiz not found") from exc
        if result is None:
            raise HTTPException(status_code=404, detail="No submission found")
        score, total = result
        return ScoreSchema(score=score, total=total).model_dump(mode="json", by_alias=True)

    @app.get("/api/quizzes/{quiz_id}/responses")
    def list_responses(
        quiz_id: str,
        quiz_store: QuizResponseStore = Depends(store_dep),
    ) -> list[dict[str, object]]:
        responses: list[QuizResponseSchema] = quiz_store.list_responses(quiz_id)
        return [response.model_dump(mode="json", by_alias=True) for response in responses]

    return app


def start_api_server(
    store: QuizResponseStore,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    startup_timeout: float = 5.0,
) -> Thread:
    """Start the FastAPI server in a background daemon thread.

    Blocks until uvicorn reports it is listening (or ``startup_timeout``
    passes) so a client started right after can connect.
    """
    app = create_api_app(store)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizApiServer", daemon=True)
    thread.start()
    deadline = time.monotonic() + startup_timeout
    while not server.started and thread.is_alive() and time.monotonic() < deadline:
        time.sleep(0.05)
    if not server.started:
        logger.warning("Quiz API server did not report startup within %ss", startup_timeout)
    return thread
