"""Boundary between the attempt engine and the quiz service."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from pydantic import ValidationError

from quiz_delivery.constants.network_constants import (
    API_BASE_URL,
    REQUEST_TIMEOUT_SECONDS,
    STUDENT_ID_HEADER,
)
from quiz_delivery.constants.quiz_constants import DUPLICATE_SUBMISSION_MARKER
from quiz_delivery.core.errors import (
    GatewayError,
    NetworkError,
    NotFoundError,
    ScoreNotAvailableError,
    ServerError,
    SubmissionRejectedError,
)
from quiz_delivery.core.models import AttemptPayload, PriorSubmission, Quiz, ScoreReport, SubmitOutcome
from quiz_delivery.core.schemas import QuizResponseSchema, QuizSchema, ScoreSchema

logger = logging.getLogger(__name__)


class QuizGateway(Protocol):
    """Operations the attempt engine needs from the outside world."""

    def load_quiz(self, quiz_id: str) -> Quiz: ...

    def load_prior_submission(self, quiz_id: str, test_taker_id: str) -> PriorSubmission | None: ...

    def submit_attempt(self, quiz_id: str, payload: AttemptPayload) -> SubmitOutcome: ...

    def fetch_score(self, quiz_id: str) -> ScoreReport: ...


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("error") or body.get("detail") or body)
    return str(body)


class HttpQuizGateway:
    """:class:`QuizGateway` backed by the quiz service's REST API.

    A submission is sent exactly once per call; the gateway never retries on
    its own, so a lost response cannot turn into a second recorded attempt.
    """

    def __init__(
        self,
        test_taker_id: str,
        base_url: str = API_BASE_URL,
        client: httpx.Client | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.test_taker_id = test_taker_id
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)
        self._owns_client = client is None

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpQuizGateway:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def load_quiz(self, quiz_id: str) -> Quiz:
        response = self._request("GET", f"/api/quizzes/{quiz_id}")
        if response.status_code == 404:
            raise NotFoundError(f"Quiz {quiz_id} not found.")
        self._raise_for_status(response)
        try:
            return QuizSchema.model_validate(response.json()).to_domain()
        except (ValueError, ValidationError) as exc:
            raise ServerError(f"Malformed quiz document: {exc}", response.status_code) from exc

    def load_prior_submission(self, quiz_id: str, test_taker_id: str) -> PriorSubmission | None:
        response = self._request("GET", f"/api/quizzes/{quiz_id}/response/{test_taker_id}")
        if response.status_code == 404:
            return None
        self._raise_for_status(response)
        try:
            return QuizResponseSchema.model_validate(response.json()).to_prior_submission()
        except (ValueError, ValidationError) as exc:
            raise ServerError(f"Malformed submission document: {exc}", response.status_code) from exc

    def submit_attempt(self, quiz_id: str, payload: AttemptPayload) -> SubmitOutcome:
        response = self._request("POST", f"/api/quizzes/{quiz_id}/submit", json=payload.to_dict())
        if response.status_code in (200, 201):
            logger.info("Submission for quiz %s accepted", quiz_id)
            return SubmitOutcome.ACCEPTED
        message = _error_message(response)
        if response.status_code == 409 or (
            response.status_code == 400 and DUPLICATE_SUBMISSION_MARKER in message.lower()
        ):
            logger.info("Quiz %s was already submitted by %s", quiz_id, self.test_taker_id)
            return SubmitOutcome.DUPLICATE
        if 400 <= response.status_code < 500:
            raise SubmissionRejectedError(message)
        self._raise_for_status(response)
        raise ServerError(f"Unexpected status {response.status_code}: {message}", response.status_code)

    def fetch_score(self, quiz_id: str) -> ScoreReport:
        response = self._request("GET", f"/api/quizzes/{quiz_id}/myscore")
        if response.status_code == 404:
            raise ScoreNotAvailableError(_error_message(response))
        self._raise_for_status(response)
        try:
            return ScoreSchema.model_validate(response.json()).to_domain()
        except (ValueError, ValidationError) as exc:
            raise ServerError(f"Malformed score document: {exc}", response.status_code) from exc

    def _request(self, method: str, url: str, **kwargs: object) -> httpx.Response:
        headers = {STUDENT_ID_HEADER: self.test_taker_id}
        try:
            return self._client.request(method, url, headers=headers, **kwargs)
        except httpx.RequestError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise NetworkError(str(exc) or exc.__class__.__name__) from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.status_code >= 500:
            raise ServerError(_error_message(response), response.status_code)
        if response.status_code >= 400:
            raise GatewayError(f"{response.status_code}: {_error_message(response)}")
