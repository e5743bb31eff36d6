"""In-memory storage of quizzes and recorded responses for the quiz service."""

from __future__ import annotations

from datetime import datetime, timezone
from threading import Lock
from typing import Any

from quiz_delivery.core.models import QuestionType
from quiz_delivery.core.schemas import (
    CheckedAnswerSchema,
    QuestionSchema,
    QuizResponseSchema,
    QuizSchema,
    SubmissionSchema,
)


class DuplicateResponseError(Exception):
    """Raised when a student submits the same quiz twice."""


class UnknownQuizError(KeyError):
    """Raised when a quiz id has not been registered."""


def _is_correct(question: QuestionSchema, student_answer: Any) -> bool:
    if question.type is QuestionType.MULTIPLE_CHOICE:
        keys = question.correct_answers or []
        if len(keys) == 1:
            if isinstance(student_answer, list):
                return student_answer == keys
            return student_answer == keys[0]
        return (
            isinstance(student_answer, list)
            and len(student_answer) == len(keys)
            and set(student_answer) == set(keys)
        )
    if question.type is QuestionType.IDENTIFICATION:
        if not isinstance(student_answer, str) or question.correct_answer is None:
            return False
        return student_answer.strip().casefold() == str(question.correct_answer).strip().casefold()
    return student_answer == question.correct_answer


def grade_answers(
    quiz: QuizSchema, submission: SubmissionSchema
) -> tuple[float, list[CheckedAnswerSchema]]:
    """Score a submission by question id. Missing answers count as wrong."""
    answers = {entry.question_id: entry.answer for entry in submission.answers}
    score = 0.0
    checked: list[CheckedAnswerSchema] = []
    for question in quiz.questions:
        student_answer = answers.get(question.id)
        correct = _is_correct(question, student_answer)
        if correct:
            score += question.points
        checked.append(
            CheckedAnswerSchema(
                correct=correct,
                student_answer=student_answer,
                correct_answer=question.correct_answers
                if question.type is QuestionType.MULTIPLE_CHOICE
                else question.correct_answer,
            )
        )
    return score, checked


class QuizResponseStore:
    """Thread-safe registry of quizzes and one response per (quiz, student)."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._quizzes: dict[str, QuizSchema] = {}
        self._responses: dict[tuple[str, str], QuizResponseSchema] = {}

    def add_quiz(self, quiz: QuizSchema) -> None:
        if not quiz.questions:
            raise ValueError("Quiz must contain at least one question.")
        with self._lock:
            self._quizzes[quiz.id] = quiz

    def get_quiz(self, quiz_id: str) -> QuizSchema:
        with self._lock:
            try:
                return self._quizzes[quiz_id]
            except KeyError:
                raise UnknownQuizError(quiz_id) from None

    def find_response(self, quiz_id: str, student_id: str) -> QuizResponseSchema | None:
        with self._lock:
            return self._responses.get((quiz_id, student_id))

    def record_response(
        self, quiz_id: str, student_id: str, submission: SubmissionSchema
    ) -> QuizResponseSchema:
        if not submission.answers:
            raise ValueError("Answers are required.")
        quiz = self.get_quiz(quiz_id)
        score, checked = grade_answers(quiz, submission)
        with self._lock:
            if (quiz_id, student_id) in self._responses:
                raise DuplicateResponseError(
                    "You have already submitted this quiz. You cannot submit again."
                )
            response = QuizResponseSchema(
                quiz_id=quiz_id,
                student_id=student_id,
                answers=submission.answers,
                submitted_at=datetime.now(timezone.utc),
                score=score,
                checked_answers=checked,
                violation_count=submission.violation_count,
                violation_events=submission.violation_events,
                question_times=submission.question_times,
            )
            self._responses[(quiz_id, student_id)] = response
            return response

    def score_for(self, quiz_id: str, student_id: str) -> tuple[float, float] | None:
        """Return ``(score, total)`` or None when nothing was submitted."""
        response = self.find_response(quiz_id, student_id)
        if response is None:
            return None
        quiz = self.get_quiz(quiz_id)
        total = sum(question.points for question in quiz.questions)
        return response.score, float(total)

    def list_responses(self, quiz_id: str) -> list[QuizResponseSchema]:
        with self._lock:
            responses = [
                response for (stored_quiz_id, _), response in self._responses.items()
                if stored_quiz_id == quiz_id
            ]
        return sorted(responses, key=lambda r: r.submitted_at)
