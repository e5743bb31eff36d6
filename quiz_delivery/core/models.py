"""Domain models for quiz delivery."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from quiz_delivery.constants.quiz_constants import (
    UNANSWERED_PAYLOAD_VALUE,
    WHEN_TIME_EXPIRES_AUTO_SUBMIT,
)


class _Unset:
    """Marker for a question the test-taker has not answered yet."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET = _Unset()


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple"
    TRUE_FALSE = "truefalse"
    IDENTIFICATION = "identification"


class Phase(str, Enum):
    """Lifecycle phase of one attempt."""

    LOADING = "loading"
    INTRO = "intro"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    ALREADY_SUBMITTED = "already_submitted"
    UNAVAILABLE = "unavailable"
    LOAD_FAILED = "load_failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_PHASES


TERMINAL_PHASES = frozenset(
    {Phase.SUBMITTED, Phase.ALREADY_SUBMITTED, Phase.UNAVAILABLE, Phase.LOAD_FAILED}
)


class SubmitOutcome(str, Enum):
    ACCEPTED = "accepted"
    DUPLICATE = "duplicate"


@dataclass(slots=True)
class Question:
    """A single quiz question. ``id`` is stable across reorderings."""

    id: str
    type: QuestionType
    prompt: str
    choices: list[str] = field(default_factory=list)
    image_url: str | None = None
    points: int = 1
    required: bool = True


@dataclass(slots=True)
class Timing:
    """Time limit and availability window of a quiz."""

    time_limit_enabled: bool = False
    time_limit_minutes: float | None = None
    open_enabled: bool = False
    open_at: datetime | None = None
    close_enabled: bool = False
    close_at: datetime | None = None
    when_time_expires: str = WHEN_TIME_EXPIRES_AUTO_SUBMIT

    def duration_seconds(self) -> int | None:
        if not self.time_limit_enabled or not self.time_limit_minutes:
            return None
        seconds = int(round(self.time_limit_minutes * 60))
        if seconds <= 0:
            return None
        return seconds

    def is_open(self, now: datetime) -> bool:
        if self.open_enabled and self.open_at is not None and now < self.open_at:
            return False
        if self.close_enabled and self.close_at is not None and now > self.close_at:
            return False
        return True


@dataclass(slots=True)
class Quiz:
    """Quiz definition as delivered to a test-taker (read-only to the engine)."""

    id: str
    title: str
    questions: list[Question]
    instructions: str = ""
    timing: Timing = field(default_factory=Timing)
    total_points: int | None = None
    shuffle_questions: bool = False

    def __post_init__(self) -> None:
        if self.total_points is None:
            self.total_points = sum(question.points for question in self.questions)

    def question_by_id(self, question_id: str) -> Question:
        for question in self.questions:
            if question.id == question_id:
                return question
        raise KeyError(question_id)


@dataclass(slots=True)
class TestTaker:
    """Identity supplied by the host session; never mutated here."""

    __test__ = False  # keep pytest from collecting this class

    id: str
    display_name: str
    section: str | None = None


@dataclass(slots=True)
class ViolationEvent:
    position: int
    occurred_at: datetime

    def to_dict(self) -> dict[str, object]:
        return {"question": self.position, "time": self.occurred_at.isoformat()}


@dataclass(slots=True)
class AnswerEntry:
    question_id: str
    answer: object

    def to_dict(self) -> dict[str, object]:
        return {"questionId": self.question_id, "answer": self.answer}


@dataclass(slots=True)
class AttemptPayload:
    """Frozen snapshot of a finished attempt, sent to the server as-is."""

    answers: list[AnswerEntry]
    violation_count: int
    violation_events: list[ViolationEvent]
    question_times: list[int]

    def answer_for(self, question_id: str) -> object:
        for entry in self.answers:
            if entry.question_id == question_id:
                return entry.answer
        raise KeyError(question_id)

    def to_dict(self) -> dict[str, object]:
        return {
            "answers": [entry.to_dict() for entry in self.answers],
            "violationCount": self.violation_count,
            "violationEvents": [event.to_dict() for event in self.violation_events],
            "questionTimes": list(self.question_times),
        }


@dataclass(slots=True)
class Attempt:
    """In-memory state of one test-taker's attempt at one quiz."""

    display_order: list[str]
    answers: list[object] = field(default_factory=list)
    violations: list[ViolationEvent] = field(default_factory=list)
    timer_started_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.answers:
            self.answers = [UNSET] * len(self.display_order)

    @property
    def violation_count(self) -> int:
        return len(self.violations)

    def build_answers(self) -> list[AnswerEntry]:
        """Fixed-length answer vector in display order, unset mapped to an empty value."""
        return [
            AnswerEntry(
                question_id=question_id,
                answer=UNANSWERED_PAYLOAD_VALUE if answer is UNSET else answer,
            )
            for question_id, answer in zip(self.display_order, self.answers)
        ]


@dataclass(slots=True)
class PriorSubmission:
    quiz_id: str
    test_taker_id: str
    submitted_at: datetime | None = None
    score: float | None = None


@dataclass(slots=True)
class ScoreReport:
    score: float
    total: float
