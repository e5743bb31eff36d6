"""Pydantic models for the JSON documents exchanged with the quiz service.

Field aliases follow the camelCase keys of the stored quiz documents; both the
FastAPI server and the httpx gateway validate through these models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from quiz_delivery.core.models import (
    AttemptPayload,
    PriorSubmission,
    Question,
    QuestionType,
    Quiz,
    ScoreReport,
    Timing,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class QuestionSchema(_CamelModel):
    id: str = Field(alias="_id")
    type: QuestionType
    question: str
    choices: list[str] = Field(default_factory=list)
    image: str | None = None
    points: int = 1
    required: bool = True
    correct_answers: list[int] | None = Field(default=None, alias="correctAnswers")
    correct_answer: Any = Field(default=None, alias="correctAnswer")

    def to_domain(self) -> Question:
        return Question(
            id=self.id,
            type=self.type,
            prompt=self.question,
            choices=list(self.choices),
            image_url=self.image,
            points=self.points,
            required=self.required,
        )


class TimingSchema(_CamelModel):
    open: datetime | None = None
    open_enabled: bool = Field(default=False, alias="openEnabled")
    close: datetime | None = None
    close_enabled: bool = Field(default=False, alias="closeEnabled")
    time_limit: float | None = Field(default=None, alias="timeLimit")
    time_limit_enabled: bool = Field(default=False, alias="timeLimitEnabled")
    when_time_expires: str = Field(default="auto-submit", alias="whenTimeExpires")

    @field_validator("open", "close")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # Stored documents may carry timestamps without an offset; they are UTC.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_domain(self) -> Timing:
        return Timing(
            time_limit_enabled=self.time_limit_enabled,
            time_limit_minutes=self.time_limit,
            open_enabled=self.open_enabled,
            open_at=self.open,
            close_enabled=self.close_enabled,
            close_at=self.close,
            when_time_expires=self.when_time_expires,
        )


class QuestionBehaviourSchema(_CamelModel):
    shuffle: bool = False


class QuizSchema(_CamelModel):
    id: str = Field(alias="_id")
    title: str
    instructions: str = ""
    points: int | None = None
    questions: list[QuestionSchema]
    timing: TimingSchema = Field(default_factory=TimingSchema)
    question_behaviour: QuestionBehaviourSchema = Field(
        default_factory=QuestionBehaviourSchema, alias="questionBehaviour"
    )

    def to_domain(self) -> Quiz:
        return Quiz(
            id=self.id,
            title=self.title,
            instructions=self.instructions,
            questions=[question.to_domain() for question in self.questions],
            timing=self.timing.to_domain(),
            total_points=self.points,
            shuffle_questions=self.question_behaviour.shuffle,
        )

    def public_document(self) -> dict[str, Any]:
        """Quiz JSON as served to test-takers, with the answer keys removed."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude={"questions": {"__all__": {"correct_answers", "correct_answer"}}},
        )


class AnswerSchema(_CamelModel):
    question_id: str = Field(alias="questionId")
    answer: Any


class ViolationEventSchema(_CamelModel):
    question: int
    time: str


class SubmissionSchema(_CamelModel):
    answers: list[AnswerSchema]
    violation_count: int = Field(default=0, alias="violationCount")
    violation_events: list[ViolationEventSchema] = Field(default_factory=list, alias="violationEvents")
    question_times: list[int] = Field(default_factory=list, alias="questionTimes")

    @classmethod
    def from_payload(cls, payload: AttemptPayload) -> SubmissionSchema:
        return cls.model_validate(payload.to_dict())


class SubmitResultSchema(_CamelModel):
    message: str
    score: float | None = None


class ScoreSchema(_CamelModel):
    score: float
    total: float

    def to_domain(self) -> ScoreReport:
        return ScoreReport(score=self.score, total=self.total)


class CheckedAnswerSchema(_CamelModel):
    correct: bool
    student_answer: Any = Field(default=None, alias="studentAnswer")
    correct_answer: Any = Field(default=None, alias="correctAnswer")


class QuizResponseSchema(_CamelModel):
    """A recorded submission, as stored and as returned for review."""

    quiz_id: str = Field(alias="quizId")
    student_id: str = Field(alias="studentId")
    answers: list[AnswerSchema]
    submitted_at: datetime = Field(alias="submittedAt")
    score: float = 0
    checked_answers: list[CheckedAnswerSchema] = Field(default_factory=list, alias="checkedAnswers")
    violation_count: int = Field(default=0, alias="violationCount")
    violation_events: list[ViolationEventSchema] = Field(default_factory=list, alias="violationEvents")
    question_times: list[int] = Field(default_factory=list, alias="questionTimes")

    def to_prior_submission(self) -> PriorSubmission:
        return PriorSubmission(
            quiz_id=self.quiz_id,
            test_taker_id=self.student_id,
            submitted_at=self.submitted_at,
            score=self.score,
        )
