"""State machine driving one test-taker's attempt at a quiz.

Phases::

    LOADING ──> INTRO ──> IN_PROGRESS ──> SUBMITTING ──> SUBMITTED
       │                                      │
       ├──> UNAVAILABLE                       └──> ALREADY_SUBMITTED
       ├──> ALREADY_SUBMITTED
       └──> LOAD_FAILED

All mutation happens on the thread that owns the machine, in response to
user input, timer ticks and integrity-monitor callbacks. The one blocking
operation, the submission call, is handed to a :class:`SubmissionRunner`
and its result comes back through :meth:`_on_submit_done` or
:meth:`_on_submit_failed`.
"""

from __future__ import annotations

from datetime import datetime
import logging
from typing import NoReturn

from quiz_delivery.core.clock import Clock, utc_now
from quiz_delivery.core.countdown_timer import CountdownTimer, TimerEvent
from quiz_delivery.core.dwell_tracker import DwellTracker
from quiz_delivery.core.errors import (
    AnswerValidationError,
    GatewayError,
    InvalidTransitionError,
    LoadFailure,
)
from quiz_delivery.core.integrity_monitor import IntegrityMonitor
from quiz_delivery.core.models import (
    UNSET,
    Attempt,
    AttemptPayload,
    Phase,
    Question,
    QuestionType,
    Quiz,
    ScoreReport,
    SubmitOutcome,
    TestTaker,
    ViolationEvent,
)
from quiz_delivery.core.ordering import OrderingEngine
from quiz_delivery.core.services.submission_gateway import QuizGateway
from quiz_delivery.core.services.submission_runner import ImmediateRunner, SubmissionRunner

logger = logging.getLogger(__name__)


PHASE_TRANSITIONS: dict[Phase, set[Phase]] = {
    Phase.LOADING: {Phase.INTRO, Phase.UNAVAILABLE, Phase.ALREADY_SUBMITTED, Phase.LOAD_FAILED},
    Phase.INTRO: {Phase.IN_PROGRESS},
    Phase.IN_PROGRESS: {Phase.SUBMITTING},
    Phase.SUBMITTING: {Phase.SUBMITTED, Phase.ALREADY_SUBMITTED},
    Phase.SUBMITTED: set(),
    Phase.ALREADY_SUBMITTED: set(),
    Phase.UNAVAILABLE: set(),
    Phase.LOAD_FAILED: set(),
}


class AttemptObserver:
    """Receives notifications from an :class:`AttemptStateMachine`.

    All hooks are no-ops; hosts override the ones they display.
    """

    def on_phase_changed(self, phase: Phase) -> None:
        pass

    def on_tick(self, remaining_seconds: int) -> None:
        pass

    def on_time_warning(self, remaining_seconds: int) -> None:
        pass

    def on_violation(self, event: ViolationEvent, count: int) -> None:
        pass

    def on_submission_failed(self, error: Exception) -> None:
        pass


class AttemptStateMachine:
    """Owns the phase, the answer buffer and the attempt's monitors."""

    def __init__(
        self,
        quiz_id: str,
        test_taker: TestTaker,
        gateway: QuizGateway,
        *,
        monitor: IntegrityMonitor | None = None,
        runner: SubmissionRunner | None = None,
        observer: AttemptObserver | None = None,
        clock: Clock = utc_now,
        ordering: OrderingEngine | None = None,
    ) -> None:
        self.quiz_id = quiz_id
        self.test_taker = test_taker
        self._gateway = gateway
        self._monitor = monitor or IntegrityMonitor()
        self._runner = runner or ImmediateRunner()
        self._observer = observer or AttemptObserver()
        self._clock = clock
        self._ordering = ordering or OrderingEngine()

        self._phase = Phase.LOADING
        self._quiz: Quiz | None = None
        self._attempt: Attempt | None = None
        self._questions: list[Question] = []
        self._position = 0
        self._intro_visible = True
        self._timer: CountdownTimer | None = None
        self._dwell: DwellTracker | None = None

        self._pending_payload: AttemptPayload | None = None
        self._last_payload: AttemptPayload | None = None
        self._submit_in_flight = False
        self._submission_error: Exception | None = None
        self._submit_calls = 0

        self._monitor.on_violation(self._handle_focus_lost)

    # --- Read-only state ---

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def quiz(self) -> Quiz | None:
        return self._quiz

    @property
    def attempt(self) -> Attempt | None:
        return self._attempt

    @property
    def questions(self) -> list[Question]:
        """Questions in display order."""
        return list(self._questions)

    @property
    def current_position(self) -> int:
        return self._position

    @property
    def current_question(self) -> Question:
        if not self._questions:
            raise InvalidTransitionError("No quiz has been loaded.")
        return self._questions[self._position]

    @property
    def intro_visible(self) -> bool:
        return self._intro_visible

    @property
    def accepts_input(self) -> bool:
        """True while answers and navigation are honored."""
        return self._phase is Phase.IN_PROGRESS

    @property
    def can_start(self) -> bool:
        """True on the intro screen, before or after the clock started."""
        return self._phase is Phase.INTRO or (self.accepts_input and self._intro_visible)

    @property
    def timer(self) -> CountdownTimer | None:
        return self._timer

    @property
    def pending_payload(self) -> AttemptPayload | None:
        return self._pending_payload

    @property
    def last_payload(self) -> AttemptPayload | None:
        return self._last_payload

    @property
    def submission_error(self) -> Exception | None:
        return self._submission_error

    @property
    def is_submit_in_flight(self) -> bool:
        return self._submit_in_flight

    def remaining_seconds(self) -> int | None:
        if self._timer is None:
            return None
        return self._timer.remaining_seconds(self._clock())

    def is_time_expired(self) -> bool:
        return self._timer is not None and self._timer.is_expired_at(self._clock())

    # --- Loading ---

    def load(self) -> Phase:
        """Fetch the quiz and any earlier submission, then leave LOADING."""
        self._require_phase(Phase.LOADING)
        try:
            quiz = self._gateway.load_quiz(self.quiz_id)
            prior = self._gateway.load_prior_submission(self.quiz_id, self.test_taker.id)
        except GatewayError as exc:
            self._fail_load(exc)

        self._quiz = quiz
        if prior is not None:
            logger.info("Found earlier submission of quiz %s by %s", quiz.id, self.test_taker.id)
            self._transition(Phase.ALREADY_SUBMITTED)
            return self._phase
        # A document that parsed but cannot be turned into an attempt is a load failure too.
        try:
            available = bool(quiz.questions) and quiz.timing.is_open(self._clock())
            if available:
                display_order = self._ordering.display_order(quiz, self.test_taker.id)
                questions = [quiz.question_by_id(question_id) for question_id in display_order]
                duration = quiz.timing.duration_seconds()
                timer = CountdownTimer(duration) if duration is not None else None
        except (TypeError, ValueError, KeyError) as exc:
            self._fail_load(exc)
        if not available:
            self._transition(Phase.UNAVAILABLE)
            return self._phase

        self._questions = questions
        self._attempt = Attempt(display_order=display_order)
        self._dwell = DwellTracker(len(display_order))
        self._timer = timer
        self._transition(Phase.INTRO)
        return self._phase

    def _fail_load(self, error: Exception) -> NoReturn:
        logger.error("Loading quiz %s failed: %s", self.quiz_id, error)
        self._quiz = None
        self._transition(Phase.LOAD_FAILED)
        raise LoadFailure(f"Could not load quiz {self.quiz_id}: {error}") from error

    # --- Starting and navigation ---

    def start(self) -> None:
        """Leave the intro screen. The first call starts the clock."""
        if self._phase is Phase.IN_PROGRESS and self._intro_visible:
            self._intro_visible = False
            return
        self._require_phase(Phase.INTRO)
        now = self._clock()
        self._attempt.timer_started_at = now
        self._dwell.start(now)
        self._position = 0
        self._intro_visible = False
        if self._timer is not None:
            self._timer.arm(now)
        self._monitor.arm()
        self._transition(Phase.IN_PROGRESS)

    def next(self) -> int:
        self._require_input()
        if self._position >= len(self._questions) - 1:
            return self._position
        if not self.is_answered(self._position) and not self.is_time_expired():
            raise AnswerValidationError(
                [self._position + 1], "Answer this question before moving on."
            )
        self._move_to(self._position + 1)
        return self._position

    def back(self) -> int:
        self._require_input()
        if self._position == 0:
            # Display only: the clock keeps running behind the intro screen.
            self._intro_visible = True
            return self._position
        self._move_to(self._position - 1)
        return self._position

    def _move_to(self, position: int) -> None:
        self._dwell.credit(self._position, self._clock())
        self._position = position

    # --- Answers ---

    def set_answer(self, value: object, position: int | None = None) -> None:
        self._require_input()
        target = self._position if position is None else position
        if not 0 <= target < len(self._questions):
            raise IndexError(f"Position {target} out of range")
        self._attempt.answers[target] = value

    def clear_answer(self, position: int | None = None) -> None:
        self.set_answer(UNSET, position)

    def answer_at(self, position: int) -> object:
        if self._attempt is None:
            raise InvalidTransitionError("The attempt is no longer active.")
        return self._attempt.answers[position]

    def is_answered(self, position: int) -> bool:
        value = self.answer_at(position)
        if value is UNSET:
            return False
        if self._questions[position].type is QuestionType.MULTIPLE_CHOICE and value == []:
            return False
        return True

    def unanswered_required_positions(self) -> list[int]:
        """1-based positions of required questions that have no answer."""
        return [
            position + 1
            for position, question in enumerate(self._questions)
            if question.required and not self.is_answered(position)
        ]

    # --- Timer and integrity signals ---

    def tick(self, now: datetime | None = None) -> None:
        """Advance the countdown; hosts call this about once a second."""
        if self._phase is not Phase.IN_PROGRESS or self._timer is None:
            return
        now = now or self._clock()
        events = self._timer.tick(now)
        remaining = self._timer.remaining_seconds(now)
        self._observer.on_tick(remaining)
        for event in events:
            if event is TimerEvent.WARNING:
                logger.info("Time warning for quiz %s: %ss left", self.quiz_id, remaining)
                self._observer.on_time_warning(remaining)
            elif event is TimerEvent.EXPIRED:
                logger.info("Time expired for quiz %s; submitting automatically", self.quiz_id)
                self._begin_submission()

    def _handle_focus_lost(self, at: datetime | None) -> None:
        if self._phase is not Phase.IN_PROGRESS:
            logger.debug("Ignoring focus loss in phase %s", self._phase.value)
            return
        event = ViolationEvent(position=self._position, occurred_at=at or self._clock())
        self._attempt.violations.append(event)
        count = self._attempt.violation_count
        logger.warning(
            "Focus lost on question %s of quiz %s (%s total)", self._position + 1, self.quiz_id, count
        )
        self._observer.on_violation(event, count)

    # --- Submission ---

    def submit(self) -> bool:
        """Manual submit. Returns False when a submission already exists.

        Raises :class:`AnswerValidationError` when the quiz is timed, time
        remains and required questions are unanswered.
        """
        if self._phase is Phase.SUBMITTING or self._phase.is_terminal:
            logger.info("Ignoring submit in phase %s", self._phase.value)
            return False
        self._require_input()
        if self._timer is not None and not self.is_time_expired():
            missing = self.unanswered_required_positions()
            if missing:
                raise AnswerValidationError(missing)
        self._begin_submission()
        return True

    def retry_submit(self) -> bool:
        """Send the preserved payload again after a failed submission."""
        if self._phase is not Phase.SUBMITTING or self._submit_in_flight:
            return False
        if self._pending_payload is None:
            raise InvalidTransitionError("No submission to retry.")
        logger.info("Retrying submission of quiz %s", self.quiz_id)
        self._dispatch(self._pending_payload)
        return True

    def _begin_submission(self) -> None:
        now = self._clock()
        self._dwell.credit(self._position, now)
        self._transition(Phase.SUBMITTING)
        self._pending_payload = AttemptPayload(
            answers=self._attempt.build_answers(),
            violation_count=self._attempt.violation_count,
            violation_events=list(self._attempt.violations),
            question_times=self._dwell.seconds(),
        )
        self._dispatch(self._pending_payload)

    def _dispatch(self, payload: AttemptPayload) -> None:
        self._submit_in_flight = True
        self._submission_error = None
        self._submit_calls += 1
        logger.info("Submitting quiz %s (call %s)", self.quiz_id, self._submit_calls)
        self._runner.run(
            lambda: self._gateway.submit_attempt(self.quiz_id, payload),
            self._on_submit_done,
            self._on_submit_failed,
        )

    def _on_submit_done(self, outcome: SubmitOutcome) -> None:
        self._submit_in_flight = False
        if self._phase is not Phase.SUBMITTING:
            return
        self._last_payload = self._pending_payload
        self._pending_payload = None
        if outcome is SubmitOutcome.DUPLICATE:
            self._transition(Phase.ALREADY_SUBMITTED)
        else:
            self._transition(Phase.SUBMITTED)

    def _on_submit_failed(self, error: Exception) -> None:
        self._submit_in_flight = False
        self._submission_error = error
        logger.error("Submission of quiz %s failed: %s", self.quiz_id, error)
        self._observer.on_submission_failed(error)

    def fetch_score(self) -> ScoreReport:
        if self._phase not in (Phase.SUBMITTED, Phase.ALREADY_SUBMITTED):
            raise InvalidTransitionError("The score is available only after submitting.")
        return self._gateway.fetch_score(self.quiz_id)

    # --- Internals ---

    def _transition(self, target: Phase) -> None:
        if target not in PHASE_TRANSITIONS[self._phase]:
            raise InvalidTransitionError(
                f"Cannot move from {self._phase.value} to {target.value}."
            )
        previous = self._phase
        if previous is Phase.IN_PROGRESS:
            if self._timer is not None:
                self._timer.disarm()
            self._monitor.disarm()
        self._phase = target
        if target.is_terminal:
            self._attempt = None
        logger.info("Quiz %s: %s -> %s", self.quiz_id, previous.value, target.value)
        self._observer.on_phase_changed(target)

    def _require_phase(self, phase: Phase) -> None:
        if self._phase is not phase:
            raise InvalidTransitionError(
                f"Expected phase {phase.value}, attempt is {self._phase.value}."
            )

    def _require_input(self) -> None:
        if self._phase is not Phase.IN_PROGRESS:
            raise InvalidTransitionError(
                f"Input is not accepted while the attempt is {self._phase.value}."
            )
