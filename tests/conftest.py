from datetime import datetime, timedelta, timezone

import pytest

from quiz_delivery.core.attempt_state_machine import AttemptObserver, AttemptStateMachine
from quiz_delivery.core.errors import ScoreNotAvailableError
from quiz_delivery.core.integrity_monitor import IntegrityMonitor
from quiz_delivery.core.models import (
    Question,
    QuestionType,
    Quiz,
    ScoreReport,
    SubmitOutcome,
    TestTaker,
    Timing,
)

START = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now=START):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)
        return self.now


class FakeGateway:
    def __init__(self, quiz, prior=None, outcomes=None):
        self.quiz = quiz
        self.prior = prior
        self.outcomes = list(outcomes or [SubmitOutcome.ACCEPTED])
        self.submissions = []
        self.load_error = None
        self.score = ScoreReport(score=3, total=4)

    def load_quiz(self, quiz_id):
        if self.load_error is not None:
            raise self.load_error
        return self.quiz

    def load_prior_submission(self, quiz_id, test_taker_id):
        return self.prior

    def submit_attempt(self, quiz_id, payload):
        self.submissions.append(payload)
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def fetch_score(self, quiz_id):
        if not self.submissions and self.prior is None:
            raise ScoreNotAvailableError("No submission found")
        return self.score


class DeferredRunner:
    """Holds submission jobs until the test resolves them."""

    def __init__(self):
        self.pending = []

    def run(self, job, on_success, on_error):
        self.pending.append((job, on_success, on_error))

    def resolve_all(self):
        while self.pending:
            job, on_success, on_error = self.pending.pop(0)
            try:
                result = job()
            except Exception as exc:
                on_error(exc)
            else:
                on_success(result)


class RecordingObserver(AttemptObserver):
    def __init__(self):
        self.phases = []
        self.warnings = []
        self.violations = []
        self.failures = []
        self.ticks = []

    def on_phase_changed(self, phase):
        self.phases.append(phase)

    def on_tick(self, remaining_seconds):
        self.ticks.append(remaining_seconds)

    def on_time_warning(self, remaining_seconds):
        self.warnings.append(remaining_seconds)

    def on_violation(self, event, count):
        self.violations.append((event, count))

    def on_submission_failed(self, error):
        self.failures.append(error)


def make_quiz(time_limit_minutes=None, shuffle=False, required=(True, True, False), timing=None):
    questions = [
        Question(id="q1", type=QuestionType.MULTIPLE_CHOICE, prompt="Pick B", choices=["A", "B", "C"],
                 required=required[0]),
        Question(id="q2", type=QuestionType.TRUE_FALSE, prompt="Water is dry.", required=required[1]),
        Question(id="q3", type=QuestionType.IDENTIFICATION, prompt="Capital of France?",
                 required=required[2], points=2),
    ]
    if timing is None:
        timing = Timing(
            time_limit_enabled=time_limit_minutes is not None,
            time_limit_minutes=time_limit_minutes,
        )
    return Quiz(id="quiz-1", title="Sample", questions=questions, timing=timing, shuffle_questions=shuffle)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def test_taker():
    return TestTaker(id="student-7", display_name="Alex Reyes", section="10-B")


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def monitor():
    return IntegrityMonitor()


@pytest.fixture
def build_machine(clock, test_taker, observer, monitor):
    def _build(quiz=None, gateway=None, runner=None, **quiz_kwargs):
        gateway = gateway or FakeGateway(quiz or make_quiz(**quiz_kwargs))
        machine = AttemptStateMachine(
            "quiz-1",
            test_taker,
            gateway,
            monitor=monitor,
            runner=runner,
            observer=observer,
            clock=clock,
        )
        return machine, gateway

    return _build
