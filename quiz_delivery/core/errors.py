"""Exception hierarchy for quiz delivery."""

from __future__ import annotations


class QuizDeliveryError(Exception):
    """Base class for every error raised by the quiz engine and its gateways."""


class AnswerValidationError(QuizDeliveryError):
    """Raised when required questions are unanswered at a guarded transition."""

    def __init__(self, positions: list[int], message: str | None = None) -> None:
        self.positions = list(positions)
        if message is None:
            listed = ", ".join(str(position) for position in self.positions)
            message = f"Please answer the required question(s): {listed}"
        super().__init__(message)


class InvalidTransitionError(QuizDeliveryError, RuntimeError):
    """Raised when an operation is not allowed in the attempt's current phase."""


class LoadFailure(QuizDeliveryError):
    """Raised when the quiz or the prior-submission lookup cannot be loaded."""


class GatewayError(QuizDeliveryError):
    """Base class for failures talking to the quiz service."""


class NetworkError(GatewayError):
    """The request never produced a response (connection, timeout...)."""


class ServerError(GatewayError):
    """The service answered with a 5xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class SubmissionRejectedError(GatewayError):
    """The service refused the payload for a reason other than a duplicate."""


class NotFoundError(GatewayError):
    """The requested resource does not exist on the service."""


class ScoreNotAvailableError(NotFoundError):
    """No graded submission exists yet for this quiz and test-taker."""
