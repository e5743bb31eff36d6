"""Quiz-related constants shared across UI and core layers."""

TIMER_TICK_INTERVAL_MS: int = 1000
TIME_WARNING_FRACTION: float = 0.4  # warn once 40% of the time limit remains
UNANSWERED_PAYLOAD_VALUE: str = ""
WHEN_TIME_EXPIRES_AUTO_SUBMIT: str = "auto-submit"
DUPLICATE_SUBMISSION_MARKER: str = "already submitted"
