"""Static metadata describing QuizDelivery."""

APP_NAME = "QuizDelivery"
APP_VERSION = "0.1"

INTEGRITY_NOTICE_TEXT = (
    "Leaving this window during the quiz is recorded and shared with your instructor. "
    "Copy, paste and right-click are disabled while the quiz is running."
)
