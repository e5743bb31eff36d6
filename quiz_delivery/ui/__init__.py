"""Qt components for the student quiz window."""

from .dialog_helpers import show_error, show_info, show_warning
from .qt_integrity_monitor import QtIntegrityMonitor
from .qt_submission_runner import QtSubmissionRunner
from .quiz_window import QuizWindow

__all__ = [
    "QuizWindow",
    "QtIntegrityMonitor",
    "QtSubmissionRunner",
    "show_error",
    "show_info",
    "show_warning",
]
