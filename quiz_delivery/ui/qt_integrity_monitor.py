"""Qt host for the integrity monitor."""

from __future__ import annotations

import logging

from PySide6.QtCore import QEvent, QObject
from PySide6.QtGui import QKeySequence
from PySide6.QtWidgets import QApplication, QWidget

from quiz_delivery.core.integrity_monitor import ClipboardAction, IntegrityMonitor

logger = logging.getLogger(__name__)

_SUPPRESSED_SHORTCUTS = (
    (QKeySequence.StandardKey.Copy, ClipboardAction.COPY),
    (QKeySequence.StandardKey.Cut, ClipboardAction.CUT),
    (QKeySequence.StandardKey.Paste, ClipboardAction.PASTE),
)


class _QuizWindowEventFilter(QObject):
    """Application-wide filter translating Qt events into monitor calls."""

    def __init__(self, monitor: QtIntegrityMonitor, window: QWidget) -> None:
        super().__init__(window)
        self._monitor = monitor
        self._window = window

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:  # noqa: N802 - Qt override
        event_type = event.type()
        if event_type == QEvent.Type.WindowDeactivate and watched is self._window:
            self._monitor.report_focus_lost()
            return False
        if event_type == QEvent.Type.ContextMenu:
            return self._monitor.should_suppress(ClipboardAction.CONTEXT_MENU)
        if event_type == QEvent.Type.KeyPress:
            for shortcut, action in _SUPPRESSED_SHORTCUTS:
                if event.matches(shortcut):
                    return self._monitor.should_suppress(action)
        return False


class QtIntegrityMonitor(IntegrityMonitor):
    """Reports the quiz window losing activation and swallows clipboard shortcuts.

    The filter is installed only while the monitor is armed. Another
    application, a second screen or a phone are all invisible to it.
    """

    def __init__(self, window: QWidget) -> None:
        super().__init__()
        self._filter = _QuizWindowEventFilter(self, window)
        self._installed = False

    def arm(self) -> None:
        super().arm()
        app = QApplication.instance()
        if app is not None and not self._installed:
            app.installEventFilter(self._filter)
            self._installed = True

    def disarm(self) -> None:
        super().disarm()
        app = QApplication.instance()
        if app is not None and self._installed:
            app.removeEventFilter(self._filter)
            self._installed = False
