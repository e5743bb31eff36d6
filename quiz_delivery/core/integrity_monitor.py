"""Focus-loss and clipboard signals observed during an attempt.

The monitor is advisory telemetry for the instructor. It records that the
quiz window lost focus and discourages copy/paste, but everything it observes
comes from the test-taker's own machine and can be bypassed there, so it must
not be treated as proof of honest work or of cheating.

Hosts subclass :class:`IntegrityMonitor` to connect real environment events
(see ``quiz_delivery.ui.qt_integrity_monitor``). The base class on its own
behaves as a simulated monitor: tests and headless hosts call
:meth:`IntegrityMonitor.report_focus_lost` directly.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
import logging
from typing import Callable

logger = logging.getLogger(__name__)

ViolationHandler = Callable[[datetime | None], None]


class ClipboardAction(str, Enum):
    COPY = "copy"
    CUT = "cut"
    PASTE = "paste"
    CONTEXT_MENU = "context_menu"


class IntegrityMonitor:
    """Forwards focus-loss signals to registered handlers while armed."""

    def __init__(self) -> None:
        self._handlers: list[ViolationHandler] = []
        self._armed = False
        self._suppressed_count = 0

    @property
    def is_armed(self) -> bool:
        return self._armed

    @property
    def suppressed_count(self) -> int:
        return self._suppressed_count

    def on_violation(self, handler: ViolationHandler) -> None:
        self._handlers.append(handler)

    def arm(self) -> None:
        self._armed = True
        logger.debug("Integrity monitor armed")

    def disarm(self) -> None:
        self._armed = False
        logger.debug("Integrity monitor disarmed")

    def report_focus_lost(self, at: datetime | None = None) -> bool:
        """Deliver one focus-loss occurrence. Returns False when ignored."""
        if not self._armed:
            return False
        for handler in list(self._handlers):
            handler(at)
        return True

    def should_suppress(self, action: ClipboardAction) -> bool:
        """Whether the host should swallow a clipboard or context-menu action."""
        if not self._armed:
            return False
        self._suppressed_count += 1
        logger.debug("Suppressed %s during attempt", action.value)
        return True


class NullIntegrityMonitor(IntegrityMonitor):
    """Monitor for hosts that have no focus signal at all."""

    def report_focus_lost(self, at: datetime | None = None) -> bool:
        return False

    def should_suppress(self, action: ClipboardAction) -> bool:
        return False
