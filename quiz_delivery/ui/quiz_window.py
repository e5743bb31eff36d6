"""Qt main window that delivers one quiz attempt to a student."""

from __future__ import annotations

import logging

from PySide6.QtCore import Qt, QTimer
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QButtonGroup,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMainWindow,
    QProgressBar,
    QPushButton,
    QRadioButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from quiz_delivery.constants.about import INTEGRITY_NOTICE_TEXT
from quiz_delivery.constants.quiz_constants import TIMER_TICK_INTERVAL_MS
from quiz_delivery.constants.ui_constants import (
    ALREADY_SUBMITTED_MESSAGE,
    BACK_BUTTON,
    FALSE_LABEL,
    IDENTIFICATION_PLACEHOLDER,
    LOAD_FAILED_MESSAGE,
    LOADING_MESSAGE,
    NEXT_BUTTON,
    RESUME_BUTTON,
    RETRY_BUTTON,
    SCORE_TEMPLATE,
    SCORE_TITLE,
    START_BUTTON,
    SUBMIT_BUTTON,
    SUBMIT_FAILED_TITLE,
    SUBMITTED_MESSAGE,
    SUBMITTING_MESSAGE,
    TIME_WARNING_TEMPLATE,
    TIMER_TEMPLATE,
    TRUE_LABEL,
    UNANSWERED_TEMPLATE,
    UNAVAILABLE_MESSAGE,
    VIEW_SCORE_BUTTON,
    VIOLATION_TEMPLATE,
    WINDOW_TITLE,
)
from quiz_delivery.core.attempt_state_machine import AttemptObserver, AttemptStateMachine
from quiz_delivery.core.errors import AnswerValidationError, GatewayError, LoadFailure
from quiz_delivery.core.markdown_math_renderer import renderer
from quiz_delivery.core.models import UNSET, Phase, QuestionType, TestTaker, ViolationEvent
from quiz_delivery.core.services.submission_gateway import QuizGateway
from quiz_delivery.styling.styles import Styles
from quiz_delivery.ui.dialog_helpers import show_error, show_info, show_warning
from quiz_delivery.ui.qt_integrity_monitor import QtIntegrityMonitor
from quiz_delivery.ui.qt_submission_runner import QtSubmissionRunner

logger = logging.getLogger(__name__)


def _format_clock(template: str, seconds: int) -> str:
    minutes, secs = divmod(max(0, seconds), 60)
    return template.format(minutes=minutes, seconds=secs)


class QuizWindow(QMainWindow, AttemptObserver):
    """Intro, question and result pages around an :class:`AttemptStateMachine`."""

    def __init__(self, quiz_id: str, test_taker: TestTaker, gateway: QuizGateway) -> None:
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)
        self.setStyleSheet(Styles.get_main_window_style())

        self._runner = QtSubmissionRunner(self)
        self._monitor = QtIntegrityMonitor(self)
        self.machine = AttemptStateMachine(
            quiz_id,
            test_taker,
            gateway,
            monitor=self._monitor,
            runner=self._runner,
            observer=self,
        )
        self._answer_group: QButtonGroup | None = None

        self._tick_timer = QTimer(self)
        self._tick_timer.setInterval(TIMER_TICK_INTERVAL_MS)
        self._tick_timer.timeout.connect(self.machine.tick)

        self._build_ui()
        QTimer.singleShot(0, self._load)

    # --- Layout ---

    def _build_ui(self) -> None:
        self.pages = QStackedWidget(self)
        self.setCentralWidget(self.pages)
        self.status_page = self._build_status_page()
        self.intro_page = self._build_intro_page()
        self.question_page = self._build_question_page()
        for page in (self.status_page, self.intro_page, self.question_page):
            self.pages.addWidget(page)
        self._show_status(LOADING_MESSAGE)

    def _build_status_page(self) -> QWidget:
        page = QWidget(self)
        layout = QVBoxLayout(page)
        self.status_label = QLabel("", page)
        self.status_label.setAlignment(Qt.AlignCenter)
        self.status_label.setWordWrap(True)
        self.status_label.setStyleSheet(Styles.get_title_style())
        layout.addStretch()
        layout.addWidget(self.status_label)

        button_row = QHBoxLayout()
        button_row.addStretch()
        self.retry_button = QPushButton(RETRY_BUTTON, page)
        self.retry_button.clicked.connect(self._handle_retry)
        button_row.addWidget(self.retry_button)
        self.score_button = QPushButton(VIEW_SCORE_BUTTON, page)
        self.score_button.clicked.connect(self._handle_view_score)
        button_row.addWidget(self.score_button)
        button_row.addStretch()
        layout.addLayout(button_row)
        layout.addStretch()
        return page

    def _build_intro_page(self) -> QWidget:
        page = QWidget(self)
        layout = QVBoxLayout(page)
        self.title_label = QLabel("", page)
        self.title_label.setStyleSheet(Styles.get_title_style())
        layout.addWidget(self.title_label)
        self.instructions_label = QLabel("", page)
        self.instructions_label.setWordWrap(True)
        layout.addWidget(self.instructions_label)
        self.details_label = QLabel("", page)
        layout.addWidget(self.details_label)
        self.student_label = QLabel("", page)
        layout.addWidget(self.student_label)
        notice = QLabel(INTEGRITY_NOTICE_TEXT, page)
        notice.setWordWrap(True)
        notice.setStyleSheet(Styles.get_banner_style("warning"))
        layout.addWidget(notice)
        layout.addStretch()
        self.start_button = QPushButton(START_BUTTON, page)
        self.start_button.setDefault(True)
        self.start_button.clicked.connect(self._handle_start)
        layout.addWidget(self.start_button, alignment=Qt.AlignRight)
        return page

    def _build_question_page(self) -> QWidget:
        page = QWidget(self)
        layout = QVBoxLayout(page)

        timer_row = QHBoxLayout()
        self.timer_label = QLabel("", page)
        self.timer_label.setStyleSheet(Styles.get_timer_style(warning=False))
        timer_row.addWidget(self.timer_label)
        self.timer_progress = QProgressBar(page)
        self.timer_progress.setRange(0, 1000)
        self.timer_progress.setTextVisible(False)
        timer_row.addWidget(self.timer_progress, stretch=1)
        layout.addLayout(timer_row)

        # Inline banner; a dialog would steal focus and count as a violation.
        self.banner_label = QLabel("", page)
        self.banner_label.setWordWrap(True)
        self.banner_label.setVisible(False)
        layout.addWidget(self.banner_label)

        self.prompt_view = QWebEngineView(page)
        self.prompt_view.setContextMenuPolicy(Qt.NoContextMenu)
        layout.addWidget(self.prompt_view, stretch=1)

        self.answer_container = QWidget(page)
        self.answer_layout = QVBoxLayout(self.answer_container)
        layout.addWidget(self.answer_container)

        nav_row = QHBoxLayout()
        self.back_button = QPushButton(BACK_BUTTON, page)
        self.back_button.clicked.connect(self._handle_back)
        nav_row.addWidget(self.back_button)
        nav_row.addStretch()
        self.next_button = QPushButton(NEXT_BUTTON, page)
        self.next_button.clicked.connect(self._handle_next)
        nav_row.addWidget(self.next_button)
        self.submit_button = QPushButton(SUBMIT_BUTTON, page)
        self.submit_button.clicked.connect(self._handle_submit)
        nav_row.addWidget(self.submit_button)
        layout.addLayout(nav_row)
        return page

    # --- Page updates ---

    def _show_status(self, message: str) -> None:
        self.status_label.setText(message)
        phase = self.machine.phase
        self.score_button.setVisible(phase in (Phase.SUBMITTED, Phase.ALREADY_SUBMITTED))
        self.retry_button.setVisible(
            phase is Phase.SUBMITTING and self.machine.submission_error is not None
        )
        self.pages.setCurrentWidget(self.status_page)

    def _show_intro(self) -> None:
        quiz = self.machine.quiz
        self.title_label.setText(quiz.title)
        self.instructions_label.setText(quiz.instructions)
        duration = quiz.timing.duration_seconds()
        limit = f"Time limit: {duration // 60}:{duration % 60:02d}" if duration else "No time limit"
        self.details_label.setText(
            f"{len(quiz.questions)} question(s) · {quiz.total_points} point(s) · {limit}"
        )
        taker = self.machine.test_taker
        section = f" ({taker.section})" if taker.section else ""
        self.student_label.setText(f"Student: {taker.display_name}{section}")
        started = self.machine.phase is Phase.IN_PROGRESS
        self.start_button.setText(RESUME_BUTTON if started else START_BUTTON)
        self.pages.setCurrentWidget(self.intro_page)

    def _show_question(self) -> None:
        machine = self.machine
        position = machine.current_position
        question = machine.current_question
        total = len(machine.questions)
        self.prompt_view.setHtml(renderer.render_question(question, position, total))
        self._rebuild_answer_widgets(question.type, question.choices, machine.answer_at(position))
        self.back_button.setEnabled(True)
        self.next_button.setVisible(position < total - 1)
        self.submit_button.setVisible(position == total - 1)
        self._update_timer_display(machine.remaining_seconds())
        self.pages.setCurrentWidget(self.question_page)

    def _rebuild_answer_widgets(self, question_type: QuestionType, choices: list[str], current: object) -> None:
        while self.answer_layout.count():
            item = self.answer_layout.takeAt(0)
            if item.widget() is not None:
                item.widget().deleteLater()
        self._answer_group = None

        if question_type is QuestionType.IDENTIFICATION:
            line_edit = QLineEdit(self.answer_container)
            line_edit.setPlaceholderText(IDENTIFICATION_PLACEHOLDER)
            line_edit.setContextMenuPolicy(Qt.NoContextMenu)
            if current is not UNSET:
                line_edit.setText(str(current))
            line_edit.textEdited.connect(self._record_answer)
            self.answer_layout.addWidget(line_edit)
            return

        if question_type is QuestionType.TRUE_FALSE:
            options: list[tuple[str, object]] = [(TRUE_LABEL, True), (FALSE_LABEL, False)]
        else:
            options = [(choice, index) for index, choice in enumerate(choices)]

        group = QButtonGroup(self.answer_container)
        for button_id, (label, value) in enumerate(options):
            radio = QRadioButton(label, self.answer_container)
            # Type check keeps True from matching choice index 1.
            radio.setChecked(current is not UNSET and type(current) is type(value) and current == value)
            group.addButton(radio, button_id)
            self.answer_layout.addWidget(radio)
        group.idClicked.connect(lambda button_id: self._record_answer(options[button_id][1]))
        self._answer_group = group

    def _update_timer_display(self, remaining: int | None) -> None:
        timer = self.machine.timer
        if remaining is None or timer is None:
            self.timer_label.setVisible(False)
            self.timer_progress.setVisible(False)
            return
        self.timer_label.setVisible(True)
        self.timer_progress.setVisible(True)
        self.timer_label.setText(_format_clock(TIMER_TEMPLATE, remaining))
        self.timer_label.setStyleSheet(Styles.get_timer_style(warning=timer.has_warned))
        self.timer_progress.setValue(int(1000 * remaining / timer.duration_seconds))

    def _show_banner(self, message: str, level: str = "info") -> None:
        self.banner_label.setText(message)
        self.banner_label.setStyleSheet(Styles.get_banner_style(level))
        self.banner_label.setVisible(True)

    # --- User actions ---

    def _load(self) -> None:
        try:
            self.machine.load()
        except LoadFailure as exc:
            show_error(self, LOAD_FAILED_MESSAGE, str(exc))

    def _record_answer(self, value: object) -> None:
        # Widgets can still fire after an expiry has moved the attempt on.
        if self.machine.accepts_input:
            self.machine.set_answer(value)

    def _handle_start(self) -> None:
        if not self.machine.can_start:
            return
        self.machine.start()
        self._show_question()

    def _handle_back(self) -> None:
        if not self.machine.accepts_input:
            return
        self.banner_label.setVisible(False)
        self.machine.back()
        if self.machine.intro_visible:
            self._show_intro()
        else:
            self._show_question()

    def _handle_next(self) -> None:
        if not self.machine.accepts_input:
            return
        try:
            self.machine.next()
        except AnswerValidationError as exc:
            self._show_banner(str(exc), "warning")
            return
        self.banner_label.setVisible(False)
        self._show_question()

    def _handle_submit(self) -> None:
        if not self.machine.accepts_input:
            return
        try:
            self.machine.submit()
        except AnswerValidationError as exc:
            positions = ", ".join(str(position) for position in exc.positions)
            self._show_banner(UNANSWERED_TEMPLATE.format(positions=positions), "warning")

    def _handle_retry(self) -> None:
        self.machine.retry_submit()
        self._show_status(SUBMITTING_MESSAGE)

    def _handle_view_score(self) -> None:
        try:
            report = self.machine.fetch_score()
        except GatewayError as exc:
            show_warning(self, SCORE_TITLE, str(exc))
            return
        show_info(self, SCORE_TITLE, SCORE_TEMPLATE.format(score=report.score, total=report.total))

    # --- AttemptObserver ---

    def on_phase_changed(self, phase: Phase) -> None:
        if phase is Phase.IN_PROGRESS:
            if self.machine.timer is not None:
                self._tick_timer.start()
            return
        self._tick_timer.stop()
        if phase is Phase.INTRO:
            self._show_intro()
        elif phase is Phase.SUBMITTING:
            self._show_status(SUBMITTING_MESSAGE)
        elif phase is Phase.SUBMITTED:
            self._show_status(SUBMITTED_MESSAGE)
        elif phase is Phase.ALREADY_SUBMITTED:
            self._show_status(ALREADY_SUBMITTED_MESSAGE)
        elif phase is Phase.UNAVAILABLE:
            self._show_status(UNAVAILABLE_MESSAGE)
        elif phase is Phase.LOAD_FAILED:
            self._show_status(LOAD_FAILED_MESSAGE)

    def on_tick(self, remaining_seconds: int) -> None:
        self._update_timer_display(remaining_seconds)

    def on_time_warning(self, remaining_seconds: int) -> None:
        self._show_banner(_format_clock(TIME_WARNING_TEMPLATE, remaining_seconds), "warning")

    def on_violation(self, event: ViolationEvent, count: int) -> None:
        self._show_banner(VIOLATION_TEMPLATE.format(count=count), "error")

    def on_submission_failed(self, error: Exception) -> None:
        self._show_status(f"{SUBMIT_FAILED_TITLE}: {error}")
        show_warning(self, SUBMIT_FAILED_TITLE, str(error))
