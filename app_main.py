"""Application entry point for the QuizDelivery student client."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys

from PySide6.QtWidgets import QApplication

from quiz_delivery.constants.network_constants import API_BASE_URL, DEFAULT_HOST, DEFAULT_PORT
from quiz_delivery.core.models import TestTaker
from quiz_delivery.core.schemas import QuizSchema
from quiz_delivery.core.services.response_store import QuizResponseStore
from quiz_delivery.core.services.submission_gateway import HttpQuizGateway
from quiz_delivery.server.api_server import start_api_server
from quiz_delivery.ui.quiz_window import QuizWindow
from quiz_delivery.utils.logging_config import configure_logging


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Take a quiz.")
    parser.add_argument("quiz_id")
    parser.add_argument("--student-id", required=True)
    parser.add_argument("--name", default=None, help="Display name shown on the intro page")
    parser.add_argument("--section", default=None)
    parser.add_argument("--api-url", default=API_BASE_URL)
    parser.add_argument(
        "--serve",
        type=Path,
        default=None,
        help="Start a local quiz service seeded with this quiz JSON file",
    )
    return parser.parse_args(argv)


def _start_local_service(quiz_file: Path) -> None:
    store = QuizResponseStore()
    document = json.loads(quiz_file.read_text(encoding="utf-8"))
    for entry in document if isinstance(document, list) else [document]:
        store.add_quiz(QuizSchema.model_validate(entry))
    start_api_server(store=store, host=DEFAULT_HOST, port=DEFAULT_PORT)


def main(argv: list[str] | None = None) -> None:
    """Initialize logging, optionally start a local service, and launch the Qt UI."""
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logger = configure_logging()
    logger.info("Starting QuizDelivery for quiz %s", args.quiz_id)

    if args.serve is not None:
        _start_local_service(args.serve)
        logger.info("Local quiz service listening on port %s", DEFAULT_PORT)

    test_taker = TestTaker(
        id=args.student_id,
        display_name=args.name or args.student_id,
        section=args.section,
    )
    gateway = HttpQuizGateway(test_taker.id, base_url=args.api_url)

    app = QApplication(sys.argv[:1])
    window = QuizWindow(quiz_id=args.quiz_id, test_taker=test_taker, gateway=gateway)
    window.show()
    exit_code = app.exec()
    gateway.close()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
