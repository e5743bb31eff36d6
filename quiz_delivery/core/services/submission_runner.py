"""Execution strategies for the single asynchronous submission call."""

from __future__ import annotations

from typing import Callable, Protocol, TypeVar

T = TypeVar("T")


class SubmissionRunner(Protocol):
    """Runs ``job`` and reports back through exactly one of the callbacks.

    Callbacks must be delivered on the thread that owns the attempt.
    """

    def run(
        self,
        job: Callable[[], T],
        on_success: Callable[[T], None],
        on_error: Callable[[Exception], None],
    ) -> None: ...


class ImmediateRunner:
    """Runs the job synchronously on the calling thread."""

    def run(
        self,
        job: Callable[[], T],
        on_success: Callable[[T], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        try:
            result = job()
        except Exception as exc:  # reported to the caller through on_error
            on_error(exc)
            return
        on_success(result)
