"""
Run status value and its single-writer tracker.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable

ProgressCallback = Callable[[str, int | None], None]
StatusListener = Callable[["RunStatus"], None]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunStatus:
    """Snapshot of the current run as seen by the caller."""

    is_running: bool = False
    current_step_label: str = ""
    progress_percent: int = 0
    last_error: str | None = None
    is_animating: bool = False


class StatusTracker:
    """
    Owns the RunStatus of one orchestrator. Only the orchestrator writes to it.

    Progress is clamped to 0-100 and never moves backwards while a run is active;
    ``fail`` is the one transition that drops it back to 0.
    """

    def __init__(self) -> None:
        self._status = RunStatus()
        self._listeners: list[StatusListener] = []
        self._progress_callback: ProgressCallback | None = None

    @property
    def status(self) -> RunStatus:
        return self._status

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        """Register a listener for every status change; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self, label: str, percent: int, *, progress_callback: ProgressCallback | None = None) -> None:
        self._progress_callback = progress_callback
        self._status = RunStatus(is_running=True)
        self.advance(label, percent)

    def advance(self, label: str, percent: int) -> None:
        clamped = max(self._status.progress_percent, min(100, max(0, int(percent))))
        self._update(current_step_label=label, progress_percent=clamped)
        self._report(label, clamped)

    def step(self, label: str) -> None:
        """Publish a label without moving the progress bar."""
        self._update(current_step_label=label)
        self._report(label, None)

    def set_animating(self, animating: bool) -> None:
        self._update(is_animating=animating)

    def complete(self, label: str = "Done") -> None:
        self.advance(label, 100)
        self._update(is_running=False, is_animating=False)
        self._progress_callback = None

    def fail(self, message: str) -> None:
        self._update(
            is_running=False,
            is_animating=False,
            last_error=message,
            progress_percent=0,
        )
        self._progress_callback = None

    def _update(self, **changes: object) -> None:
        self._status = replace(self._status, **changes)
        for listener in list(self._listeners):
            listener(self._status)

    def _report(self, label: str, percent: int | None) -> None:
        if self._progress_callback is not None:
            self._progress_callback(label, percent)
