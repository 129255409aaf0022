"""Polling watch loop that regenerates the overview when the tree changes."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .changes import diff_snapshots
from .logging import get_logger
from .models import ChangeSet, FileSnapshot

DEFAULT_INTERVAL = 1.0
DEFAULT_MAX_DURATION = 8 * 60 * 60

_logger = get_logger("watch")


class CancellationToken:
    """Cooperative stop flag shared between the watch loop and its caller."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class WatchState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    EXITING = "exiting"


@dataclass
class WatchSummary:
    """How a watch session ended."""

    iterations: int = 0
    regenerations: int = 0
    reason: str = ""


class Watcher:
    """Snapshot the tree every ``interval`` seconds and report differences.

    The token and the deadline are checked at the top of each iteration only,
    so a regeneration in progress always runs to completion.
    """

    def __init__(
        self,
        snapshot: Callable[[], FileSnapshot],
        on_change: Callable[[ChangeSet], object],
        *,
        interval: float = DEFAULT_INTERVAL,
        max_duration: float = DEFAULT_MAX_DURATION,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], object] = time.sleep,
        token: Optional[CancellationToken] = None,
    ) -> None:
        self._snapshot = snapshot
        self._on_change = on_change
        self.interval = interval
        self.max_duration = max_duration
        self._clock = clock
        self._sleep = sleep
        self.token = token or CancellationToken()
        self.state = WatchState.IDLE

    def run(self) -> WatchSummary:
        summary = WatchSummary()
        deadline = self._clock() + self.max_duration
        previous = self._snapshot()
        self.state = WatchState.POLLING
        _logger.info("Watching for changes (interval %.1fs)", self.interval)

        while self.state is WatchState.POLLING:
            if self.token.cancelled:
                self._exit(summary, "cancelled")
                break
            if self._clock() >= deadline:
                self._exit(summary, "deadline")
                break

            self._sleep(self.interval)
            current = self._snapshot()
            changes = diff_snapshots(previous, current)
            previous = current
            summary.iterations += 1
            if not changes:
                continue

            for path, kind in sorted(changes.items()):
                _logger.info("%s: %s", kind.value.capitalize(), path)
            self._on_change(changes)
            summary.regenerations += 1

        return summary

    def _exit(self, summary: WatchSummary, reason: str) -> None:
        self.state = WatchState.EXITING
        summary.reason = reason
        _logger.info("Stopped watching (%s)", reason)


__all__ = [
    "CancellationToken",
    "DEFAULT_INTERVAL",
    "DEFAULT_MAX_DURATION",
    "WatchState",
    "WatchSummary",
    "Watcher",
]
