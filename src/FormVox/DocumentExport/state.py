# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.state",
#   "purpose": "Single-flight export state machine with observable progress.",
#   "sections": [
#     {
#       "id": "exportstate",
#       "name": "ExportState",
#       "anchor": "class-exportstate",
#       "kind": "class"
#     },
#     {
#       "id": "exportsnapshot",
#       "name": "ExportSnapshot",
#       "anchor": "class-exportsnapshot",
#       "kind": "class"
#     },
#     {
#       "id": "exportstatemachine",
#       "name": "ExportStateMachine",
#       "anchor": "class-exportstatemachine",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""
Export state machine.

::

    IDLE ─try_begin()─▶ RESOLVING_PATHS ─▶ DOWNLOADING(i/n) ─▶ FINALIZING(i/n) ─┐
      ▲                                         ▲                               │
      │                                         └──── next page (i+1) ◀─────────┤
      └──────────────────────────── finish() ◀──────────────────────────────────┘

``try_begin`` is the single-flight gate: it only succeeds from ``IDLE`` and
returns ``False`` otherwise, so a second export request is dropped. Every
other transition raises :class:`IllegalTransition` when taken out of order.
The progress text is UI-facing and reset to ``""`` by ``finish``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from FormVox.DocumentExport.api.exceptions import IllegalTransition

__all__ = ["ExportSnapshot", "ExportState", "ExportStateMachine"]

LOGGER = logging.getLogger(__name__)


class ExportState(str, Enum):
    IDLE = "idle"
    RESOLVING_PATHS = "resolving-paths"
    DOWNLOADING = "downloading"
    FINALIZING = "finalizing"


@dataclass(frozen=True)
class ExportSnapshot:
    """Observable view of the machine, delivered to subscribers."""

    state: ExportState
    progress: str = ""
    page: Optional[int] = None
    total_pages: Optional[int] = None

    @property
    def is_exporting(self) -> bool:
        return self.state is not ExportState.IDLE


Subscriber = Callable[[ExportSnapshot], None]


class ExportStateMachine:
    """Single-flight export phases with observable progress."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot = ExportSnapshot(ExportState.IDLE)
        self._subscribers: List[Subscriber] = []

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------
    @property
    def state(self) -> ExportState:
        return self._snapshot.state

    @property
    def snapshot(self) -> ExportSnapshot:
        return self._snapshot

    @property
    def is_exporting(self) -> bool:
        return self._snapshot.is_exporting

    @property
    def progress(self) -> str:
        return self._snapshot.progress

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register ``callback``; returns a function that unsubscribes it."""

        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _publish(self, snapshot: ExportSnapshot) -> None:
        self._snapshot = snapshot
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception as exc:  # pylint: disable=broad-except
                LOGGER.debug("Export state subscriber failed: %s", exc)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def try_begin(self, progress: str = "") -> bool:
        """Enter ``RESOLVING_PATHS`` from ``IDLE``; ``False`` if an export is running."""

        with self._lock:
            if self._snapshot.state is not ExportState.IDLE:
                LOGGER.debug("Export request dropped: %s in progress", self._snapshot.state.value)
                return False
            self._snapshot = ExportSnapshot(ExportState.RESOLVING_PATHS, progress)
        self._publish(self._snapshot)
        return True

    def set_progress(self, progress: str) -> None:
        """Update the progress text without changing phase."""

        current = self._snapshot
        if current.state is ExportState.IDLE:
            raise IllegalTransition("Cannot report progress while idle")
        self._publish(
            ExportSnapshot(current.state, progress, current.page, current.total_pages)
        )

    def downloading(self, page: int = 1, total_pages: int = 1, progress: str = "") -> None:
        current = self._snapshot
        if current.state is ExportState.RESOLVING_PATHS:
            pass
        elif current.state is ExportState.FINALIZING and (current.page or 0) < page:
            pass
        else:
            raise IllegalTransition(
                f"Cannot download page {page} from {current.state.value}"
                f" (page {current.page})"
            )
        self._publish(ExportSnapshot(ExportState.DOWNLOADING, progress, page, total_pages))

    def finalizing(self, progress: str = "") -> None:
        current = self._snapshot
        if current.state is not ExportState.DOWNLOADING:
            raise IllegalTransition(f"Cannot finalize from {current.state.value}")
        self._publish(
            ExportSnapshot(ExportState.FINALIZING, progress, current.page, current.total_pages)
        )

    def finish(self) -> None:
        """Return to ``IDLE`` (success or error) and clear the progress text."""

        with self._lock:
            self._snapshot = ExportSnapshot(ExportState.IDLE)
        self._publish(self._snapshot)
