# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.cleanup",
#   "purpose": "Best-effort removal of temporary export files with observable attempts.",
#   "sections": [
#     {
#       "id": "cleanupattempt",
#       "name": "CleanupAttempt",
#       "anchor": "class-cleanupattempt",
#       "kind": "class"
#     },
#     {
#       "id": "discard-file",
#       "name": "discard_file",
#       "anchor": "function-discard-file",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Best-effort removal of temporary export files.

Cleanup never escalates: a failed deletion is reported as a
:class:`CleanupAttempt` (logged and forwarded to an optional observer) and
never masks the primary success or failure of the export.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

__all__ = ["CleanupAttempt", "CleanupObserver", "discard_file"]

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CleanupAttempt:
    """What happened when a temporary file was discarded."""

    path: str
    reason: str
    removed: bool
    error: Optional[str] = None


CleanupObserver = Callable[[CleanupAttempt], None]


def discard_file(
    path: Union[str, os.PathLike, None],
    *,
    reason: str,
    observer: Optional[CleanupObserver] = None,
) -> Optional[CleanupAttempt]:
    """
    Delete ``path`` if it exists and report the attempt.

    A missing file counts as removed (idempotent delete). ``OSError`` is
    captured in the returned record instead of being raised.

    Returns:
        The attempt record, or ``None`` when ``path`` is empty.
    """

    if not path:
        return None

    target = Path(path)
    try:
        target.unlink(missing_ok=True)
        attempt = CleanupAttempt(path=str(target), reason=reason, removed=True)
    except OSError as exc:
        attempt = CleanupAttempt(path=str(target), reason=reason, removed=False, error=str(exc))
        LOGGER.warning(
            "Could not remove temporary export file %s: %s",
            target,
            exc,
            extra={"extra_fields": {"path": str(target), "reason": reason}},
        )

    if observer is not None:
        try:
            observer(attempt)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.debug("Cleanup observer failed: %s", exc)
    return attempt
