# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.prompts",
#   "purpose": "Collaborator protocols for prompts, alerts and printing.",
#   "sections": [
#     {
#       "id": "userprompter",
#       "name": "UserPrompter",
#       "anchor": "class-userprompter",
#       "kind": "class"
#     },
#     {
#       "id": "notifier",
#       "name": "Notifier",
#       "anchor": "class-notifier",
#       "kind": "class"
#     },
#     {
#       "id": "printer",
#       "name": "Printer",
#       "anchor": "class-printer",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Collaborator contracts the orchestrator relies on for user interaction."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from FormVox.DocumentExport.api.types import ExportAction, FormatChoice

__all__ = ["Notifier", "Printer", "UserPrompter"]


@runtime_checkable
class UserPrompter(Protocol):
    """Blocking choice prompts. Dismissing a prompt means ``cancel``."""

    def ask_export_action(self, label: str) -> ExportAction:
        """Cancel / save / share for the file described by ``label``."""
        ...

    def ask_multi_page_save_only(self) -> ExportAction:
        """Cancel / save warning shown for multi-page JPEG exports."""
        ...

    def ask_export_format(self) -> FormatChoice:
        """Cancel / PDF / JPG."""
        ...


@runtime_checkable
class Notifier(Protocol):
    """Blocking confirmation dialog reporting the outcome of an export."""

    def alert(self, title: str, message: str) -> None: ...


@runtime_checkable
class Printer(Protocol):
    """Print dialog collaborator."""

    def print_file(self, uri: str) -> None: ...
