# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.interactive",
#   "purpose": "Terminal prompter, notifier, share sheet and printer collaborators.",
#   "sections": [
#     {
#       "id": "richprompter",
#       "name": "RichPrompter",
#       "anchor": "class-richprompter",
#       "kind": "class"
#     },
#     {
#       "id": "consolenotifier",
#       "name": "ConsoleNotifier",
#       "anchor": "class-consolenotifier",
#       "kind": "class"
#     },
#     {
#       "id": "systemsharesheet",
#       "name": "SystemShareSheet",
#       "anchor": "class-systemsharesheet",
#       "kind": "class"
#     },
#     {
#       "id": "lprprinter",
#       "name": "LprPrinter",
#       "anchor": "class-lprprinter",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Terminal implementations of the prompt, notification, share and print collaborators."""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from FormVox.DocumentExport.api.types import DirectoryGrant, ExportAction, FormatChoice

__all__ = ["ConsoleNotifier", "LprPrinter", "RichPrompter", "SystemShareSheet"]

LOGGER = logging.getLogger(__name__)


class RichPrompter:
    """Blocking choice prompts on a ``rich`` console; also acts as the folder picker."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def _choose(self, question: str, choices: list[str]) -> str:
        return Prompt.ask(question, choices=choices, default="cancel", console=self.console)

    def ask_export_action(self, label: str) -> ExportAction:
        answer = self._choose(f"Export {label}: what do you want to do?", ["cancel", "save", "share"])
        return ExportAction(answer)

    def ask_multi_page_save_only(self) -> ExportAction:
        self.console.print(
            "[yellow]This document has several pages. Sharing is only available one image "
            "at a time; saving writes every page to the device.[/yellow]"
        )
        answer = self._choose("Save all pages?", ["cancel", "save"])
        return ExportAction(answer)

    def ask_export_format(self) -> FormatChoice:
        answer = self._choose("Export format", ["cancel", "pdf", "jpg"])
        return FormatChoice(answer)

    def request_directory(self) -> DirectoryGrant:
        raw = Prompt.ask("Folder to save exports into (empty to cancel)", default="", console=self.console)
        if not raw.strip():
            return DirectoryGrant(granted=False)
        directory = Path(raw.strip()).expanduser().resolve()
        return DirectoryGrant(granted=True, directory_uri=directory.as_uri())


class ConsoleNotifier:
    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def alert(self, title: str, message: str) -> None:
        style = "red" if title.lower() == "error" else "green"
        self.console.print(Panel(message, title=title, border_style=style))


class SystemShareSheet:
    """Hands files to the desktop opener (``xdg-open`` or ``open``)."""

    def __init__(self, opener: Optional[str] = None) -> None:
        self.opener = opener or self._default_opener()

    @staticmethod
    def _default_opener() -> Optional[str]:
        candidates = ("open",) if sys.platform == "darwin" else ("xdg-open", "open")
        for name in candidates:
            path = shutil.which(name)
            if path:
                return path
        return None

    def is_available(self) -> bool:
        return self.opener is not None

    def share(
        self,
        uri: str,
        *,
        mime_type: str,
        dialog_title: str,
        uti: Optional[str] = None,
    ) -> None:
        LOGGER.info(
            "Opening share target",
            extra={"extra_fields": {"uri": uri, "mime_type": mime_type, "title": dialog_title}},
        )
        subprocess.run([self.opener, uri], check=True)


class LprPrinter:
    """Sends a document to the default printer queue via ``lpr``."""

    def __init__(self, command: str = "lpr") -> None:
        self.command = command

    def print_file(self, uri: str) -> None:
        executable = shutil.which(self.command)
        if executable is None:
            raise RuntimeError(f"Printing is unavailable: {self.command!r} not found")
        subprocess.run([executable, uri], check=True)
