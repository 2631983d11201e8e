# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.logging_utils",
#   "purpose": "JSON log formatting, secret masking and logging setup.",
#   "sections": [
#     {
#       "id": "mask-sensitive-data",
#       "name": "mask_sensitive_data",
#       "anchor": "function-mask-sensitive-data",
#       "kind": "function"
#     },
#     {
#       "id": "jsonformatter",
#       "name": "JSONFormatter",
#       "anchor": "class-jsonformatter",
#       "kind": "class"
#     },
#     {
#       "id": "setup-logging",
#       "name": "setup_logging",
#       "anchor": "function-setup-logging",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Structured logging helpers for the export engine."""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional, Union

__all__ = ["JSONFormatter", "mask_sensitive_data", "setup_logging"]

ROOT_LOGGER_NAME = "FormVox.DocumentExport"

_SENSITIVE_KEYS = {"authorization", "token", "bearer", "password", "secret"}
_BEARER_PATTERN = re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE)


def mask_sensitive_data(value: Any, key_hint: Optional[str] = None) -> Any:
    """Return a copy of ``value`` with tokens and ``Authorization`` values masked."""

    if isinstance(value, dict):
        return {key: mask_sensitive_data(item, str(key).lower()) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [mask_sensitive_data(item, key_hint) for item in value]
    if key_hint in _SENSITIVE_KEYS and value is not None:
        return "***masked***"
    if isinstance(value, str):
        return _BEARER_PATTERN.sub(r"\1***masked***", value)
    return value


class JSONFormatter(logging.Formatter):
    """Formatter emitting masked JSON log entries."""

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "extra_fields") and isinstance(record.extra_fields, dict):
            payload.update(record.extra_fields)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(payload), default=str)


def setup_logging(
    *,
    level: str = "INFO",
    log_dir: Union[str, Path, None] = None,
    max_log_size_mb: int = 10,
    json_console: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """Configure the ``FormVox.DocumentExport`` logger; idempotent across calls."""

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_formvox_managed", False):
            logger.removeHandler(handler)
            if isinstance(handler, logging.StreamHandler) and getattr(handler, "stream", None) in (
                sys.stdout,
                sys.stderr,
            ):
                continue
            handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(
        JSONFormatter() if json_console else logging.Formatter("%(levelname)s: %(message)s")
    )
    stream_handler._formvox_managed = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)

    if log_dir is not None:
        resolved_dir = Path(log_dir).expanduser()
        resolved_dir.mkdir(parents=True, exist_ok=True)
        today = datetime.now(timezone.utc).strftime("%Y%m%d")
        file_handler = RotatingFileHandler(
            resolved_dir / f"formvox-export-{today}.jsonl",
            maxBytes=int(max_log_size_mb * 1024 * 1024),
            backupCount=5,
        )
        file_handler.setFormatter(JSONFormatter())
        file_handler._formvox_managed = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    logger.propagate = propagate
    return logger
