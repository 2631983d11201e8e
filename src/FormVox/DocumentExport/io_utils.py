# === NAVMAP v1 ===
# {
#   "module": "FormVox.DocumentExport.io_utils",
#   "purpose": "Atomic file writes, promotion and Content-Length verification.",
#   "sections": [
#     {
#       "id": "sizemismatcherror",
#       "name": "SizeMismatchError",
#       "anchor": "class-sizemismatcherror",
#       "kind": "class"
#     },
#     {
#       "id": "fsync-directory",
#       "name": "_fsync_directory",
#       "anchor": "function-fsync-directory",
#       "kind": "function"
#     },
#     {
#       "id": "atomic-write-stream",
#       "name": "atomic_write_stream",
#       "anchor": "function-atomic-write-stream",
#       "kind": "function"
#     },
#     {
#       "id": "promote-file",
#       "name": "promote_file",
#       "anchor": "function-promote-file",
#       "kind": "function"
#     },
#     {
#       "id": "atomic-write-text",
#       "name": "atomic_write_text",
#       "anchor": "function-atomic-write-text",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Atomic file write utilities for export payloads.

**Purpose**
-----------
Export payloads are streamed from the backend straight to disk. A crash or a
dropped connection must never leave a half-written file under a name the
storage writer would later pick up, so every payload is written through
:func:`atomic_write_stream` (temporary file + fsync + ``os.replace``), and
every promotion of a finished temporary file goes through :func:`promote_file`.

**Key Classes & Functions**
---------------------------

:class:`SizeMismatchError`
  Raised when the number of written bytes differs from ``Content-Length``.

:func:`atomic_write_stream`
  Write a byte iterator to disk atomically, optionally verifying its length.

:func:`promote_file`
  Atomically rename a finished temporary file to its final cache name.

:func:`atomic_write_text`
  Persist small text documents (the key-value store) crash-safely.
"""

from __future__ import annotations

import logging
import os
import tempfile
from typing import Iterator, Optional

__all__ = ["SizeMismatchError", "atomic_write_stream", "atomic_write_text", "promote_file"]

logger = logging.getLogger(__name__)


class SizeMismatchError(Exception):
    """Raised when downloaded bytes don't match Content-Length header.

    Attributes:
        expected: Expected bytes (from Content-Length header).
        actual: Actual bytes successfully written to disk.
    """

    def __init__(self, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Size mismatch: expected {expected} bytes, got {actual} bytes")


def _fsync_directory(directory: str) -> None:
    if not hasattr(os, "O_DIRECTORY"):
        return
    dir_fd = os.open(directory, os.O_DIRECTORY)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)


def atomic_write_stream(
    dest_path: str,
    byte_iter: Iterator[bytes],
    *,
    expected_len: Optional[int] = None,
) -> int:
    """Write ``byte_iter`` to ``dest_path`` atomically.

    Writes into a ``.part-*.tmp`` file in the destination directory, fsyncs it
    and renames it into place. On any failure the temporary file is removed and
    ``dest_path`` is left untouched.

    Args:
        dest_path: Final path of the file. Parent directories are created.
        byte_iter: Iterator yielding chunks (e.g. ``httpx.Response.iter_bytes()``).
        expected_len: Expected size from ``Content-Length``; ``None`` skips the check.

    Returns:
        Number of bytes written.

    Raises:
        SizeMismatchError: If ``expected_len`` is given and does not match.
        OSError: If file I/O fails.
    """
    dest_dir = os.path.dirname(dest_path) or "."
    os.makedirs(dest_dir, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=dest_dir, prefix=".part-", suffix=".tmp")
    bytes_written = 0

    try:
        with os.fdopen(fd, "wb", buffering=0) as f:
            for chunk in byte_iter:
                if chunk:
                    f.write(chunk)
                    bytes_written += len(chunk)
            f.flush()
            os.fsync(f.fileno())

        if expected_len is not None and bytes_written != expected_len:
            os.unlink(tmp_path)
            raise SizeMismatchError(expected_len, bytes_written)

        os.replace(tmp_path, dest_path)
        _fsync_directory(dest_dir)
        return bytes_written

    except SizeMismatchError:
        raise
    except Exception:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise


def promote_file(src_path: str, dest_path: str) -> str:
    """Rename ``src_path`` over ``dest_path`` and return ``dest_path``."""

    dest_dir = os.path.dirname(dest_path) or "."
    os.makedirs(dest_dir, exist_ok=True)
    os.replace(src_path, dest_path)
    _fsync_directory(dest_dir)
    return dest_path


def atomic_write_text(dest_path: str, text: str, *, encoding: str = "utf-8") -> None:
    """Write ``text`` to ``dest_path`` through :func:`atomic_write_stream`."""

    atomic_write_stream(dest_path, iter([text.encode(encoding)]))
