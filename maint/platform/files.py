"""Structured document helpers (JSON on disk)."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from maint.core.errors import MaintError
from maint.core.result import Err, Ok, Result

__all__ = ["atomic_write_text", "load_document", "write_document"]


def atomic_write_text(path: Path, content: str, *, encoding: str = "utf-8") -> None:
    """Write text to path atomically using temp file + replace."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.",
        suffix=".tmp",
        dir=str(path.parent),
    )
    tmp_path = Path(tmp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding, newline="") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink(missing_ok=True)


def load_document(path: Path) -> Result[object, MaintError]:
    """Read and decode a JSON document.

    Returns:
        Ok(decoded value), or Err with kind ``not_found`` (missing file),
        ``parse`` (invalid JSON) or ``io`` (unreadable file).
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(MaintError(kind="not_found", message=f"file not found: {path}"))
    except (OSError, UnicodeDecodeError) as e:
        return Err(MaintError(kind="io", message=f"failed to read {path.name}: {e}", hint=str(path)))

    try:
        return Ok(json.loads(text))
    except json.JSONDecodeError as e:
        return Err(MaintError(kind="parse", message=f"invalid JSON in {path.name}: {e}", hint=str(path)))


def write_document(path: Path, data: object) -> Result[None, MaintError]:
    """Persist ``data`` as pretty JSON (2-space indent, trailing newline)."""
    try:
        content = json.dumps(data, indent=2) + "\n"
    except (TypeError, ValueError) as e:
        return Err(MaintError(kind="io", message=f"cannot serialize {path.name}: {e}"))

    try:
        atomic_write_text(path, content, encoding="utf-8")
    except OSError as e:
        return Err(MaintError(kind="io", message=f"could not write to file: {e}", hint=str(path)))
    return Ok(None)
