# backend/talentai/core/utils.py
"""
Generic helpers used across the pipeline.

Includes:
- safe JSON extraction from noisy LLM replies (code fences, prose around the payload)
- scoped temp files for uploads (always deleted)
- clipping / time helpers
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import tempfile
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, BinaryIO, Iterable, Iterator, Optional

from .errors import UploadRejected

logger = logging.getLogger(__name__)

# -------- JSON + strings -----------------------------------------------------

_FENCE_RE = re.compile(r"```(?:json)?", re.I)
_JSON_OBJECT_RE = re.compile(r"\{.*\}|\[.*\]", re.S)


def strip_code_fences(s: str) -> str:
    return _FENCE_RE.sub("", s or "").strip()


def json_loose(s: str) -> Any:
    """
    Parse a possibly noisy LLM response and return the first valid JSON object/array.
    Raises ValueError (json.JSONDecodeError) when nothing parses.
    """
    text = strip_code_fences(s)
    try:
        return json.loads(text)
    except ValueError:
        m = _JSON_OBJECT_RE.search(text)
        if m:
            frag = re.sub(r",(\s*[}\]])", r"\1", m.group(0))
            return json.loads(frag)
        raise


def clip(s: Optional[str], n: int = 1200) -> str:
    if not s:
        return ""
    s = str(s)
    return s if len(s) <= n else s[:n]


def safe_filename(original: Optional[str], fallback: str = "upload.bin") -> str:
    base = re.sub(r"[^A-Za-z0-9._-]", "_", original or "")
    return base or fallback


# -------- Uploads ------------------------------------------------------------

@contextmanager
def scoped_upload(source: BinaryIO, suffix: str = "") -> Iterator[Path]:
    """
    Spool an upload stream into a temp file and yield its path.
    The file is removed on exit, whether processing succeeded or not.
    """
    fd, name = tempfile.mkstemp(prefix="talentai_", suffix=suffix)
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as f:
            shutil.copyfileobj(source, f)
        yield path
    finally:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error("temp file cleanup failed for %s: %s", path, e)


def check_upload(
    filename: Optional[str],
    content_type: Optional[str],
    size: Optional[int],
    allowed_extensions: Iterable[str],
    allowed_types: Iterable[str],
    max_bytes: int,
    label: str = "file",
) -> None:
    """Reject an upload before any work: empty, too large, or outside the allowlist (MIME or extension)."""
    if size is not None:
        if size <= 0:
            raise UploadRejected(f"No {label} uploaded")
        if size > max_bytes:
            raise UploadRejected(f"{label.capitalize()} exceeds the {max_bytes // (1024 * 1024)}MB limit")
    ext = Path(filename or "").suffix.lower()
    mime = (content_type or "").split(";")[0].strip().lower()
    if mime in allowed_types or ext in allowed_extensions:
        return
    raise UploadRejected(f"Invalid {label} type. Allowed: {', '.join(sorted(allowed_extensions))}")


# -------- Time ---------------------------------------------------------------

def now_utc() -> datetime:
    return datetime.now(timezone.utc)


__all__ = [
    "strip_code_fences",
    "json_loose",
    "clip",
    "safe_filename",
    "scoped_upload",
    "check_upload",
    "now_utc",
]
