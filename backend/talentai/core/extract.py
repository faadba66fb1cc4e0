# backend/talentai/core/extract.py
"""
Document text extraction for resume uploads.

Dispatches on the declared MIME type first, then the file extension:
  pdf  → PyMuPDF
  docx → word/document.xml paragraphs (zip reader, no extra deps)
  doc  → docx reader if the file is really OOXML, else printable runs of the binary
  rtf  → control words stripped
  txt / anything else → utf-8 decode

Any reader failure becomes ExtractionFailed with an operator-facing message.
"""

from __future__ import annotations

import io
import logging
import re
import zipfile
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Callable, Dict, List, Optional

import fitz  # PyMuPDF

from .errors import ExtractionFailed

logger = logging.getLogger(__name__)

EXTRACTION_ERROR_MESSAGE = (
    "Failed to read resume. Please ensure file is not corrupted or password-protected."
)

MIME_KINDS: Dict[str, str] = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/msword": "doc",
    "text/plain": "txt",
    "application/rtf": "rtf",
    "text/rtf": "rtf",
}

EXTENSION_KINDS: Dict[str, str] = {
    ".pdf": "pdf",
    ".docx": "docx",
    ".doc": "doc",
    ".txt": "txt",
    ".rtf": "rtf",
}

# -------- Readers ------------------------------------------------------------

def read_pdf(data: bytes) -> str:
    with fitz.open(stream=data, filetype="pdf") as doc:
        if doc.needs_pass:
            raise ValueError("pdf is password-protected")
        return "\n".join(page.get_text("text") for page in doc)


def read_docx_quick(data: bytes) -> str:
    """Tiny docx reader that extracts paragraph text."""
    with zipfile.ZipFile(io.BytesIO(data)) as z:
        xml_bytes = z.read("word/document.xml")
    root = ET.fromstring(xml_bytes)
    ns = {"w": "http://schemas.openxmlformats.org/wordprocessingml/2006/main"}
    lines: List[str] = []
    for p in root.findall(".//w:p", ns):
        txt = "".join((t.text or "") for t in p.findall(".//w:t", ns)).strip()
        if txt:
            lines.append(txt)
    return "\n".join(lines)


_PRINTABLE_RUN = re.compile(rb"[\x20-\x7e\t\r\n]{4,}")


def read_doc(data: bytes) -> str:
    """Legacy Word: many '.doc' uploads are OOXML in disguise; otherwise keep printable runs."""
    if zipfile.is_zipfile(io.BytesIO(data)):
        return read_docx_quick(data)
    runs = [m.group(0).decode("ascii", errors="ignore").strip() for m in _PRINTABLE_RUN.finditer(data)]
    return "\n".join(r for r in runs if r)


_RTF_CONTROL = re.compile(r"\\[a-z]+-?\d*\s?|\\[^a-z]", re.I)


def read_rtf(data: bytes) -> str:
    text = data.decode("utf-8", errors="ignore")
    text = _RTF_CONTROL.sub("", text)
    return text.replace("{", "").replace("}", "").strip()


def read_text(data: bytes) -> str:
    return data.decode("utf-8", errors="ignore")


READERS: Dict[str, Callable[[bytes], str]] = {
    "pdf": read_pdf,
    "docx": read_docx_quick,
    "doc": read_doc,
    "rtf": read_rtf,
    "txt": read_text,
}

# -------- Dispatch -----------------------------------------------------------

def detect_kind(declared_type: Optional[str], filename: Optional[str]) -> str:
    mime = (declared_type or "").split(";")[0].strip().lower()
    if mime in MIME_KINDS:
        return MIME_KINDS[mime]
    ext = Path(filename or "").suffix.lower()
    return EXTENSION_KINDS.get(ext, "txt")


def extract_text(data: bytes, declared_type: Optional[str] = None, filename: Optional[str] = None) -> str:
    """
    Convert an uploaded document into plain text.
    Raises ExtractionFailed when the document cannot be read.
    """
    kind = detect_kind(declared_type, filename)
    try:
        text = READERS[kind](data)
    except Exception as e:
        logger.error("text extraction failed (kind=%s, file=%s): %s", kind, filename, e)
        raise ExtractionFailed(EXTRACTION_ERROR_MESSAGE) from e
    return text.strip()


def extract_text_from_path(path: Path, declared_type: Optional[str] = None, filename: Optional[str] = None) -> str:
    return extract_text(Path(path).read_bytes(), declared_type, filename or Path(path).name)


__all__ = [
    "EXTRACTION_ERROR_MESSAGE",
    "detect_kind",
    "extract_text",
    "extract_text_from_path",
    "read_pdf",
    "read_docx_quick",
    "read_doc",
    "read_rtf",
    "read_text",
]
