"""Utility helpers for pdfium_adapter."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, os.PathLike]

# (position, separator) pairs turning YYYYMMDDHHmmSS into YYYY-MM-DDTHH:mm:SS
_DATE_SEPARATORS = ((4, "-"), (7, "-"), (10, "T"), (13, ":"), (16, ":"))


def configure_logging(level: int = logging.INFO) -> None:
    """Configure package-wide logging."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def to_path(path: PathLike) -> Path:
    """Normalize an input path to :class:`Path`."""
    return Path(path).expanduser().resolve()


def parse_pdf_date(raw: Optional[str]) -> Optional[datetime]:
    """Parse a PDF date string (``D:YYYYMMDDHHmmSSOHH'mm'``) into a :class:`datetime`.

    Separators are inserted at fixed positions and the result is parsed as
    ISO 8601. Returns ``None`` for empty or malformed input.
    """
    if not raw:
        return None
    text = raw.strip()
    if text.startswith("D:"):
        text = text[2:]
    if len(text) < 8 or not text[:8].isdigit():
        return None

    for position, separator in _DATE_SEPARATORS:
        if len(text) <= position:
            break
        text = text[:position] + separator + text[position:]

    text = text.replace("'", ":")
    if text.endswith(":"):
        text = text[:-1]
    if "Z" in text:
        # "Z", "Z00'00'" and friends all mean UTC
        text = text[: text.index("Z")] + "+00:00"

    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def format_pdf_date(raw: Optional[str]) -> str:
    """ISO 8601 rendering of a PDF date string, or ``""`` when it does not parse."""
    parsed = parse_pdf_date(raw)
    return parsed.isoformat() if parsed is not None else ""
