# File: schemashift/utils.py
"""
schemashift - Utility Functions & Helpers
==========================================
Naming inflection, checksums and a step timer shared by the converter,
loader and exporters.  Standard library only.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import re
import time
from pathlib import Path
from typing import List, Optional, Tuple

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemashift.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_TABLEIZE_RE: re.Pattern[str] = re.compile(r"(?<=\w)([A-Z])")
_TYPE_LENGTH_RE: re.Pattern[str] = re.compile(r"([a-zA-Z]+)\(([0-9]+)\)")


# ---------------------------------------------------------------------------
# Inflection
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def tableize(name: str) -> str:
    """
    Convert a model class name to its snake_cased table/column form.

    Every uppercase letter that follows a word character gets an
    underscore in front of it, then the whole string is lower-cased.

    Examples:
        >>> tableize("Author")
        'author'
        >>> tableize("BlogPost")
        'blog_post'
        >>> tableize("HTTPCode")
        'h_t_t_p_code'
    """
    return _TABLEIZE_RE.sub(r"_\1", name).lower()


def split_type_length(type_name: Optional[str]) -> Tuple[Optional[str], Optional[str]]:
    """
    Split ``"string(255)"`` into ``("string", "255")``.

    Returns ``(type_name, None)`` unchanged when no ``name(digits)`` pair
    is present, e.g. ``"decimal(10,2)"`` or ``"text"``.
    """
    if not type_name:
        return type_name, None
    match: Optional[re.Match[str]] = _TYPE_LENGTH_RE.search(type_name)
    if match is None:
        return type_name, None
    return match.group(1), match.group(2)


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def ensure_directory(path: Path) -> None:
    """Create directory (and parents) if it doesn't exist."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)


def is_safe_filename_stem(name: str) -> bool:
    """
    True if *name* can be used as-is for a file directly inside the
    output directory: non-empty, no path separators, no NUL, and not
    ``.`` or ``..``.
    """
    if not name or name in (".", ".."):
        return False
    return not any(ch in name for ch in ("/", "\\", "\0"))


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("convert") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.info(
            "Timer [%s]: %.4f seconds",
            self.label,
            self.elapsed,
        )

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "tableize",
    "split_type_length",
    "ensure_directory",
    "is_safe_filename_stem",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("schemashift.utils loaded — %d public symbols.", len(__all__))
