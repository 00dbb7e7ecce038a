"""
Filename and filesystem helpers.

This module provides helper functions for:
- Deriving document extensions from filenames and URLs
- Sanitizing user-provided names before they touch the filesystem
- Ensuring directory creation
"""

from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import urlparse

# Characters that are not safe in a stored filename
SANITIZE_PATTERN = re.compile(r"[^a-zA-Z0-9._-]+")


def file_extension(filename: str) -> str:
    """
    Lower-cased extension of ``filename`` without the dot.

    A leading dot is ignored, so ``".bashrc"`` yields ``"bashrc"``. A name
    without any dot is returned whole.

    Example:
        >>> file_extension("Report.XLSX")
        "xlsx"
        >>> file_extension("archive.tar.gz")
        "gz"
    """
    name = filename.lower().removeprefix(".")
    idx = name.rfind(".")
    if idx > 0:
        return name[idx + 1 :]
    return name


def extension_from_url(url: str) -> str:
    """
    Extension of the last path segment of ``url``, or ``""`` if it has none.

    Example:
        >>> extension_from_url("http://example.com/files/a.docx?v=2")
        "docx"
    """
    segment = urlparse(url).path.rsplit("/", 1)[-1]
    if "." not in segment:
        return ""
    return segment.rsplit(".", 1)[-1]


def sanitize_filename(filename: str, fallback: str) -> str:
    """
    Make ``filename`` safe for use as a single path component.

    Args:
        filename: The original name
        fallback: Returned when nothing usable is left after sanitizing

    Example:
        >>> sanitize_filename("../My Report.docx", "document")
        "My-Report.docx"
    """
    cleaned = SANITIZE_PATTERN.sub("-", Path(filename).name.strip())
    cleaned = cleaned.strip("-_.")
    return cleaned or fallback


def ensure_directory(path: Path) -> Path:
    """
    Create a directory if it doesn't exist, including parent directories.

    Returns:
        The same path object for chaining
    """
    path.mkdir(parents=True, exist_ok=True)
    return path
