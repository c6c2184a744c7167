"""Path and locator normalization utilities.

Locators handled by the local provider are ``file://`` URIs. This module
converts between them and absolute filesystem paths.

Keep this module free of Qt dependencies.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

_DRIVE_PREFIX_LEN = 2


def _normalize_drive_letter(path_str: str) -> str:
    # Normalize drive letter casing on Windows ("c:\\" -> "C:\\").
    if len(path_str) >= _DRIVE_PREFIX_LEN and path_str[1] == ":":
        return path_str[0].upper() + path_str[1:]
    return path_str


def abs_path(path: str | Path) -> Path:
    """Return an absolute path without requiring that it exists."""
    p = Path(path).expanduser()
    try:
        # strict=False avoids exceptions for non-existent paths.
        return p.resolve(strict=False)
    except OSError:
        return p.absolute()


def abs_path_str(path: str | Path) -> str:
    """Absolute, OS-native path string (Windows uses backslashes)."""
    return _normalize_drive_letter(str(abs_path(path)))


def document_id_for(path: str | Path) -> str:
    """Stable document id for a filesystem path."""
    return abs_path_str(path).replace("\\", "/")


def is_file_locator(locator: str | None) -> bool:
    return bool(locator) and urlparse(locator).scheme == "file"


def path_to_locator(path: str | Path) -> str:
    return abs_path(path).as_uri()


def locator_to_path(locator: str) -> Path:
    """Absolute path for a ``file://`` locator; ValueError for anything else."""
    parsed = urlparse(locator)
    if parsed.scheme != "file":
        raise ValueError(f"not a file locator: {locator!r}")
    raw = url2pathname(unquote(parsed.path))
    return abs_path(raw)
