"""Low-level file operation utilities used by the local storage provider."""

import shutil
from pathlib import Path

from send2trash import send2trash

from .logger import get_logger

_logger = get_logger("file_operations")


def send_to_recycle_bin(path: str) -> None:
    """Send a single file or folder to the recycle bin.

    Uses send2trash library for cross-platform support.

    Raises:
        OSError: If the operation fails
    """
    _logger.debug("sending to recycle bin: %s", path)
    try:
        send2trash(path)
        _logger.debug("recycle bin success: %s", path)
    except Exception as e:
        _logger.error("recycle bin failed: %s -> %s", path, e)
        raise


def generate_unique_filename(dest_dir: str, filename: str) -> str:
    """Return a non-existing target path in ``dest_dir`` for ``filename``.

    Collisions get " - Copy (N)" appended to the stem.
    """
    dest = Path(dest_dir) / filename
    if not dest.exists():
        return str(dest)
    stem = dest.stem
    suffix = dest.suffix
    counter = 1
    while dest.exists():
        dest = Path(dest_dir) / f"{stem} - Copy ({counter}){suffix}"
        counter += 1

    return str(dest)


def copy_file(src: str, dest_dir: str) -> str:
    """Copy a file (or folder tree) to destination directory.

    Returns:
        Target path
    """
    src_path = Path(src)
    target = generate_unique_filename(dest_dir, src_path.name)
    _logger.debug("copying: %s -> %s", src, target)
    try:
        if src_path.is_dir():
            shutil.copytree(str(src_path), target)
        else:
            shutil.copy2(str(src_path), target)
        _logger.debug("copy success: %s -> %s", src, target)
        return target
    except Exception as e:
        _logger.error("copy failed: %s -> %s, error: %s", src, target, e)
        raise


def move_file(src: str, dest_dir: str) -> str:
    """Move a file (or folder) to destination directory.

    Returns:
        Target path
    """
    src_path = Path(src)
    target = generate_unique_filename(dest_dir, src_path.name)
    _logger.debug("moving: %s -> %s", src, target)
    try:
        shutil.move(str(src_path), target)
        _logger.debug("move success: %s -> %s", src, target)
        return target
    except Exception as e:
        _logger.error("move failed: %s -> %s, error: %s", src, target, e)
        raise
