"""Local filesystem storage provider (``file://`` locators)."""

from __future__ import annotations

import mimetypes
import os
from pathlib import Path

from .errors import ResolutionError
from .file_operations import copy_file, move_file, send_to_recycle_bin
from .interfaces import StorageProvider
from .logger import get_logger
from .model import MIME_TYPE_DIR, DocFlags, DocumentDescriptor, RootFlags, RootInfo
from .path_utils import abs_path, document_id_for, locator_to_path, path_to_locator

_logger = get_logger("storage")

LOCAL_AUTHORITY = "local"
DEFAULT_MIME_TYPE = "application/octet-stream"
PARTIAL_SUFFIXES = (".part", ".crdownload", ".download", ".partial")

mimetypes.add_type("application/vnd.android.package-archive", ".apk")


def local_root(path: str | Path, root_id: str, title: str = "", flags: RootFlags = RootFlags.SUPPORTS_CREATE) -> RootInfo:
    p = abs_path(path)
    return RootInfo(
        authority=LOCAL_AUTHORITY,
        root_id=root_id,
        document_id=document_id_for(p),
        title=title or p.name or str(p),
        flags=flags,
        locator=path_to_locator(p),
    )


class LocalStorageProvider(StorageProvider):
    def describe(self, path: str | Path) -> DocumentDescriptor:
        p = abs_path(path)
        try:
            st = p.stat()
        except OSError as e:
            raise ResolutionError(f"cannot stat {p}: {e}") from e

        flags = DocFlags.NONE
        if p.is_dir():
            mime = MIME_TYPE_DIR
        else:
            mime = mimetypes.guess_type(p.name)[0] or DEFAULT_MIME_TYPE
            if p.suffix.lower() in PARTIAL_SUFFIXES:
                flags |= DocFlags.PARTIAL
        if os.access(p, os.W_OK):
            flags |= DocFlags.SUPPORTS_WRITE
        if os.access(p.parent, os.W_OK):
            flags |= DocFlags.SUPPORTS_DELETE

        return DocumentDescriptor(
            authority=LOCAL_AUTHORITY,
            document_id=document_id_for(p),
            locator=path_to_locator(p),
            mime_type=mime,
            display_name=p.name or str(p),
            flags=flags,
            size=None if p.is_dir() else st.st_size,
            last_modified=st.st_mtime,
        )

    def _path(self, locator: str) -> Path:
        try:
            return locator_to_path(locator)
        except ValueError as e:
            raise ResolutionError(str(e)) from e

    def resolve_container(self, root: RootInfo) -> DocumentDescriptor:
        p = self._path(root.locator)
        if not p.is_dir():
            raise ResolutionError(f"root is not a directory: {p}")
        return self.describe(p)

    def locate(self, locator: str) -> DocumentDescriptor:
        return self.describe(self._path(locator))

    def delete(self, locator: str) -> None:
        send_to_recycle_bin(str(self._path(locator)))

    def copy(self, locator: str, dest_container: str) -> str:
        target = copy_file(str(self._path(locator)), str(self._dest_dir(dest_container)))
        return path_to_locator(target)

    def move(self, locator: str, dest_container: str) -> str:
        target = move_file(str(self._path(locator)), str(self._dest_dir(dest_container)))
        return path_to_locator(target)

    def _dest_dir(self, dest_container: str) -> Path:
        dest = self._path(dest_container)
        if not dest.is_dir():
            _logger.warning("destination is not a directory: %s", dest)
            raise NotADirectoryError(str(dest))
        return dest
