"""Clipboard-backed copy/cut/paste of documents.

Clips are ``QMimeData`` holding the document URLs, plus two private
formats: the pending operation (copy or move) and the source parent.
Drag-and-drop payloads use the same layout.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from PySide6.QtCore import QMimeData, QUrl
from PySide6.QtGui import QGuiApplication

from .errors import SourceSetCaptureError
from .interfaces import ClipStore, Clipper, FailureCallback
from .logger import get_logger
from .model import DocumentDescriptor, NavigationStack, OpKind, RootInfo
from .operations import FailedItem, build_operation
from .source_set import DEFAULT_INLINE_LIMIT, capture

_logger = get_logger("clipper")

MIME_OP_TYPE = "application/x-doc-actions-op"
MIME_SRC_PARENT = "application/x-doc-actions-src-parent"


@dataclass(frozen=True)
class ClipPayload:
    locators: list[str]
    kind: OpKind
    source_parent: str | None


def build_clip(locators: Sequence[str], kind: OpKind = OpKind.COPY, source_parent: str | None = None) -> QMimeData:
    if kind is OpKind.DELETE:
        raise ValueError("delete cannot be clipped")
    mime = QMimeData()
    mime.setUrls([QUrl(loc) for loc in locators])
    mime.setData(MIME_OP_TYPE, kind.value.encode("utf-8"))
    if source_parent:
        mime.setData(MIME_SRC_PARENT, source_parent.encode("utf-8"))
    return mime


def read_clip(mime: QMimeData | None) -> ClipPayload | None:
    """Decode a clip; None when it holds no document URLs."""
    if mime is None or not mime.hasUrls():
        return None
    locators = [bytes(u.toEncoded().data()).decode("utf-8") for u in mime.urls() if u.isValid()]
    if not locators:
        return None

    kind = OpKind.COPY
    if mime.hasFormat(MIME_OP_TYPE):
        raw = bytes(mime.data(MIME_OP_TYPE).data()).decode("utf-8", "replace").strip()
        if raw == OpKind.MOVE.value:
            kind = OpKind.MOVE
    source_parent = None
    if mime.hasFormat(MIME_SRC_PARENT):
        source_parent = bytes(mime.data(MIME_SRC_PARENT).data()).decode("utf-8", "replace") or None
    return ClipPayload(locators, kind, source_parent)


class DocumentClipper(Clipper):
    def __init__(self, service, clip_store: ClipStore, clipboard=None, *, inline_limit: int = DEFAULT_INLINE_LIMIT) -> None:
        self._service = service
        self._clip_store = clip_store
        self._clipboard = clipboard
        self._inline_limit = inline_limit

    def _board(self):
        cb = self._clipboard if self._clipboard is not None else QGuiApplication.clipboard()
        if cb is None:
            _logger.warning("clipboard unavailable")
        return cb

    def _set_clip(self, locators: Sequence[str], kind: OpKind, source_parent: str | None) -> None:
        if not locators:
            return
        cb = self._board()
        if cb is None:
            return
        cb.setMimeData(build_clip(locators, kind, source_parent))
        _logger.debug("%s %d documents to clipboard", kind.value, len(locators))

    def clip_documents(self, locators: Sequence[str], source_parent: str | None = None) -> None:
        self._set_clip(locators, OpKind.COPY, source_parent)

    def cut_documents(self, locators: Sequence[str], source_parent: str | None = None) -> None:
        self._set_clip(locators, OpKind.MOVE, source_parent)

    def has_clip(self) -> bool:
        cb = self._board()
        return cb is not None and read_clip(cb.mimeData()) is not None

    def copy_from_clipboard(
        self, target: DocumentDescriptor, stack: NavigationStack, on_failure: FailureCallback
    ) -> None:
        cb = self._board()
        mime = cb.mimeData() if cb is not None else None
        if self._copy(target, stack, mime, on_failure) is OpKind.MOVE and cb is not None:
            # A cut clip can only be pasted once.
            cb.clear()

    def copy_from_clip_data(
        self, root: RootInfo, target: DocumentDescriptor, clip, on_failure: FailureCallback
    ) -> None:
        self._copy(target, NavigationStack(root, target), clip, on_failure)

    def _copy(self, target: DocumentDescriptor, stack: NavigationStack, mime, on_failure: FailureCallback) -> OpKind | None:
        payload = read_clip(mime)
        if payload is None:
            _logger.warning("nothing to paste")
            return None

        if not target.is_container():
            _logger.warning("paste target is not a container: %s", target.document_id)
            on_failure([FailedItem(loc, "destination is not a folder") for loc in payload.locators])
            return None

        try:
            srcs = capture(
                payload.locators,
                lambda loc: loc,
                self._clip_store,
                source_parent=payload.source_parent,
                inline_limit=self._inline_limit,
            )
        except SourceSetCaptureError as e:
            _logger.error("paste aborted, failed to capture sources: %s", e)
            on_failure([FailedItem(None, str(e))])
            return None

        operation = build_operation(
            payload.kind,
            sources=srcs,
            destination=stack,
            source_parent=payload.source_parent,
        )
        self._service.submit(operation, on_failure)
        return payload.kind
