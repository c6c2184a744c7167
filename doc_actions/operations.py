"""Bulk operations: request building, confirmation sequencing, execution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Collection
from urllib.parse import urlparse

from PySide6.QtCore import QObject, Signal

from .errors import OperationAbortedError, SourceSetCaptureError
from .interfaces import (
    ActionHost,
    ClipStore,
    Clipper,
    ConfirmationCallback,
    DialogController,
    DocumentModel,
    ExecutionService,
    FailureCallback,
    StorageProvider,
)
from .logger import get_logger
from .model import ConfirmResult, NavigationStack, OpKind, RootInfo
from .roots import RootDocumentTask
from .source_set import DEFAULT_INLINE_LIMIT, SourceSet, capture
from .state import State
from .tasks import TaskHandle, TaskRunner

_logger = get_logger("operations")


@dataclass(frozen=True)
class FailedItem:
    locator: str | None
    reason: str


@dataclass(frozen=True)
class OperationRequest:
    kind: OpKind
    destination: NavigationStack | None
    sources: SourceSet
    source_parent: str | None = None

    def authority(self) -> str:
        if self.destination is not None and self.destination.root is not None:
            return self.destination.root.authority
        parsed = urlparse(self.source_parent or "")
        return parsed.netloc or parsed.scheme or "default"


def build_operation(
    kind: OpKind,
    *,
    sources: SourceSet,
    destination: NavigationStack | None = None,
    source_parent: str | None = None,
) -> OperationRequest:
    if sources is None or len(sources) == 0:
        raise ValueError("an operation needs at least one source")
    if kind in (OpKind.COPY, OpKind.MOVE) and (destination is None or destination.is_empty()):
        raise ValueError(f"{kind.value} requires a destination")
    return OperationRequest(
        kind=kind,
        destination=destination.copy() if destination is not None else None,
        sources=sources,
        source_parent=source_parent,
    )


class _OperationSignals(QObject):
    # request, list[FailedItem]
    finished = Signal(object, list)


class FileOperationService(ExecutionService):
    """Execute operation requests against a storage provider.

    Items are processed one by one on the authority's worker; a failing item
    never stops the rest. Failures are reported once, as a list, on the GUI
    thread.
    """

    def __init__(self, storage: StorageProvider, runner: TaskRunner, parent: QObject | None = None) -> None:
        self._signals = _OperationSignals(parent)
        self._storage = storage
        self._runner = runner

    @property
    def operation_finished(self):
        """Signal emitted with ``(request, failed_items)`` after every operation."""
        return self._signals.finished

    def submit(self, request: OperationRequest, on_failure: FailureCallback) -> TaskHandle:
        _logger.debug("submit %s: %d sources", request.kind.value, len(request.sources))

        def _done(failed: list[FailedItem] | None, error: BaseException | None) -> None:
            if error is not None:
                _logger.error("%s operation failed: %s", request.kind.value, error)
                failed = [FailedItem(None, str(error))]
            failed = failed or []
            if failed:
                on_failure(failed)
            self.operation_finished.emit(request, failed)

        return self._runner.submit(request.authority(), lambda: self._run(request), _done)

    def _run(self, request: OperationRequest) -> list[FailedItem]:
        dest = request.destination.peek() if request.destination is not None else None
        failed: list[FailedItem] = []
        try:
            locators = request.sources.locators()
            for loc in locators:
                try:
                    if request.kind is OpKind.DELETE:
                        self._storage.delete(loc)
                    elif request.kind is OpKind.COPY:
                        self._storage.copy(loc, dest.locator)  # type: ignore[union-attr]
                    else:
                        self._storage.move(loc, dest.locator)  # type: ignore[union-attr]
                except Exception as exc:
                    _logger.warning("%s failed for %s: %s", request.kind.value, loc, exc)
                    failed.append(FailedItem(loc, str(exc)))
        finally:
            request.sources.release()
        _logger.debug(
            "%s complete: %d success, %d failed",
            request.kind.value,
            len(locators) - len(failed),
            len(failed),
        )
        return failed


def _once(callback: ConfirmationCallback) -> ConfirmationCallback:
    fired = False

    def wrapper(code: ConfirmResult) -> None:
        nonlocal fired
        if fired:
            _logger.warning("confirmation callback invoked again (code=%s), ignoring", code)
            return
        fired = True
        callback(code)

    return wrapper


class OperationDispatcher:
    def __init__(
        self,
        host: ActionHost,
        state: State,
        storage: StorageProvider,
        runner: TaskRunner,
        dialogs: DialogController,
        service: ExecutionService,
        clipper: Clipper,
        clip_store: ClipStore,
        *,
        inline_limit: int = DEFAULT_INLINE_LIMIT,
    ) -> None:
        self._host = host
        self._state = state
        self._storage = storage
        self._runner = runner
        self._dialogs = dialogs
        self._service = service
        self._clipper = clipper
        self._clip_store = clip_store
        self._inline_limit = inline_limit

    def request_delete(
        self, model: DocumentModel, selection: Collection[str], callback: ConfirmationCallback
    ) -> None:
        """Confirm, then delete ``selection`` from the current directory.

        ``selection`` is the live selection; it is read again once the user
        confirms.
        """
        if not selection:
            raise ValueError("cannot delete an empty selection")
        src_parent = self._state.stack.peek()
        if src_parent is None:
            raise ValueError("no current directory to delete from")

        # Model must be read on the GUI thread.
        docs = model.get_documents(list(selection))

        def on_result(code: ConfirmResult) -> None:
            # Caller hears about every outcome, good or bad.
            callback(code)
            if code != ConfirmResult.CONFIRM:
                _logger.debug("delete not confirmed (code=%s)", code)
                return

            try:
                if not selection:
                    raise SourceSetCaptureError("selection was cleared before confirmation")
                srcs = capture(
                    list(selection),
                    model.get_item_locator,
                    self._clip_store,
                    source_parent=src_parent.locator,
                    inline_limit=self._inline_limit,
                )
            except SourceSetCaptureError as e:
                _logger.error("delete aborted, failed to capture sources: %s", e)
                self._dialogs.show_operation_aborted(OpKind.DELETE.value, e)
                raise OperationAbortedError("failed to capture delete sources", kind=OpKind.DELETE.value) from e

            operation = build_operation(
                OpKind.DELETE,
                sources=srcs,
                destination=self._state.stack,
                source_parent=src_parent.locator,
            )
            self._service.submit(operation, self._dialogs.show_file_operation_failures)

        self._dialogs.confirm_delete(docs, _once(on_result))

    def _with_root_document(self, root: RootInfo, then: Callable) -> TaskHandle:
        def on_resolved(doc, error) -> None:
            if error is not None:
                self._dialogs.show_notice(f"Unable to open {root.title or root.root_id}")
                return
            then(doc)

        return RootDocumentTask(root, self._storage, self._host.is_destroyed, on_resolved).execute_on(self._runner)

    def request_paste(self, root: RootInfo) -> TaskHandle:
        """Paste the clipboard into the top-level container of ``root``."""

        def paste(doc) -> None:
            stack = NavigationStack(root, doc)
            self._clipper.copy_from_clipboard(doc, stack, self._dialogs.show_file_operation_failures)

        return self._with_root_document(root, paste)

    def request_drop(self, clip, root: RootInfo) -> TaskHandle:
        """Copy dropped ``clip`` data into the top-level container of ``root``."""

        def drop(doc) -> None:
            self._clipper.copy_from_clip_data(root, doc, clip, self._dialogs.show_file_operation_failures)

        return self._with_root_document(root, drop)


class LiveSelection:
    """Read-through view of a SelectionManager's current selection."""

    def __init__(self, manager) -> None:
        self._manager = manager

    def __len__(self) -> int:
        return len(self._manager.get_selection())

    def __iter__(self):
        return iter(self._manager.get_selection())

    def __contains__(self, item: object) -> bool:
        return item in self._manager.get_selection()
