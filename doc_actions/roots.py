"""Known roots and asynchronous resolution of a root's top-level container."""

from __future__ import annotations

from typing import Callable, Iterable

from .errors import ResolutionError
from .interfaces import StorageProvider
from .logger import get_logger
from .model import DocumentDescriptor, RootInfo
from .tasks import TaskHandle, TaskRunner

_logger = get_logger("roots")

RootDocumentCallback = Callable[[DocumentDescriptor | None, ResolutionError | None], None]


class RootsAccess:
    def __init__(self, roots: Iterable[RootInfo] = ()) -> None:
        self._roots: dict[tuple[str, str], RootInfo] = {}
        for root in roots:
            self.add(root)

    def add(self, root: RootInfo) -> None:
        self._roots[(root.authority, root.root_id)] = root

    def find_by_locator(self, locator: str | None) -> RootInfo | None:
        if not locator:
            return None
        for root in self._roots.values():
            if root.locator and root.locator == locator:
                return root
        return None

    def is_root_locator(self, locator: str | None) -> bool:
        return self.find_by_locator(locator) is not None


class RootDocumentTask:
    """Resolve ``root`` to its top-level container off the GUI thread.

    ``callback(doc, None)`` on success, ``callback(None, error)`` when the
    provider fails. Nothing is delivered once ``is_destroyed()`` is true.
    """

    def __init__(
        self,
        root: RootInfo,
        storage: StorageProvider,
        is_destroyed: Callable[[], bool],
        callback: RootDocumentCallback,
    ) -> None:
        if root is None:
            raise ValueError("root is required")
        self._root = root
        self._storage = storage
        self._is_destroyed = is_destroyed
        self._callback = callback

    def execute_on(self, runner: TaskRunner) -> TaskHandle:
        return runner.submit(self._root.authority, self._resolve, self._on_done, self._is_destroyed)

    def _resolve(self) -> DocumentDescriptor:
        try:
            return self._storage.resolve_container(self._root)
        except ResolutionError:
            raise
        except Exception as e:
            raise ResolutionError(f"failed to resolve root {self._root.root_id}: {e}") from e

    def _on_done(self, doc: DocumentDescriptor | None, error: BaseException | None) -> None:
        if error is not None:
            _logger.warning("root resolution failed: root=%s error=%s", self._root.root_id, error)
            if not isinstance(error, ResolutionError):
                error = ResolutionError(str(error))
            self._callback(None, error)
            return
        _logger.debug("root resolved: root=%s doc=%s", self._root.root_id, doc.document_id if doc else None)
        self._callback(doc, None)
