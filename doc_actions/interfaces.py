"""Collaborator interfaces the dispatch core depends on.

Concrete implementations live elsewhere (Qt dialogs, local storage, the
clipboard clipper) or in the embedding application (host window, model,
selection). The core never imports a concrete host.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Iterable, Sequence

from .model import (
    ConfirmResult,
    DocumentDescriptor,
    HandoffRequest,
    LaunchIntent,
    NavigationStack,
    RootInfo,
)

if TYPE_CHECKING:
    from .tasks import TaskHandle

ConfirmationCallback = Callable[[ConfirmResult], None]
FailureCallback = Callable[[list], None]

ANIM_NONE = 0
ANIM_ENTER = 1
ANIM_LEAVE = 2


class ActionHost(ABC):
    """Narrow capability set of the UI host (window) that owns navigation."""

    @abstractmethod
    def is_destroyed(self) -> bool:
        raise NotImplementedError()

    @abstractmethod
    def current_root(self) -> RootInfo | None:
        raise NotImplementedError()

    @abstractmethod
    def launch_intent(self) -> LaunchIntent:
        raise NotImplementedError()

    @abstractmethod
    def on_root_picked(self, root: RootInfo) -> None:
        raise NotImplementedError()

    @abstractmethod
    def open_container_document(self, doc: DocumentDescriptor) -> None:
        raise NotImplementedError()

    @abstractmethod
    def refresh_current_root_and_directory(self, anim: int = ANIM_NONE) -> None:
        raise NotImplementedError()

    @abstractmethod
    def load_document(self, locator: str) -> None:
        raise NotImplementedError()

    @abstractmethod
    def load_root(self, locator: str) -> None:
        raise NotImplementedError()

    @abstractmethod
    def load_home_dir(self) -> None:
        raise NotImplementedError()


class DialogController(ABC):
    @abstractmethod
    def confirm_delete(self, docs: Sequence[DocumentDescriptor], callback: ConfirmationCallback) -> None:
        """Ask the user; ``callback`` must be invoked exactly once."""
        raise NotImplementedError()

    @abstractmethod
    def show_no_application_found(self) -> None:
        raise NotImplementedError()

    @abstractmethod
    def show_file_operation_failures(self, failures: list) -> None:
        raise NotImplementedError()

    @abstractmethod
    def show_operation_aborted(self, kind: str, error: BaseException) -> None:
        raise NotImplementedError()

    @abstractmethod
    def show_notice(self, text: str) -> None:
        raise NotImplementedError()


class StorageProvider(ABC):
    """Document storage layer. All methods may block; call off the GUI thread."""

    @abstractmethod
    def resolve_container(self, root: RootInfo) -> DocumentDescriptor:
        """Return the root's top-level container or raise ResolutionError."""
        raise NotImplementedError()

    @abstractmethod
    def locate(self, locator: str) -> DocumentDescriptor:
        raise NotImplementedError()

    @abstractmethod
    def delete(self, locator: str) -> None:
        raise NotImplementedError()

    @abstractmethod
    def copy(self, locator: str, dest_container: str) -> str:
        raise NotImplementedError()

    @abstractmethod
    def move(self, locator: str, dest_container: str) -> str:
        raise NotImplementedError()


class ExecutionService(ABC):
    @abstractmethod
    def submit(self, request, on_failure: FailureCallback) -> TaskHandle:
        """Schedule ``request``; failures are reported once, on the GUI thread."""
        raise NotImplementedError()


class Clipper(ABC):
    @abstractmethod
    def has_clip(self) -> bool:
        raise NotImplementedError()

    @abstractmethod
    def copy_from_clipboard(
        self, target: DocumentDescriptor, stack: NavigationStack, on_failure: FailureCallback
    ) -> None:
        raise NotImplementedError()

    @abstractmethod
    def copy_from_clip_data(
        self, root: RootInfo, target: DocumentDescriptor, clip, on_failure: FailureCallback
    ) -> None:
        raise NotImplementedError()


class Launcher(ABC):
    """Hands requests off to external applications."""

    @abstractmethod
    def can_handle(self, request: HandoffRequest) -> bool:
        raise NotImplementedError()

    @abstractmethod
    def start(self, request: HandoffRequest) -> None:
        """Raise HandlerNotFoundError or HandoffRejectedError on failure."""
        raise NotImplementedError()


class DocumentModel(ABC):
    """Live directory listing. Not thread safe: GUI thread only."""

    @abstractmethod
    def get_document(self, model_id: str) -> DocumentDescriptor | None:
        raise NotImplementedError()

    def get_documents(self, model_ids: Iterable[str]) -> list[DocumentDescriptor]:
        docs = []
        for model_id in model_ids:
            doc = self.get_document(model_id)
            if doc is not None:
                docs.append(doc)
        return docs

    @abstractmethod
    def get_item_locator(self, model_id: str) -> str | None:
        raise NotImplementedError()


class SelectionManager(ABC):
    @abstractmethod
    def has_selection(self) -> bool:
        raise NotImplementedError()

    @abstractmethod
    def get_selection(self) -> list[str]:
        raise NotImplementedError()

    @abstractmethod
    def clear_selection(self) -> None:
        raise NotImplementedError()


class ClipStore(ABC):
    @abstractmethod
    def persist(self, locators: Sequence[str]) -> str:
        """Store locators and return an opaque handle. Raise OSError on failure."""
        raise NotImplementedError()

    @abstractmethod
    def read(self, handle: str) -> list[str]:
        raise NotImplementedError()

    @abstractmethod
    def release(self, handle: str) -> None:
        raise NotImplementedError()
