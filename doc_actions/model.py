"""Value types shared by the dispatch core.

Descriptors are produced by a storage provider and treated as read-only
here. ``NavigationStack`` is the only mutable type; it is owned by the
session ``State`` and mutated on the coordinating thread only.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator

MIME_TYPE_DIR = "inode/directory"
MIME_TYPE_PACKAGE_ARCHIVE = "application/vnd.android.package-archive"


class DocFlags(enum.IntFlag):
    NONE = 0
    SUPPORTS_WRITE = 1
    SUPPORTS_DELETE = 2
    PARTIAL = 4
    VIRTUAL = 8
    ARCHIVE = 16  # browsable archive, treated as a container


class RootFlags(enum.IntFlag):
    NONE = 0
    SUPPORTS_CREATE = 1
    MANAGED = 2  # downloads-style root, documents go through an external manager
    ARCHIVE = 4
    SUPPORTS_SETTINGS = 8


class OpKind(enum.Enum):
    COPY = "copy"
    MOVE = "move"
    DELETE = "delete"


class ConfirmResult(enum.IntEnum):
    CANCEL = 0
    CONFIRM = 1


class OutcomeKind(enum.Enum):
    CONTAINER = "container"
    MANAGED_EXTERNAL = "managed_external"
    PREVIEWED = "previewed"
    VIEWED_EXTERNALLY = "viewed_externally"
    FAILED = "failed"


class HandoffAction(enum.Enum):
    VIEW = "view"
    PREVIEW = "preview"
    MANAGE = "manage"
    SETTINGS = "settings"
    CHOOSER = "chooser"


class Grant(enum.IntFlag):
    NONE = 0
    READ = 1
    WRITE = 2


class LaunchAction(enum.Enum):
    MAIN = "main"
    VIEW = "view"
    BROWSE = "browse"


@dataclass(frozen=True)
class DocumentDescriptor:
    authority: str
    document_id: str
    locator: str
    mime_type: str
    display_name: str = ""
    flags: DocFlags = DocFlags.NONE
    size: int | None = None
    last_modified: float | None = None

    def is_directory(self) -> bool:
        return self.mime_type == MIME_TYPE_DIR

    def is_archive(self) -> bool:
        return bool(self.flags & DocFlags.ARCHIVE)

    def is_container(self) -> bool:
        return self.is_directory() or self.is_archive()

    def is_partial(self) -> bool:
        # Containers never carry partial semantics, whatever the provider says.
        if self.is_container():
            return False
        return bool(self.flags & DocFlags.PARTIAL)

    def is_write_supported(self) -> bool:
        return bool(self.flags & DocFlags.SUPPORTS_WRITE)

    def is_delete_supported(self) -> bool:
        return bool(self.flags & DocFlags.SUPPORTS_DELETE)

    def is_virtual(self) -> bool:
        return bool(self.flags & DocFlags.VIRTUAL)


@dataclass(frozen=True)
class RootInfo:
    authority: str
    root_id: str
    document_id: str
    title: str = ""
    flags: RootFlags = RootFlags.NONE
    locator: str = ""

    def is_managed(self) -> bool:
        return bool(self.flags & RootFlags.MANAGED)

    def is_archive(self) -> bool:
        return bool(self.flags & RootFlags.ARCHIVE)

    def supports_settings(self) -> bool:
        return bool(self.flags & RootFlags.SUPPORTS_SETTINGS)


class NavigationStack:
    """Path from a root container to the currently browsed container.

    ``root`` may be set while the document list is still empty: a root was
    picked but its top-level container has not been resolved yet.
    """

    def __init__(self, root: RootInfo | None = None, *docs: DocumentDescriptor) -> None:
        self.root = root
        self._docs: list[DocumentDescriptor] = list(docs)

    def push(self, doc: DocumentDescriptor) -> None:
        self._docs.append(doc)

    def pop(self) -> DocumentDescriptor:
        return self._docs.pop()

    def peek(self) -> DocumentDescriptor | None:
        return self._docs[-1] if self._docs else None

    def is_empty(self) -> bool:
        return not self._docs

    def size(self) -> int:
        return len(self._docs)

    def reset(self, root: RootInfo | None = None) -> None:
        self.root = root
        self._docs.clear()

    def copy(self) -> NavigationStack:
        return NavigationStack(self.root, *self._docs)

    def __len__(self) -> int:
        return len(self._docs)

    def __iter__(self) -> Iterator[DocumentDescriptor]:
        return iter(self._docs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NavigationStack):
            return NotImplemented
        return self.root == other.root and self._docs == other._docs

    def __repr__(self) -> str:
        names = "/".join(d.display_name or d.document_id for d in self._docs)
        root = self.root.root_id if self.root else None
        return f"NavigationStack(root={root!r}, path={names!r})"


@dataclass(frozen=True)
class HandoffRequest:
    action: HandoffAction
    locator: str
    mime_type: str | None = None
    grants: Grant = Grant.NONE
    package: str | None = None
    target: HandoffRequest | None = None  # wrapped request for CHOOSER


@dataclass(frozen=True)
class ClassificationOutcome:
    kind: OutcomeKind
    document: DocumentDescriptor | None = None
    request: HandoffRequest | None = None
    reason: str = ""

    def is_open(self) -> bool:
        return self.kind in (OutcomeKind.CONTAINER, OutcomeKind.PREVIEWED, OutcomeKind.VIEWED_EXTERNALLY)

    @classmethod
    def failed(cls, document: DocumentDescriptor | None, reason: str) -> ClassificationOutcome:
        return cls(OutcomeKind.FAILED, document=document, reason=reason)


@dataclass(frozen=True)
class LaunchIntent:
    action: LaunchAction = LaunchAction.MAIN
    data: str | None = None
