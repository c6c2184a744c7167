"""Decide how to act on a picked document and perform exactly one effect.

The decision is an ordered rule table; the first rule whose handoff is
accepted wins:

1. partial documents are refused
2. containers are opened in place
3. managed documents are handed to the external manager
4. previewable documents go to the quick viewer
5. everything else gets a generic VIEW request

A rule whose request cannot be built, or whose handoff has no taker, falls
through to the next one.
"""

from __future__ import annotations

import fnmatch
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Collection, Iterator

from .errors import HandlerNotFoundError, HandoffRejectedError
from .interfaces import ActionHost, DialogController, Launcher, SelectionManager
from .logger import get_logger
from .model import (
    ClassificationOutcome,
    DocFlags,
    DocumentDescriptor,
    Grant,
    HandoffAction,
    HandoffRequest,
    MIME_TYPE_PACKAGE_ARCHIVE,
    OutcomeKind,
)
from .state import State

_logger = get_logger("classifier")

REASON_PARTIAL = "cannot act on incomplete document"
REASON_NO_APP = "no application found"
REASON_NOT_ALLOWED = "no handling strategy allowed"

OPEN_ROUTE = frozenset(OutcomeKind) - {OutcomeKind.FAILED}
VIEW_ROUTE = frozenset({OutcomeKind.CONTAINER, OutcomeKind.MANAGED_EXTERNAL, OutcomeKind.VIEWED_EXTERNALLY})
PREVIEW_ROUTE = frozenset({OutcomeKind.PREVIEWED})


class PreviewPolicy(ABC):
    @abstractmethod
    def is_preview_eligible(self, mime_type: str, flags: DocFlags) -> bool:
        raise NotImplementedError()


class MimePatternPreviewPolicy(PreviewPolicy):
    """Preview documents whose mime type matches one of ``patterns``."""

    def __init__(self, patterns: Collection[str]) -> None:
        self._patterns = tuple(p.lower() for p in patterns)

    def is_preview_eligible(self, mime_type: str, flags: DocFlags) -> bool:
        if flags & (DocFlags.PARTIAL | DocFlags.VIRTUAL):
            return False
        mime = (mime_type or "").lower()
        return any(fnmatch.fnmatchcase(mime, p) for p in self._patterns)


class PreviewRequestBuilder:
    """Build quick-view requests; None when no quick viewer is configured."""

    def __init__(self, policy: PreviewPolicy, package: str | None) -> None:
        self._policy = policy
        self._package = package

    def build(self, doc: DocumentDescriptor) -> HandoffRequest | None:
        if not self._package:
            return None
        if not self._policy.is_preview_eligible(doc.mime_type, doc.flags):
            return None
        return HandoffRequest(
            HandoffAction.PREVIEW,
            doc.locator,
            doc.mime_type,
            grants=Grant.READ,
            package=self._package,
        )


def build_view_request(doc: DocumentDescriptor) -> HandoffRequest:
    grants = Grant.READ
    if doc.is_write_supported():
        grants |= Grant.WRITE
    return HandoffRequest(HandoffAction.VIEW, doc.locator, doc.mime_type, grants=grants)


def build_manage_request(doc: DocumentDescriptor) -> HandoffRequest:
    # The manager filters by authority itself, so nothing is granted.
    return HandoffRequest(HandoffAction.MANAGE, doc.locator)


@dataclass(frozen=True)
class _Rule:
    kind: OutcomeKind
    matches: Callable[[DocumentDescriptor], bool]
    build: Callable[[DocumentDescriptor], HandoffRequest | None] | None = None


class ActionClassifier:
    def __init__(
        self,
        host: ActionHost,
        state: State,
        launcher: Launcher,
        dialogs: DialogController,
        preview_builder: PreviewRequestBuilder,
        *,
        managed_mime_types: Collection[str] = (MIME_TYPE_PACKAGE_ARCHIVE,),
        managed_suppression: str = "depth",
    ) -> None:
        self._host = host
        self._state = state
        self._launcher = launcher
        self._dialogs = dialogs
        self._preview_builder = preview_builder
        self._managed_mime_types = frozenset(managed_mime_types)
        self._managed_suppression = managed_suppression

        self._rules: list[_Rule] = [
            _Rule(OutcomeKind.CONTAINER, lambda d: d.is_container()),
            _Rule(OutcomeKind.MANAGED_EXTERNAL, self.is_managed_download, build_manage_request),
            _Rule(OutcomeKind.PREVIEWED, lambda d: True, self._preview_builder.build),
            _Rule(OutcomeKind.VIEWED_EXTERNALLY, lambda d: True, build_view_request),
        ]

    # ---- policy ----
    def _browsing_nested(self) -> bool:
        stack = self._state.stack
        if self._managed_suppression == "archive":
            if stack.root is not None and stack.root.is_archive():
                return True
            return any(d.is_archive() for d in stack)
        return stack.size() > 1

    def is_managed_download(self, doc: DocumentDescriptor) -> bool:
        """Whether ``doc`` should go to the external (download) manager.

        Only on managed roots, never while browsing nested content, and only
        for package archives or partial files.
        """
        if self._browsing_nested():
            return False
        root = self._host.current_root()
        if root is None or not root.is_managed():
            return False
        return doc.mime_type in self._managed_mime_types or bool(doc.flags & DocFlags.PARTIAL)

    def _candidates(
        self, doc: DocumentDescriptor, route: Collection[OutcomeKind]
    ) -> Iterator[tuple[OutcomeKind, HandoffRequest | None]]:
        for rule in self._rules:
            if rule.kind not in route or not rule.matches(doc):
                continue
            if rule.build is None:
                yield rule.kind, None
                return
            request = rule.build(doc)
            if request is None:
                _logger.debug("no %s request for %s", rule.kind.value, doc.document_id)
                continue
            yield rule.kind, request

    # ---- decision ----
    def classify(self, doc: DocumentDescriptor, route: Collection[OutcomeKind] = OPEN_ROUTE) -> ClassificationOutcome:
        """Decide the outcome without performing any effect."""
        if doc is None:
            raise ValueError("doc is required")
        if doc.is_partial():
            return ClassificationOutcome.failed(doc, REASON_PARTIAL)
        for kind, request in self._candidates(doc, route):
            if request is None or self._launcher.can_handle(request):
                return ClassificationOutcome(kind, document=doc, request=request)
        if OutcomeKind.VIEWED_EXTERNALLY in route:
            return ClassificationOutcome.failed(doc, REASON_NO_APP)
        return ClassificationOutcome.failed(doc, REASON_NOT_ALLOWED)

    def dispatch(
        self,
        doc: DocumentDescriptor,
        route: Collection[OutcomeKind] = OPEN_ROUTE,
        selection: SelectionManager | None = None,
    ) -> ClassificationOutcome:
        """Perform the first accepted effect for ``doc``.

        Never raises for a missing handler. The selection is cleared only
        after an open outcome.
        """
        if doc is None:
            raise ValueError("doc is required")
        if doc.is_partial():
            _logger.warning("can't act on partial document: %s", doc.document_id)
            self._dialogs.show_notice(REASON_PARTIAL)
            return ClassificationOutcome.failed(doc, REASON_PARTIAL)

        outcome: ClassificationOutcome | None = None
        for kind, request in self._candidates(doc, route):
            if request is None:
                self._host.open_container_document(doc)
                outcome = ClassificationOutcome(kind, document=doc)
                break
            try:
                self._launcher.start(request)
            except HandlerNotFoundError:
                _logger.debug("no handler for %s request: %s", kind.value, doc.document_id)
                continue
            except HandoffRejectedError as e:
                _logger.error("handoff rejected for %s request: %s", kind.value, e)
                continue
            outcome = ClassificationOutcome(kind, document=doc, request=request)
            break

        if outcome is None:
            if OutcomeKind.VIEWED_EXTERNALLY not in route:
                return ClassificationOutcome.failed(doc, REASON_NOT_ALLOWED)
            self._dialogs.show_no_application_found()
            return ClassificationOutcome.failed(doc, REASON_NO_APP)

        _logger.debug("dispatched %s: %s", outcome.kind.value, doc.document_id)
        if outcome.is_open() and selection is not None and selection.has_selection():
            selection.clear_selection()
        return outcome
