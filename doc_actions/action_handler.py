"""User actions of the files window, delegated to the dispatch components."""

from __future__ import annotations

from typing import Callable, Collection

from .classifier import (
    OPEN_ROUTE,
    PREVIEW_ROUTE,
    VIEW_ROUTE,
    ActionClassifier,
    MimePatternPreviewPolicy,
    PreviewPolicy,
    PreviewRequestBuilder,
    build_view_request,
)
from .clipper import DocumentClipper
from .errors import HandlerNotFoundError, HandoffRejectedError
from .interfaces import (
    ActionHost,
    ClipStore,
    Clipper,
    ConfirmationCallback,
    DialogController,
    DocumentModel,
    Launcher,
    SelectionManager,
    StorageProvider,
)
from .launch import LaunchStateResolver
from .logger import get_logger
from .model import (
    ClassificationOutcome,
    DocFlags,
    DocumentDescriptor,
    HandoffAction,
    HandoffRequest,
    LaunchIntent,
    OutcomeKind,
    RootInfo,
)
from .operations import FileOperationService, LiveSelection, OperationDispatcher
from .roots import RootsAccess
from .settings_manager import SettingsManager
from .source_set import FileClipStore
from .state import State
from .tasks import ExecutorLookup, MainThreadPoster, TaskHandle, TaskRunner

_logger = get_logger("action_handler")

MIME_TYPE_ROOT_ITEM = "vnd.doc-actions.root/item"

DocumentEnabled = Callable[[str, DocFlags], bool]


def _always_enabled(mime_type: str, flags: DocFlags) -> bool:
    return True


class ActionHandler:
    def __init__(
        self,
        host: ActionHost,
        state: State,
        roots: RootsAccess,
        storage: StorageProvider,
        runner: TaskRunner,
        dialogs: DialogController,
        launcher: Launcher,
        clipper: Clipper,
        clip_store: ClipStore,
        service,
        *,
        settings: SettingsManager | None = None,
        preview_policy: PreviewPolicy | None = None,
        document_enabled: DocumentEnabled = _always_enabled,
    ) -> None:
        settings = settings or SettingsManager()
        self._host = host
        self._state = state
        self._roots = roots
        self._runner = runner
        self._dialogs = dialogs
        self._launcher = launcher
        self._document_enabled = document_enabled

        self._model: DocumentModel | None = None
        self._selection_mgr: SelectionManager | None = None

        policy = preview_policy or MimePatternPreviewPolicy(settings.preview_mime_patterns)
        self.classifier = ActionClassifier(
            host,
            state,
            launcher,
            dialogs,
            PreviewRequestBuilder(policy, settings.quick_viewer_package),
            managed_mime_types=settings.managed_mime_types,
            managed_suppression=settings.managed_suppression,
        )
        self.operations = OperationDispatcher(
            host,
            state,
            storage,
            runner,
            dialogs,
            service,
            clipper,
            clip_store,
            inline_limit=settings.inline_source_limit,
        )
        self.launch = LaunchStateResolver(host, state, roots, settings.home_locator)

    @classmethod
    def create(
        cls,
        host: ActionHost,
        state: State,
        roots: RootsAccess,
        storage: StorageProvider,
        dialogs: DialogController,
        launcher: Launcher,
        *,
        settings: SettingsManager | None = None,
        clipboard=None,
        **kwargs,
    ) -> ActionHandler:
        """Wire the default executors, clip store, service and clipper."""
        settings = settings or SettingsManager()
        runner = TaskRunner(ExecutorLookup(settings.max_authorities), MainThreadPoster())
        clip_store = FileClipStore(settings.clip_store_dir)
        service = FileOperationService(storage, runner)
        clipper = DocumentClipper(service, clip_store, clipboard, inline_limit=settings.inline_source_limit)
        return cls(
            host, state, roots, storage, runner, dialogs, launcher, clipper, clip_store, service,
            settings=settings, **kwargs,
        )

    def reset(self, model: DocumentModel, selection_mgr: SelectionManager | None) -> ActionHandler:
        if model is None:
            raise ValueError("model is required")
        self._model = model
        self._selection_mgr = selection_mgr
        return self

    def _require_model(self) -> DocumentModel:
        if self._model is None:
            raise RuntimeError("reset() must be called before acting on documents")
        return self._model

    # ---- roots ----
    def drop_on(self, clip, root: RootInfo) -> bool:
        self.operations.request_drop(clip, root)
        return True

    def paste_into_folder(self, root: RootInfo) -> TaskHandle:
        return self.operations.request_paste(root)

    def open_root(self, root: RootInfo) -> None:
        _logger.debug("root visited: %s", root.root_id)
        self._host.on_root_picked(root)

    def open_settings(self, root: RootInfo) -> bool:
        request = HandoffRequest(HandoffAction.SETTINGS, root.locator, MIME_TYPE_ROOT_ITEM)
        try:
            self._launcher.start(request)
        except (HandlerNotFoundError, HandoffRejectedError) as e:
            _logger.warning("root settings unavailable for %s: %s", root.root_id, e)
            self._dialogs.show_notice(f"No settings available for {root.title or root.root_id}")
            return False
        return True

    # ---- documents ----
    def _document(self, model_id: str) -> DocumentDescriptor | None:
        doc = self._require_model().get_document(model_id)
        if doc is None:
            _logger.warning("can't act on item. no document available for model id: %s", model_id)
        return doc

    def open_document(self, model_id: str) -> bool:
        doc = self._document(model_id)
        if doc is None:
            return False
        if not self._document_enabled(doc.mime_type, doc.flags):
            return False
        outcome = self.on_document_picked(doc)
        return outcome.kind is not OutcomeKind.FAILED

    def view_document(self, model_id: str) -> bool:
        doc = self._document(model_id)
        if doc is None:
            return False
        return self.classifier.dispatch(doc, VIEW_ROUTE).kind is not OutcomeKind.FAILED

    def preview_document(self, model_id: str) -> bool:
        doc = self._document(model_id)
        if doc is None or doc.is_container():
            return False
        return self.classifier.dispatch(doc, PREVIEW_ROUTE).kind is not OutcomeKind.FAILED

    def on_document_picked(self, doc: DocumentDescriptor) -> ClassificationOutcome:
        return self.classifier.dispatch(doc, OPEN_ROUTE, self._selection_mgr)

    def show_chooser_for_doc(self, doc: DocumentDescriptor) -> bool:
        if doc.is_container():
            raise ValueError("chooser is not available for containers")
        if self.classifier.is_managed_download(doc):
            _logger.warning("open with is not yet supported for managed doc")
            return False

        view = build_view_request(doc)
        chooser = HandoffRequest(
            HandoffAction.CHOOSER, doc.locator, doc.mime_type, grants=view.grants, target=view
        )
        try:
            self._launcher.start(chooser)
        except HandlerNotFoundError:
            self._dialogs.show_no_application_found()
            return False
        except HandoffRejectedError as e:
            _logger.error("chooser handoff rejected: %s", e)
            self._dialogs.show_no_application_found()
            return False
        return True

    def delete_documents(
        self,
        callback: ConfirmationCallback,
        selection: Collection[str] | None = None,
        model: DocumentModel | None = None,
    ) -> None:
        model = model or self._require_model()
        if selection is None:
            if self._selection_mgr is None:
                raise ValueError("no selection to delete")
            selection = LiveSelection(self._selection_mgr)
        _logger.debug("delete requested: %d items", len(selection))
        self.operations.request_delete(model, selection, callback)

    # ---- launch ----
    def init_location(self, intent: LaunchIntent | None = None) -> str:
        return self.launch.resolve(intent if intent is not None else self._host.launch_intent())
