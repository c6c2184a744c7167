"""Document action dispatch for a file-manager window.

Decides how to act on a picked document (open in place, hand to the
download manager, quick preview, external viewer), sequences confirmed
bulk operations (delete, paste, drop) onto per-authority workers, and
positions the view on window entry.

Usage:
    from doc_actions import ActionHandler

    handler = ActionHandler.create(host, state, roots, storage, dialogs, launcher)
    handler.reset(model, selection_mgr)
    handler.init_location()
    handler.open_document(model_id)
"""

from .action_handler import ActionHandler
from .model import (
    ClassificationOutcome,
    DocumentDescriptor,
    LaunchIntent,
    NavigationStack,
    OutcomeKind,
    RootInfo,
)
from .state import State

__all__ = [
    "ActionHandler",
    "ClassificationOutcome",
    "DocumentDescriptor",
    "LaunchIntent",
    "NavigationStack",
    "OutcomeKind",
    "RootInfo",
    "State",
]
