"""Exception types raised or delivered by the dispatch core.

Cancellation is deliberately absent: an owner torn down mid-resolution is
a silent no-op, never an error.
"""

from __future__ import annotations


class DocActionsError(Exception):
    """Base class for all doc_actions errors."""


class HandlerNotFoundError(DocActionsError):
    """No external handler accepted a handoff request."""


class HandoffRejectedError(DocActionsError):
    """A handler exists but refused the handoff (security restriction)."""


class ResolutionError(DocActionsError):
    """A root or locator could not be resolved by its provider.

    Delivered through the resolution callback, never raised to the caller.
    """


class SourceSetCaptureError(DocActionsError, OSError):
    """A source set could not be persisted to the clip store."""


class OperationAbortedError(DocActionsError):
    """A confirmed operation could not be started and was abandoned."""

    def __init__(self, message: str, *, kind: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind
