from __future__ import annotations

from .model import NavigationStack


class State:
    """Session state owned by the GUI thread."""

    def __init__(self, stack: NavigationStack | None = None, restored: bool = False) -> None:
        self.stack = stack if stack is not None else NavigationStack()
        # True once the stack has been restored from saved instance state.
        self.restored = restored

    def __repr__(self) -> str:
        return f"State(stack={self.stack!r}, restored={self.restored})"
