"""Decide where to position the view when the window is (re)entered."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from .interfaces import ANIM_NONE, ActionHost
from .logger import get_logger
from .model import LaunchAction, LaunchIntent
from .roots import RootsAccess
from .state import State

_logger = get_logger("launch")

RESTORED = "restored"
STACK = "stack"
DOCUMENT = "document"
ROOT = "root"
HOME = "home"


@dataclass(frozen=True)
class _Step:
    name: str
    matches: Callable[[LaunchIntent], bool]
    run: Callable[[LaunchIntent], None]


class LaunchStateResolver:
    """Strict priority table; exactly one step runs per entry event."""

    def __init__(self, host: ActionHost, state: State, roots: RootsAccess, home_locator: str | None = None) -> None:
        self._host = host
        self._state = state
        self._roots = roots
        self._home_locator = home_locator
        self._steps: list[_Step] = [
            _Step(RESTORED, lambda i: self._state.restored, self._noop),
            _Step(STACK, lambda i: self._state.stack.root is not None, self._launch_to_stack),
            _Step(DOCUMENT, lambda i: i.action is LaunchAction.VIEW, self._launch_to_document),
            _Step(ROOT, self._is_browse_root, self._launch_to_root),
            _Step(HOME, lambda i: True, self._launch_to_home),
        ]

    def resolve(self, intent: LaunchIntent) -> str:
        if intent is None:
            raise ValueError("intent is required")
        for step in self._steps:
            if step.matches(intent):
                step.run(intent)
                _logger.debug("launched via %s (action=%s data=%s)", step.name, intent.action.value, intent.data)
                return step.name
        raise AssertionError("home step always matches")

    def _noop(self, intent: LaunchIntent) -> None:
        _logger.debug("stack already restored for %s", intent.data)

    # A stack present in state came from saved navigation; it wins over
    # whatever the intent carries.
    def _launch_to_stack(self, intent: LaunchIntent) -> None:
        stack = self._state.stack
        if stack.is_empty():
            self._host.on_root_picked(stack.root)  # type: ignore[arg-type]
        else:
            self._host.refresh_current_root_and_directory(ANIM_NONE)

    # Used for archives on managed roots, which are not browsable inline.
    def _launch_to_document(self, intent: LaunchIntent) -> None:
        if not intent.data:
            raise ValueError("view intent without data")
        self._host.load_document(intent.data)

    def _is_browse_root(self, intent: LaunchIntent) -> bool:
        return intent.action is LaunchAction.BROWSE and self._roots.is_root_locator(intent.data)

    def _launch_to_root(self, intent: LaunchIntent) -> None:
        self._host.load_root(intent.data)  # type: ignore[arg-type]

    def _launch_to_home(self, intent: LaunchIntent) -> None:
        if self._home_locator and self._roots.is_root_locator(self._home_locator):
            self._host.load_root(self._home_locator)
            return
        if self._home_locator:
            _logger.warning("configured home is not a known root: %s", self._home_locator)
        self._host.load_home_dir()
