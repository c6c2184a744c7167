"""Desktop handoff of view/preview requests through ``QDesktopServices``."""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QUrl
from PySide6.QtGui import QDesktopServices

from .errors import HandlerNotFoundError, HandoffRejectedError
from .interfaces import Launcher
from .logger import get_logger
from .model import HandoffAction, HandoffRequest

_logger = get_logger("launcher")

Handler = Callable[[HandoffRequest], None]


class DesktopLauncher(Launcher):
    """Open locators with the desktop's default application.

    VIEW and CHOOSER requests go to ``QDesktopServices.openUrl``. Other
    actions (MANAGE, PREVIEW, SETTINGS) need an explicitly registered
    handler, otherwise they are reported as unhandled.
    """

    def __init__(self, open_url: Callable[[QUrl], bool] | None = None) -> None:
        self._open_url = open_url or QDesktopServices.openUrl
        self._handlers: dict[HandoffAction, Handler] = {}

    def register(self, action: HandoffAction, handler: Handler) -> None:
        self._handlers[action] = handler

    def unregister(self, action: HandoffAction) -> None:
        self._handlers.pop(action, None)

    def _is_desktop_action(self, action: HandoffAction) -> bool:
        return action in (HandoffAction.VIEW, HandoffAction.CHOOSER)

    def can_handle(self, request: HandoffRequest) -> bool:
        if request.action in self._handlers:
            return True
        if not self._is_desktop_action(request.action):
            return False
        url = QUrl(request.locator)
        return url.isValid() and bool(url.scheme())

    def start(self, request: HandoffRequest) -> None:
        handler = self._handlers.get(request.action)
        if handler is not None:
            _logger.debug("handing off %s to registered handler: %s", request.action.value, request.locator)
            try:
                handler(request)
            except PermissionError as e:
                raise HandoffRejectedError(str(e)) from e
            return

        if not self._is_desktop_action(request.action):
            raise HandlerNotFoundError(f"no handler for {request.action.value}")

        url = QUrl(request.locator)
        if not url.isValid() or not url.scheme():
            raise HandlerNotFoundError(f"not an openable url: {request.locator}")
        if not self._open_url(url):
            raise HandlerNotFoundError(f"no application for {request.mime_type or request.locator}")
        _logger.debug("opened %s with desktop handler", request.locator)
