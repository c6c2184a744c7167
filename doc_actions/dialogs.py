"""Qt dialogs for confirmations and user-visible notices.

Every dialog is shown with ``open()`` so the GUI thread never blocks; the
confirmation callback fires exactly once from the box's ``finished`` signal.
"""

from __future__ import annotations

import contextlib
from typing import Sequence

from PySide6.QtGui import QKeySequence, QPalette
from PySide6.QtWidgets import QApplication, QMessageBox, QWidget

from .interfaces import ConfirmationCallback, DialogController
from .logger import get_logger
from .model import ConfirmResult, DocumentDescriptor

_logger = get_logger("dialogs")

LUMINANCE_DARK_THRESHOLD = 128
MAX_LISTED_FAILURES = 10


def _is_palette_dark(pal: QPalette) -> bool:
    # Estimate whether a palette is dark by checking window color luminance
    w = pal.color(QPalette.ColorRole.Window)
    luminance = 0.299 * w.red() + 0.587 * w.green() + 0.114 * w.blue()
    return luminance < LUMINANCE_DARK_THRESHOLD


def build_delete_dialog_style(theme: str | None = None) -> str:
    """Build a stylesheet for the delete confirmation dialog based on theme.

    If theme is None, determine from current QApplication palette.
    """
    if theme is None:
        app = QApplication.instance()
        theme = "dark" if app is None or _is_palette_dark(app.palette()) else "light"

    if theme == "light":
        button_bg = "#e0e0e0"
        button_text = "#000000"
        button_border = "#bdbdbd"
    else:
        button_bg = "#424242"
        button_text = "#ffffff"
        button_border = "#616161"

    return (
        "QPushButton { min-width: 80px; min-height: 32px; padding: 6px 16px; font-size: 13px; "
        "font-weight: bold; border-radius: 4px; border: 2px solid transparent; }"
        f"\nQPushButton#button-yes {{ background-color: {button_bg}; "
        f"color: {button_text}; border: 2px solid {button_border}; }}"
        "\nQPushButton#button-yes:focus, QPushButton#button-yes:default { "
        "border: 2px solid #4A90E2; outline: none; }"
        f"\nQPushButton#button-no {{ background-color: {button_bg}; "
        f"color: {button_text}; border: 2px solid {button_border}; }}"
        "\nQPushButton#button-no:hover { border: 2px solid #757575; }"
        "\nQPushButton#button-no:focus, QPushButton#button-no:default { "
        "border: 2px solid #4A90E2; outline: none; }"
        "\nQPushButton:default { outline: none; }"
    )


def delete_prompt(docs: Sequence[DocumentDescriptor]) -> tuple[str, str, str]:
    """Title, text and informative text for a delete confirmation."""
    if len(docs) == 1:
        # Single selection: show the name for clarity
        name = docs[0].display_name or docs[0].document_id
        return "Delete File", "Delete this file?", f"{name}\n\nIt will be moved to Recycle Bin."
    return (
        "Delete Files",
        f"Delete {len(docs)} item(s)?",
        "They will be moved to Recycle Bin when possible.",
    )


def format_failures(failures: list) -> str:
    lines = []
    for item in failures[:MAX_LISTED_FAILURES]:
        locator = getattr(item, "locator", None) or "(operation)"
        reason = getattr(item, "reason", "")
        lines.append(f"{locator}: {reason}" if reason else str(locator))
    if len(failures) > MAX_LISTED_FAILURES:
        lines.append(f"... and {len(failures) - MAX_LISTED_FAILURES} more")
    return "\n".join(lines)


class QtDialogController(DialogController):
    def __init__(self, parent: QWidget | None = None, theme: str | None = None) -> None:
        self._parent = parent
        self._theme = theme
        # Open boxes are kept alive until they finish.
        self._open_boxes: set[QMessageBox] = set()

    def _show(self, box: QMessageBox) -> None:
        self._open_boxes.add(box)
        box.finished.connect(lambda _code, b=box: self._open_boxes.discard(b))
        box.open()

    def confirm_delete(self, docs: Sequence[DocumentDescriptor], callback: ConfirmationCallback) -> None:
        title, text, info = delete_prompt(docs)
        msg_box = QMessageBox(self._parent)
        msg_box.setWindowTitle(title)
        msg_box.setIcon(QMessageBox.Icon.Warning)
        msg_box.setText(text)
        msg_box.setInformativeText(info)

        # Use & for mnemonics (underlines Y/N)
        yes_btn = msg_box.addButton("&Yes", QMessageBox.ButtonRole.YesRole)
        yes_btn.setObjectName("button-yes")
        with contextlib.suppress(RuntimeError):
            yes_btn.setShortcut(QKeySequence("Y"))

        no_btn = msg_box.addButton("&No", QMessageBox.ButtonRole.NoRole)
        no_btn.setObjectName("button-no")
        with contextlib.suppress(RuntimeError):
            no_btn.setShortcut(QKeySequence("N"))

        msg_box.setDefaultButton(yes_btn)
        msg_box.setEscapeButton(no_btn)
        msg_box.setStyleSheet(build_delete_dialog_style(self._theme))
        msg_box.setMinimumWidth(500)

        def on_finished(_code: int) -> None:
            result = ConfirmResult.CONFIRM if msg_box.clickedButton() is yes_btn else ConfirmResult.CANCEL
            _logger.debug("delete confirmation finished: %s", result.name)
            callback(result)

        msg_box.finished.connect(on_finished)
        self._show(msg_box)

    def _notice(self, icon: QMessageBox.Icon, title: str, text: str, details: str | None = None) -> None:
        box = QMessageBox(self._parent)
        box.setIcon(icon)
        box.setWindowTitle(title)
        box.setText(text)
        if details:
            box.setDetailedText(details)
        box.setStandardButtons(QMessageBox.StandardButton.Ok)
        self._show(box)

    def show_no_application_found(self) -> None:
        _logger.info("no application found")
        self._notice(QMessageBox.Icon.Information, "Open", "No application found to open this file.")

    def show_file_operation_failures(self, failures: list) -> None:
        if not failures:
            return
        _logger.warning("%d items failed", len(failures))
        self._notice(
            QMessageBox.Icon.Warning,
            "Operation failed",
            f"{len(failures)} item(s) could not be processed.",
            format_failures(failures),
        )

    def show_operation_aborted(self, kind: str, error: BaseException) -> None:
        self._notice(QMessageBox.Icon.Critical, "Operation aborted", f"The {kind} could not be started.", str(error))

    def show_notice(self, text: str) -> None:
        self._notice(QMessageBox.Icon.Information, "Notice", text)
