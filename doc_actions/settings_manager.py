from __future__ import annotations

import json
import os
from typing import Any

from .logger import get_logger
from .model import MIME_TYPE_PACKAGE_ARCHIVE

_logger = get_logger("settings")

SUPPRESSION_POLICIES = ("depth", "archive")


class SettingsManager:
    def __init__(self, settings_path: str | None = None):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        # Source sets above this size are persisted to the clip store.
        "inline_source_limit": 500,
        "managed_mime_types": [MIME_TYPE_PACKAGE_ARCHIVE],
        "preview_mime_patterns": ["image/*", "video/*", "audio/*", "text/*", "application/pdf"],
        "quick_viewer_package": None,
        "managed_suppression": "depth",
        "max_authorities": 8,
        "clip_store_dir": None,
        "home_locator": None,
    }

    def load(self) -> None:
        if not self.settings_path:
            self._settings = {}
            return
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except (OSError, ValueError) as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        if not self.settings_path:
            return
        try:
            os.makedirs(os.path.dirname(os.path.abspath(self.settings_path)), exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except OSError as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def inline_source_limit(self) -> int:
        try:
            value = int(self.get("inline_source_limit"))
        except (TypeError, ValueError):
            _logger.warning("invalid inline_source_limit: %r", self.get("inline_source_limit"))
            return int(self.DEFAULTS["inline_source_limit"])
        return max(1, value)

    @property
    def managed_mime_types(self) -> frozenset[str]:
        val = self.get("managed_mime_types")
        if not isinstance(val, list):
            val = self.DEFAULTS["managed_mime_types"]
        return frozenset(str(v) for v in val)

    @property
    def preview_mime_patterns(self) -> tuple[str, ...]:
        val = self.get("preview_mime_patterns")
        if not isinstance(val, list):
            val = self.DEFAULTS["preview_mime_patterns"]
        return tuple(str(v) for v in val)

    @property
    def quick_viewer_package(self) -> str | None:
        val = self.get("quick_viewer_package")
        return val if isinstance(val, str) and val.strip() else None

    @property
    def managed_suppression(self) -> str:
        val = self.get("managed_suppression")
        if val not in SUPPRESSION_POLICIES:
            _logger.warning("unknown managed_suppression %r, using 'depth'", val)
            return "depth"
        return val

    @property
    def max_authorities(self) -> int:
        try:
            return max(1, int(self.get("max_authorities")))
        except (TypeError, ValueError):
            return int(self.DEFAULTS["max_authorities"])

    @property
    def clip_store_dir(self) -> str | None:
        val = self.get("clip_store_dir")
        return val if isinstance(val, str) and val else None

    @property
    def home_locator(self) -> str | None:
        val = self.get("home_locator")
        return val if isinstance(val, str) and val else None
