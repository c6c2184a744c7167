"""Capture a selection into an immutable set of source locators.

Small sets carry their locators inline. Larger ones are written to a
``ClipStore`` and referenced by handle so the in-memory (and serialized)
payload stays bounded.
"""

from __future__ import annotations

import json
import os
import tempfile
import uuid
from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

from .errors import SourceSetCaptureError
from .interfaces import ClipStore
from .logger import get_logger

_logger = get_logger("source_set")

DEFAULT_INLINE_LIMIT = 500


class SourceSet:
    __slots__ = ("_count", "_handle", "_locators", "_source_parent", "_store")

    def __init__(
        self,
        *,
        locators: Sequence[str] | None = None,
        handle: str | None = None,
        store: ClipStore | None = None,
        count: int | None = None,
        source_parent: str | None = None,
    ) -> None:
        if (locators is None) == (handle is None):
            raise ValueError("exactly one of locators/handle is required")
        if handle is not None and (store is None or count is None):
            raise ValueError("a persisted source set needs its store and count")
        self._locators = tuple(locators) if locators is not None else None
        self._handle = handle
        self._store = store
        self._count = len(self._locators) if self._locators is not None else int(count)  # type: ignore[arg-type]
        self._source_parent = source_parent

    @property
    def source_parent(self) -> str | None:
        return self._source_parent

    @property
    def handle(self) -> str | None:
        return self._handle

    def is_persisted(self) -> bool:
        return self._handle is not None

    def __len__(self) -> int:
        return self._count

    def locators(self) -> list[str]:
        if self._locators is not None:
            return list(self._locators)
        assert self._store is not None and self._handle is not None
        return self._store.read(self._handle)

    def release(self) -> None:
        """Free the clip store slot, if any. Safe to call more than once."""
        if self._handle is not None and self._store is not None:
            self._store.release(self._handle)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"count": self._count, "source_parent": self._source_parent}
        if self._handle is not None:
            data["handle"] = self._handle
        else:
            data["locators"] = list(self._locators or ())
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any], store: ClipStore | None = None) -> SourceSet:
        if "handle" in data:
            return cls(handle=data["handle"], store=store, count=int(data["count"]),
                       source_parent=data.get("source_parent"))
        return cls(locators=list(data["locators"]), source_parent=data.get("source_parent"))

    def __repr__(self) -> str:
        where = f"handle={self._handle!r}" if self._handle else "inline"
        return f"SourceSet(count={self._count}, {where})"


def capture(
    selected_ids: Iterable[str],
    id_to_locator: Callable[[str], str | None],
    clip_store: ClipStore,
    *,
    source_parent: str | None = None,
    inline_limit: int = DEFAULT_INLINE_LIMIT,
) -> SourceSet:
    """Snapshot ``selected_ids`` into a SourceSet.

    Ids that no longer map to a locator are dropped. Raises ValueError for an
    empty selection and SourceSetCaptureError when nothing survives or the
    clip store cannot be written; no partial set is ever returned.
    """
    ids = list(selected_ids)
    if not ids:
        raise ValueError("cannot capture an empty selection")

    locators: list[str] = []
    for model_id in ids:
        loc = id_to_locator(model_id)
        if not loc:
            _logger.warning("selection item no longer available: %s", model_id)
            continue
        locators.append(loc)

    if not locators:
        raise SourceSetCaptureError("selection no longer resolves to any document")

    if len(locators) <= inline_limit:
        return SourceSet(locators=locators, source_parent=source_parent)

    try:
        handle = clip_store.persist(locators)
    except (OSError, ValueError) as e:
        raise SourceSetCaptureError(f"failed to persist {len(locators)} sources: {e}") from e
    _logger.debug("source set persisted: count=%d handle=%s", len(locators), handle)
    return SourceSet(handle=handle, store=clip_store, count=len(locators), source_parent=source_parent)


class FileClipStore(ClipStore):
    """Clip store backed by one UTF-8 JSON file per slot.

    Locators are stored verbatim as a JSON list, so any character
    (newlines and carriage returns included) reads back unchanged.
    """

    def __init__(self, directory: str | os.PathLike[str] | None = None) -> None:
        if directory is None:
            directory = Path(tempfile.gettempdir()) / "doc_actions_clips"
        self._dir = Path(directory)

    @property
    def directory(self) -> Path:
        return self._dir

    def _slot(self, handle: str) -> Path:
        if not handle or "/" in handle or "\\" in handle or handle.startswith("."):
            raise ValueError(f"invalid clip handle: {handle!r}")
        return self._dir / f"{handle}.clip"

    def persist(self, locators: Sequence[str]) -> str:
        self._dir.mkdir(parents=True, exist_ok=True)
        handle = uuid.uuid4().hex
        target = self._slot(handle)
        tmp = target.with_suffix(".tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump([str(loc) for loc in locators], f, ensure_ascii=False)
            os.replace(tmp, target)
        finally:
            tmp.unlink(missing_ok=True)
        return handle

    def read(self, handle: str) -> list[str]:
        with open(self._slot(handle), encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list) or not all(isinstance(loc, str) for loc in data):
            raise ValueError(f"corrupt clip slot: {handle}")
        return data

    def release(self, handle: str) -> None:
        self._slot(handle).unlink(missing_ok=True)
        _logger.debug("clip slot released: %s", handle)
