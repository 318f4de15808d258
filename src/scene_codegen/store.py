"""Entity store adapters holding scene records.

A record looks like ``{"id": ..., "version": int, "content": {...}, ...}``.
This package only ever touches keys inside ``content``; everything else on
the record belongs to its owner and is carried through untouched.
"""
from __future__ import annotations

import copy
import json
import logging
import os
import re
import threading
from abc import ABC, abstractmethod
from typing import Any

from .config import cfg
from .errors import SceneCodegenError, SceneNotFoundError, StaleBufferError

logger = logging.getLogger(__name__)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]{0,127}$")


def validate_scene_id(scene_id: str) -> str:
    """Reject ids that are empty or unsafe to use as a file name."""
    if not isinstance(scene_id, str) or not _IDENTIFIER_RE.match(scene_id):
        raise SceneCodegenError(
            "Invalid scene id",
            "Scene ids must start with a letter or digit and contain only letters, digits, '_' or '-'.",
        )
    return scene_id


def _merge_content(record: dict[str, Any], changes: dict[str, Any]) -> None:
    content = record.setdefault("content", {})
    for key, value in changes.items():
        if value is None:
            content.pop(key, None)
        else:
            content[key] = value


class SceneStore(ABC):
    """Read/write access to scene records by id."""

    @abstractmethod
    def get(self, scene_id: str) -> dict[str, Any] | None:
        """Return a copy of the record, or None if it does not exist."""

    @abstractmethod
    def create(self, scene_id: str, content: dict[str, Any] | None = None, **fields: Any) -> dict[str, Any]:
        """Create (or replace) a record and return a copy of it."""

    @abstractmethod
    def update_content(
        self,
        scene_id: str,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> int:
        """Merge ``changes`` into the record's content and return the new version.

        ``None`` values remove the key. When ``expected_version`` is given and
        does not match the stored version, raises ``StaleBufferError`` and
        writes nothing.
        """


class InMemorySceneStore(SceneStore):
    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}
        self._lock = threading.RLock()

    def get(self, scene_id: str) -> dict[str, Any] | None:
        with self._lock:
            record = self._records.get(scene_id)
            return copy.deepcopy(record) if record is not None else None

    def create(self, scene_id: str, content: dict[str, Any] | None = None, **fields: Any) -> dict[str, Any]:
        validate_scene_id(scene_id)
        record = {**fields, "id": scene_id, "version": 0, "content": dict(content or {})}
        with self._lock:
            self._records[scene_id] = record
            return copy.deepcopy(record)

    def update_content(
        self,
        scene_id: str,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> int:
        with self._lock:
            record = self._records.get(scene_id)
            if record is None:
                raise SceneNotFoundError(scene_id)
            current = int(record.get("version", 0))
            if expected_version is not None and expected_version != current:
                raise StaleBufferError(scene_id, expected_version, current)
            _merge_content(record, copy.deepcopy(changes))
            record["version"] = current + 1
            return record["version"]


class JsonFileSceneStore(SceneStore):
    """One ``<scene_id>.json`` file per scene under ``base_path``.

    Compare-and-set is serialized by an in-process lock; writes go through a
    temp file and ``os.replace`` so readers never see a partial record.
    """

    def __init__(self, base_path: str):
        if not base_path:
            raise ValueError("Scene store path is required")
        self.base_path = os.path.abspath(base_path)
        self._lock = threading.RLock()

    def _file_path(self, scene_id: str) -> str:
        return os.path.join(self.base_path, f"{validate_scene_id(scene_id)}.json")

    def _read(self, scene_id: str) -> dict[str, Any] | None:
        file_path = self._file_path(scene_id)
        try:
            with open(file_path, "r", encoding="utf-8") as handle:
                return json.load(handle)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as exc:
            raise SceneCodegenError(
                "Stored scene is unreadable",
                f"Stored scene payload at {file_path} is invalid JSON",
            ) from exc

    def _write(self, scene_id: str, record: dict[str, Any]) -> None:
        file_path = self._file_path(scene_id)
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        tmp_path = f"{file_path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as handle:
            json.dump(record, handle, ensure_ascii=False, indent=2)
        os.replace(tmp_path, file_path)

    def get(self, scene_id: str) -> dict[str, Any] | None:
        with self._lock:
            return self._read(scene_id)

    def create(self, scene_id: str, content: dict[str, Any] | None = None, **fields: Any) -> dict[str, Any]:
        record = {**fields, "id": scene_id, "version": 0, "content": dict(content or {})}
        with self._lock:
            self._write(scene_id, record)
        return record

    def update_content(
        self,
        scene_id: str,
        changes: dict[str, Any],
        expected_version: int | None = None,
    ) -> int:
        with self._lock:
            record = self._read(scene_id)
            if record is None:
                raise SceneNotFoundError(scene_id)
            current = int(record.get("version", 0))
            if expected_version is not None and expected_version != current:
                raise StaleBufferError(scene_id, expected_version, current)
            _merge_content(record, changes)
            record["version"] = current + 1
            self._write(scene_id, record)
            return record["version"]


def build_store(path: str | None = None) -> SceneStore:
    """JSON file store at ``path`` (or ``cfg.store_path``), else an in-memory store."""
    resolved = path or cfg.store_path
    if resolved:
        logger.info("Using JSON scene store at %s", resolved)
        return JsonFileSceneStore(resolved)
    logger.info("Using in-memory scene store")
    return InMemorySceneStore()
