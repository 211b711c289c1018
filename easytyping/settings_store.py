from __future__ import annotations

import json
import logging
import os
from copy import deepcopy
from pathlib import Path
from typing import Any, Mapping

logger = logging.getLogger(__name__)

_MISSING = object()


class SettingsStoreError(RuntimeError):
    """Raised when the settings file cannot be written."""


def deep_merge_defaults(data: Mapping[str, Any], defaults: Mapping[str, Any]) -> dict[str, Any]:
    """Fill keys missing from ``data`` with defaults, recursing into nested objects."""
    merged = deepcopy(dict(data))
    for key, default_value in defaults.items():
        current = merged.get(key, _MISSING)
        if current is _MISSING:
            merged[key] = deepcopy(default_value)
        elif isinstance(current, dict) and isinstance(default_value, dict):
            merged[key] = deep_merge_defaults(current, default_value)
    return merged


def _walk(data: Mapping[str, Any], parts: list[str]) -> Any:
    current: Any = data
    for part in parts:
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def dot_get(data: Mapping[str, Any], key: str, default: Any = None) -> Any:
    if not key:
        return data
    value = _walk(data, key.split("."))
    return default if value is _MISSING else value


def dot_set(data: dict[str, Any], key: str, value: Any) -> None:
    if not key:
        raise ValueError("Key cannot be empty.")
    *parents, leaf = key.split(".")
    current = data
    for part in parents:
        child = current.get(part)
        if not isinstance(child, dict):
            child = current[part] = {}
        current = child
    current[leaf] = value


def dot_delete(data: dict[str, Any], key: str) -> bool:
    """Remove ``key`` and any parent objects the removal leaves empty."""
    if not key:
        return False
    *parents, leaf = key.split(".")
    chain: list[dict[str, Any]] = [data]
    for part in parents:
        child = chain[-1].get(part)
        if not isinstance(child, dict):
            return False
        chain.append(child)
    if leaf not in chain[-1]:
        return False
    del chain[-1][leaf]
    for depth in range(len(parents) - 1, -1, -1):
        if chain[depth + 1]:
            break
        del chain[depth][parents[depth]]
    return True


class JsonSettingsStore:
    """Application settings file with defaults and dot-key access.

    An unreadable or malformed file never stops the editor: defaults are used,
    ``last_error`` records the reason and the file is left untouched until the
    next explicit ``save``.
    """

    def __init__(self, path: Path, defaults: Mapping[str, Any], *, persistent: bool = True) -> None:
        self.path = Path(path)
        self.defaults: dict[str, Any] = deepcopy(dict(defaults))
        self.data: dict[str, Any] = {}
        self.dirty = False
        self.last_error: str | None = None
        self.persistent = bool(persistent)

    def load(self) -> dict[str, Any]:
        self.last_error = None
        if not self.persistent:
            self.data = deep_merge_defaults({}, self.defaults)
            self.dirty = False
            return self.data

        if not self.path.exists():
            self.data = deep_merge_defaults({}, self.defaults)
            self.dirty = True
            return self.data

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raw = None
            self.last_error = f"Could not read settings file '{self.path}': {exc}"
        else:
            if not isinstance(raw, dict):
                self.last_error = (
                    f"Settings root in '{self.path}' must be a JSON object, found {type(raw).__name__}."
                )
                raw = None

        if raw is None:
            logger.warning("%s Using defaults.", self.last_error)
            self.data = deep_merge_defaults(self.data, self.defaults)
            self.dirty = False
            return self.data

        self.data = deep_merge_defaults(raw, self.defaults)
        self.dirty = False
        return self.data

    def save(self) -> None:
        if not self.persistent:
            self.dirty = False
            return
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(self.data, indent=2, sort_keys=True, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise SettingsStoreError(f"Could not write settings file '{self.path}': {exc}") from exc
        self.dirty = False
        self.last_error = None

    def get(self, key: str, default: Any = None) -> Any:
        return dot_get(self.data, key, default)

    def set(self, key: str, value: Any) -> bool:
        if self.get(key, _MISSING) == value:
            return False
        dot_set(self.data, key, value)
        self.dirty = True
        return True

    def delete(self, key: str) -> bool:
        changed = dot_delete(self.data, key)
        self.dirty = self.dirty or changed
        return changed

    def has(self, key: str) -> bool:
        return self.get(key, _MISSING) is not _MISSING

    def restore_defaults(self) -> None:
        self.data = deepcopy(self.defaults)
        self.dirty = True

    def snapshot(self) -> dict[str, Any]:
        return deepcopy(self.data)


__all__ = [
    "JsonSettingsStore",
    "SettingsStoreError",
    "deep_merge_defaults",
    "dot_delete",
    "dot_get",
    "dot_set",
]
