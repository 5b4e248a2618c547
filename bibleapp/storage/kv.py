"""Key-value store collaborators for local persistence.

Values are JSON-compatible. Components receive a store instance; none of
them reach for a global.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Protocol

from loguru import logger


class KeyValueStore(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local store, used by tests and as a fallback."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore:
    """Store backed by a single JSON object on disk.

    The file is re-read on every access so several processes see each
    other's writes. A corrupt file is treated as empty and overwritten on the
    next write.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Storage: could not read {self.path}, starting empty: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _dump(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp_path.replace(self.path)

    def get(self, key: str) -> Any | None:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)
