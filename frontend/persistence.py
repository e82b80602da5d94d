"""
Key-Value Persistence

String key/value storage with the semantics of the browser's local
storage: values are strings, a missing key reads as ``None``.

Implementations:
- InMemoryKeyValueStorage: per-process, for tests and ephemeral sessions
- JsonFileStorage: one JSON object on disk, rewritten on every change
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Optional
import json
import logging

logger = logging.getLogger(__name__)

# Persisted keys
THEME_KEY = "theme"
FONT_SIZE_KEY = "font_size"
FESTIVE_KEY = "festive"
SEASON_KEY = "season_mode"
USER_KEY = "user"
TOKEN_KEY = "token"


class KeyValueStorage:
    """Abstract key/value storage interface."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class InMemoryKeyValueStorage(KeyValueStorage):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._data)


class JsonFileStorage(KeyValueStorage):
    """
    File-backed storage.

    A missing or unreadable file starts empty; the file is created on
    the first write.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._data: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable storage file %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring storage file %s: not a JSON object", self._path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, 'w', encoding='utf-8') as f:
            json.dump(self._data, f, indent=2, ensure_ascii=False)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = str(value)
        self._save()

    def remove(self, key: str) -> None:
        if key in self._data:
            del self._data[key]
            self._save()
