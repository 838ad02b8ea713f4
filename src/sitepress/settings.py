"""Key-value settings stores consumed by SiteConfig.

The editor owns settings persistence; this module only defines the
accessor boundary plus two small implementations: an in-memory dict
and a JSON file that is loaded on init and saved after every write.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

SETTINGS_FILENAME = ".sitepress-settings.json"


class SettingsAccessor(Protocol):
    """Get/set string values by name. Missing names read as ``""``."""

    def get(self, name: str) -> str: ...

    def set(self, name: str, value: str) -> None: ...


class InMemorySettings:
    """Dict-backed settings, mostly for tests and one-off operations."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values: dict[str, str] = dict(values or {})

    def get(self, name: str) -> str:
        return self.values.get(name, "")

    def set(self, name: str, value: str) -> None:
        self.values[name] = value


class _SettingsData(BaseModel):
    """Internal wrapper for JSON serialization."""

    values: dict[str, str] = Field(default_factory=dict)


class JsonSettingsStore:
    """JSON-backed settings store.

    Loads the settings file on init and saves after every ``set``.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._data = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> _SettingsData:
        if not self._path.exists():
            return _SettingsData()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return _SettingsData.model_validate(raw)
        except (json.JSONDecodeError, ValueError):
            logger.warning("Corrupt settings file at %s, starting fresh", self._path)
            return _SettingsData()

    def _save(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            self._data.model_dump_json(indent=2),
            encoding="utf-8",
        )

    def get(self, name: str) -> str:
        return self._data.values.get(name, "")

    def set(self, name: str, value: str) -> None:
        self._data.values[name] = value
        self._save()
