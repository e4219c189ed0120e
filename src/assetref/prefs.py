"""
Persisted string preferences (key -> value).

The UI stores user choices such as the pictures folder in a small
key-value store. JsonPreferenceStore persists it as a JSON object on disk;
reads always go to the file so changes made by another process are seen.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path

import structlog

logger = structlog.get_logger()

DEFAULT_PREFERENCES_FILE = Path.home() / ".assetref" / "preferences.json"


class PreferenceStore(ABC):
    """Generic string key-value preference store."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Value for key, or None if unset."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Persist a value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete a key (no-op if missing)."""

    def first_non_empty(self, keys: list[str] | tuple[str, ...]) -> str | None:
        """First non-empty value among keys, in order."""
        for key in keys:
            value = self.get(key)
            if value:
                return value
        return None


class InMemoryPreferenceStore(PreferenceStore):
    """Non-persistent store, for hosts without storage and for tests."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class JsonPreferenceStore(PreferenceStore):
    """Preferences persisted as a flat JSON object."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path or DEFAULT_PREFERENCES_FILE).expanduser()

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)

    def _read(self) -> dict:
        try:
            if not self.path.exists():
                return {}
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (ValueError, OSError) as e:
            # Corrupt, undecodable or unreadable file -> behave as empty
            logger.warning("prefs.read_failed", path=str(self.path), error=str(e))
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
