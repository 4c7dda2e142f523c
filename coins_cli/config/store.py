"""
Persisted key-value store for API settings, session fields and preferences.

Keys form a flat namespace of dotted names (``api.baseUrl``, ``user.token``).
The store is injected into the auth middleware and the API factory so tests
can swap in ``MemoryConfigStore``.
"""
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from coins_cli.config.settings import settings
from coins_cli.core.exceptions import ConfigStoreError
from coins_cli.logger import logger


API_BASE_URL = "api.baseUrl"
API_TIMEOUT = "api.timeout"
USER_TOKEN = "user.token"
USER_ID = "user.userId"
USER_NAME = "user.username"
USER_FUNDS = "user.funds"
PREF_CURRENCY = "preferences.currency"
PREF_THEME = "preferences.theme"
PREF_AUTO_REFRESH = "preferences.autoRefresh"

SESSION_KEYS = (USER_TOKEN, USER_ID, USER_NAME, USER_FUNDS)


def default_values() -> Dict[str, Any]:
    """Values seeded into a fresh store."""
    return {
        API_BASE_URL: settings.DEFAULT_API_BASE_URL,
        API_TIMEOUT: settings.DEFAULT_API_TIMEOUT_MS,
        USER_TOKEN: None,
        USER_ID: None,
        USER_NAME: None,
        USER_FUNDS: None,
        PREF_CURRENCY: settings.DEFAULT_CURRENCY,
        PREF_THEME: "default",
        PREF_AUTO_REFRESH: False,
    }


class ConfigStore(ABC):
    """Flat get/set/delete store over dotted keys."""

    @abstractmethod
    def _data(self) -> Dict[str, Any]:
        """Return the live mapping backing this store."""

    @abstractmethod
    def _persist(self) -> None:
        """Flush the mapping after a mutation."""

    def get(self, key: str, default: Any = None) -> Any:
        value = self._data().get(key)
        return default if value is None else value

    def has(self, key: str) -> bool:
        return self._data().get(key) is not None

    def set(self, key: str, value: Any) -> None:
        self._data()[key] = value
        self._persist()

    def delete(self, key: str) -> None:
        data = self._data()
        if key not in data:
            return
        del data[key]
        self._persist()

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._data())

    def reset(self) -> None:
        """Restore every key to its default value."""
        data = self._data()
        data.clear()
        data.update(default_values())
        self._persist()


class MemoryConfigStore(ConfigStore):
    """Dict-backed store, nothing touches the disk."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None, seed_defaults: bool = True):
        self._values: Dict[str, Any] = default_values() if seed_defaults else {}
        if initial:
            self._values.update(initial)

    def _data(self) -> Dict[str, Any]:
        return self._values

    def _persist(self) -> None:
        pass


class JsonConfigStore(ConfigStore):
    """Store persisted as a JSON object, loaded lazily on first access."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._values: Optional[Dict[str, Any]] = None

    def _data(self) -> Dict[str, Any]:
        if self._values is None:
            self._values = self._load()
        return self._values

    def _load(self) -> Dict[str, Any]:
        values = default_values()
        if not self.path.exists():
            logger.info(f"No config at {self.path}, starting from defaults")
            self._values = values
            self._persist()
            return values

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                stored = json.load(f)
            if not isinstance(stored, dict):
                raise ValueError("config root is not an object")
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable config at {self.path} ({e}), using defaults")
            self._values = values
            self._persist()
            return values

        missing = [key for key in values if key not in stored]
        values.update(stored)
        if missing:
            logger.debug(f"Seeding missing config keys: {', '.join(missing)}")
            self._values = values
            self._persist()
        return values

    def _persist(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=str(self.path.parent), prefix=".config-", suffix=".json")
        except OSError as e:
            raise self._write_error(e) from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._values, f, indent=2)
            # Session token lives here, owner-only
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise self._write_error(e) from e

    def _write_error(self, error: OSError) -> ConfigStoreError:
        logger.error(f"Cannot write config {self.path}: {error}")
        return ConfigStoreError(f"Cannot write config file {self.path}: {error.strerror or error}", path=str(self.path))


_store: Optional[ConfigStore] = None


def get_config_store() -> ConfigStore:
    """Process-wide store at ``settings.config_file``."""
    global _store
    if _store is None:
        _store = JsonConfigStore(settings.config_file)
    return _store


def set_config_store(store: Optional[ConfigStore]) -> None:
    """Replace (or drop, with ``None``) the process-wide store."""
    global _store
    _store = store


def reset_config_store() -> None:
    set_config_store(None)
