"""
preferences.py

Key-value stores for the one persisted setting, the reading rate.
Anything with ``get(key, default)`` and ``set(key, value)`` works; two
stores ship here: an in-memory dict and a JSON file on disk.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .config import DEFAULT_WPM, WPM_PREFERENCE_KEY

logger = logging.getLogger(__name__)


class MemoryPreferences:
    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._values: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value


class JsonFilePreferences:
    """Preferences kept as one JSON object in a file.

    A missing or unreadable file reads as empty. Each ``set`` rewrites the
    whole file through a temp file + rename, so the last write wins.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable preferences file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise


def load_rate(store: Any) -> int:
    value = store.get(WPM_PREFERENCE_KEY, DEFAULT_WPM)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return DEFAULT_WPM
    return value


def save_rate(store: Any, rate: int) -> None:
    store.set(WPM_PREFERENCE_KEY, rate)
