"""
Client-local persisted state.

One JSON file per key under ``ClientConfig.storage_dir``.  Reads and
writes are best-effort: a failure is logged and the caller gets the
default (or ``False``) back.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any
from urllib.parse import quote

logger = logging.getLogger(__name__)

THEME_KEY = "epic-q-theme"
FONT_SIZE_KEY = "fontSize"
THEMES = ("light", "dark", "high-contrast", "system")
FONT_SIZES = ("small", "medium", "large")
DEFAULT_THEME = "light"
DEFAULT_FONT_SIZE = "medium"


class LocalStorage:
    def __init__(self, directory):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self._path(key)
        if not path.exists():
            return default
        try:
            with path.open(encoding="utf-8") as fh:
                return json.load(fh)
        except (OSError, ValueError):
            logger.warning("could not read %s from local storage", key, exc_info=True)
            return default

    def set(self, key: str, value: Any) -> bool:
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as fh:
                json.dump(value, fh, ensure_ascii=False)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError):
            logger.warning("could not write %s to local storage", key, exc_info=True)
            return False
        return True

    def remove(self, key: str) -> bool:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError:
            logger.warning("could not remove %s from local storage", key, exc_info=True)
            return False
        return True


class Preferences:
    """Theme and font-size preferences, each under its own key."""

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    @property
    def theme(self) -> str:
        value = self.storage.get(THEME_KEY, DEFAULT_THEME)
        return value if value in THEMES else DEFAULT_THEME

    @theme.setter
    def theme(self, value: str) -> None:
        if value not in THEMES:
            raise ValueError(f"unknown theme {value!r}")
        self.storage.set(THEME_KEY, value)

    @property
    def font_size(self) -> str:
        value = self.storage.get(FONT_SIZE_KEY, DEFAULT_FONT_SIZE)
        return value if value in FONT_SIZES else DEFAULT_FONT_SIZE

    @font_size.setter
    def font_size(self, value: str) -> None:
        if value not in FONT_SIZES:
            raise ValueError(f"unknown font size {value!r}")
        self.storage.set(FONT_SIZE_KEY, value)
