"""
grade/store.py - Key-value persistence adapters for engine state and settings.

The engine only needs get/set by key; the real backend lives outside this
package. JsonFileStore keeps everything in a single JSON document, which is
enough for the CLI and the Flask surface.
"""
import json
import os
from abc import ABC, abstractmethod

import structlog

logger = structlog.get_logger(logger_name=__name__)

RANKING_KEY  = "radiograde_ranking"
SEQUENCE_KEY = "radiograde_sequence_config"
CONFIG_KEY   = "radiograde_config"


class KeyValueStore(ABC):

    @abstractmethod
    def get(self, key: str, default=None):
        """Return the stored JSON-compatible value for ``key``, or ``default``."""

    @abstractmethod
    def set(self, key: str, value) -> None:
        """Persist ``value`` under ``key``."""


class MemoryStore(KeyValueStore):

    def __init__(self, data: dict = None):
        self.data = dict(data or {})

    def get(self, key: str, default=None):
        return self.data.get(key, default)

    def set(self, key: str, value) -> None:
        self.data[key] = value


class JsonFileStore(KeyValueStore):
    """All keys in one JSON object on disk; rewritten on every set()."""

    def __init__(self, path: str):
        self.path = path

    def _read(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning("store_unreadable", path=self.path, error=str(exc))
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default=None):
        return self._read().get(key, default)

    def set(self, key: str, value) -> None:
        data = self._read()
        data[key] = value
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
