import json
import os
import time
from typing import Any, Dict, Optional

from btcfolio.config.logging import get_logger

logger = get_logger(__name__)


class TTLCache:
    """
    Small JSON-file cache: each key holds (value, timestamp, ttl).
    Used by the price feeds:
    `get` only returns fresh entries, `get_stale` returns whatever was last
    stored so callers can fall back to it when a feed is down.
    """

    def __init__(self, path: Optional[str] = None, clock=time.time):
        self.path = path
        self._clock = clock
        self._entries: Dict[str, Dict[str, Any]] = self._load()

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not self.path or not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            # A broken cache file is not fatal; start empty
            logger.warning(f"Ignoring unreadable cache file {self.path}: {e}")
            return {}

    def _flush(self):
        if not self.path:
            return
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self._entries, f)
        except OSError as e:
            logger.warning(f"Could not persist cache to {self.path}: {e}")

    def set(self, key: str, value: Any, ttl: float):
        self._entries[key] = {"value": value, "timestamp": self._clock(), "ttl": ttl}
        self._flush()

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry["timestamp"] >= entry["ttl"]:
            return None
        return entry["value"]

    def get_stale(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        return entry["value"] if entry else None

    def invalidate(self, key: str):
        if self._entries.pop(key, None) is not None:
            self._flush()
