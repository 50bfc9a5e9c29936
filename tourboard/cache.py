"""
Dispatch cache.

Remembers, per content identity, when content was last dispatched and the
render request that produced it. A fresh record lets the caller skip the
upstream fetch and re-render from the stored payload; it never suppresses the
board update itself.

Storage is a JSON object on disk keyed by "<view>:<stage>". A missing file is
the normal initial state. Single writer assumed; no locking.
"""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from .content import ContentIdentity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchCacheRecord:
    identity: ContentIdentity
    timestamp: float
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "view": self.identity.view,
            "stage": self.identity.stage,
            "timestamp": self.timestamp,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DispatchCacheRecord":
        return cls(
            identity=ContentIdentity(str(data["view"]), int(data["stage"])),
            timestamp=float(data["timestamp"]),
            payload=dict(data.get("payload") or {}),
        )


class DispatchCache:
    """
    File-backed record of the last dispatch per content identity.

    Args:
        path: JSON file location
        duration: Freshness window in seconds
        clock: Wall-clock source (seconds since epoch)
    """

    def __init__(
        self,
        path: str | Path,
        duration: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ):
        self.path = Path(path)
        self.duration = duration
        self._clock = clock

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Error loading cache {self.path}, treating as empty: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Cache {self.path} is not a JSON object, treating as empty")
            return {}
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp, self.path)

    def lookup(self, identity: ContentIdentity) -> Optional[DispatchCacheRecord]:
        """
        Return the stored record for an identity, or None.

        Malformed entries are logged and reported as absent.
        """
        entry = self._load().get(identity.key)
        if entry is None:
            return None
        try:
            record = DispatchCacheRecord.from_dict(entry)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Ignoring malformed cache entry for {identity}: {e}")
            return None
        if record.identity != identity:
            return None
        return record

    def record(
        self,
        identity: ContentIdentity,
        timestamp: Optional[float] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> DispatchCacheRecord:
        """Overwrite the record for an identity and persist it."""
        record = DispatchCacheRecord(
            identity=identity,
            timestamp=self._clock() if timestamp is None else timestamp,
            payload=dict(payload or {}),
        )
        data = self._load()
        data[identity.key] = record.to_dict()
        self._save(data)
        logger.info(f"Data saved to cache for {identity}")
        return record

    def is_fresh(
        self, record: Optional[DispatchCacheRecord], now: Optional[float] = None
    ) -> bool:
        """True when the record is younger than the freshness window."""
        if record is None:
            return False
        now = self._clock() if now is None else now
        return record.timestamp > now - self.duration

    def lookup_fresh(self, identity: ContentIdentity) -> Optional[DispatchCacheRecord]:
        record = self.lookup(identity)
        return record if self.is_fresh(record) else None

    def clear(self) -> bool:
        """
        Delete the cache file.

        Returns:
            bool: True if a file was removed
        """
        if self.path.exists():
            self.path.unlink()
            logger.info("Cache cleared")
            return True
        return False

    def get_status(self) -> Dict[str, Any]:
        data = self._load()
        timestamps = [
            entry.get("timestamp")
            for entry in data.values()
            if isinstance(entry, dict) and isinstance(entry.get("timestamp"), (int, float))
        ]
        return {
            "path": str(self.path),
            "duration": self.duration,
            "entries": len(data),
            "last_update": max(timestamps) if timestamps else None,
        }
