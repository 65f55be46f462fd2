"""
Purpose: Persistent, direction-independent memo of OSRM route metrics.
What it does:
- Maps an unordered pair of (lat, lon) points to the distance/duration OSRM reported for it.
- (A, B) and (B, A) share one entry: the segment is treated as symmetric.
- Write-through: every new entry is flushed to disk immediately so a crash
  never loses a lookup we already paid for.
- A missing or corrupt cache file loads as an empty cache.

Rule: No HTTP here. The route metrics provider decides when to call OSRM.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .geo import LatLon

logger = logging.getLogger(__name__)

CacheKey = Tuple[LatLon, LatLon]


class CacheIOError(Exception):
    """Reading or writing the cache file failed."""
    pass


@dataclass(frozen=True)
class RouteMetrics:
    """
    Distance/duration of one road segment, already converted to km and hours.
    """
    distance_km: float
    duration_hours: float

    @property
    def duration_minutes(self) -> float:
        return self.duration_hours * 60

    def to_record(self) -> Dict[str, float]:
        # same field names the cache file has always used
        return {"distance": self.distance_km, "duration": self.duration_hours}

    @classmethod
    def from_record(cls, record: Dict[str, float]) -> RouteMetrics:
        return cls(distance_km=float(record["distance"]), duration_hours=float(record["duration"]))


def _point(value) -> LatLon:
    lat, lon = value
    return (float(lat), float(lon))


def normalize_key(point_a: LatLon, point_b: LatLon) -> CacheKey:
    """
    Order-independent key for a segment: the two endpoints sorted.
    """
    a, b = _point(point_a), _point(point_b)
    return (a, b) if a <= b else (b, a)


def _key_to_string(key: CacheKey) -> str:
    (lat1, lon1), (lat2, lon2) = key
    return f"{lat1},{lon1};{lat2},{lon2}"


def _key_from_string(raw: str) -> CacheKey:
    first, second = raw.split(";")
    point_a = tuple(float(part) for part in first.split(","))
    point_b = tuple(float(part) for part in second.split(","))
    if len(point_a) != 2 or len(point_b) != 2:
        raise ValueError(f"Malformed cache key {raw!r}")
    return normalize_key(point_a, point_b)


class DistanceCache:
    """
    Thread-safe, file-backed segment cache.

    Only grows: entries are never evicted. `put` overwrites (last write wins).
    Pass `path=None` for a purely in-memory cache (tests).
    """

    def __init__(self, path: Optional[str] = "distanceCache.json", autoload: bool = True):
        self.path = path
        self._entries: Dict[CacheKey, RouteMetrics] = {}
        self._lock = threading.RLock()

        if autoload and path:
            self.load()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, segment) -> bool:
        point_a, point_b = segment
        return self.get(point_a, point_b) is not None

    def get(self, point_a: LatLon, point_b: LatLon) -> Optional[RouteMetrics]:
        with self._lock:
            return self._entries.get(normalize_key(point_a, point_b))

    def put(self, point_a: LatLon, point_b: LatLon, metrics: RouteMetrics) -> None:
        """
        Store a segment and flush the whole cache to disk.
        A failed flush is logged; the entry stays in memory.
        """
        with self._lock:
            self._entries[normalize_key(point_a, point_b)] = metrics
            try:
                self.flush()
            except CacheIOError as exc:
                logger.warning("Distance cache not persisted, continuing in memory: %s", exc)

    def flush(self) -> None:
        """
        Persist the full cache synchronously. Raises CacheIOError on failure.
        """
        if not self.path:
            return

        with self._lock:
            payload = [[_key_to_string(key), metrics.to_record()] for key, metrics in self._entries.items()]
            tmp_path = f"{self.path}.tmp"
            try:
                directory = os.path.dirname(os.path.abspath(self.path))
                os.makedirs(directory, exist_ok=True)
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(payload, f)
                os.replace(tmp_path, self.path)
            except OSError as exc:
                raise CacheIOError(f"Could not write distance cache {self.path}: {exc}") from exc

    def load(self) -> int:
        """
        Replace the in-memory entries with the file contents.
        Missing or corrupt files give an empty cache. Returns the entry count.
        """
        with self._lock:
            self._entries = {}
            if not self.path or not os.path.exists(self.path):
                logger.info("Cache file not found, starting with empty cache.")
                return 0

            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    raw_entries = json.load(f)
                entries = {}
                for raw_key, record in raw_entries:
                    entries[_key_from_string(raw_key)] = RouteMetrics.from_record(record)
            except (OSError, ValueError, TypeError, KeyError) as exc:
                logger.warning("Cache file %s invalid, starting with empty cache: %s", self.path, exc)
                return 0

            self._entries = entries
            logger.info("Loaded %d cached segments from %s", len(entries), self.path)
            return len(entries)
