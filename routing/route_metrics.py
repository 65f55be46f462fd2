from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from .distance_cache import DistanceCache, RouteMetrics
from .geo import LatLon
from .osrm_client import ProviderError

logger = logging.getLogger(__name__)

METERS_PER_KM = 1000.0
SECONDS_PER_HOUR = 3600.0


class RunCancelledError(Exception):
    """The scheduling run was cancelled (or timed out) before the call was made."""
    pass


class CancellationToken:
    """
    Run-level cancellation flag with an optional deadline.

    `cancel()` may be called from any thread. A token with `timeout_seconds`
    cancels itself once the deadline passes.
    """
    def __init__(self, timeout_seconds: Optional[float] = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout_seconds if timeout_seconds is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if not self._event.is_set() and self._deadline is not None and time.monotonic() >= self._deadline:
            self._event.set()
        return self._event.is_set()

    def wait(self, seconds: float) -> bool:
        """Sleep up to `seconds`, waking early on cancel. Returns True if cancelled."""
        if self._deadline is not None:
            seconds = min(seconds, max(0.0, self._deadline - time.monotonic()))
        self._event.wait(seconds)
        return self.cancelled

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise RunCancelledError("Scheduling run cancelled")


class RequestThrottle:
    """
    Courtesy rate limit for the public OSRM server:
    keeps at least `min_interval_seconds` between two consecutive external calls.
    0 disables it.
    """
    def __init__(self, min_interval_seconds: float = 1.0):
        if min_interval_seconds < 0:
            raise ValueError("min_interval_seconds must be >= 0")
        self.min_interval_seconds = min_interval_seconds
        self._last_call_at: Optional[float] = None
        self._lock = threading.Lock()

    def wait(self, cancel_token: Optional[CancellationToken] = None) -> None:
        with self._lock:
            if self.min_interval_seconds and self._last_call_at is not None:
                remaining = self._last_call_at + self.min_interval_seconds - time.monotonic()
                if remaining > 0:
                    if cancel_token is not None:
                        cancel_token.wait(remaining)
                    else:
                        time.sleep(remaining)
            self._last_call_at = time.monotonic()


class RouteMetricsProvider:
    """
    Cache-first access to road distance/duration between two points.

    - hit (either direction): return it, no OSRM call, no cache write
    - miss: exactly one OSRM /route call, meters → km, seconds → hours,
      written through to the cache
    - failure: ProviderError propagates, the cache is untouched

    `osrm_client` is anything exposing `compute_route([origin, destination])`
    returning {"distance": meters, "duration": seconds} (see OSRMClient).
    """
    def __init__(self, osrm_client, cache: Optional[DistanceCache] = None, throttle: Optional[RequestThrottle] = None):
        self.osrm_client = osrm_client
        self.cache = cache if cache is not None else DistanceCache(path=None)
        self.throttle = throttle or RequestThrottle(0)
        self._miss_lock = threading.Lock()
        self._external_calls = 0

    @property
    def external_calls(self) -> int:
        """How many distinct segments were fetched from OSRM by this provider."""
        return self._external_calls

    def get_route_metrics(
        self,
        origin: LatLon,
        destination: LatLon,
        cancel_token: Optional[CancellationToken] = None,
    ) -> RouteMetrics:
        cached = self.cache.get(origin, destination)
        if cached is not None:
            logger.debug("Cache hit for %s -> %s", origin, destination)
            return cached

        # One miss at a time: a concurrent evaluation asking for the same
        # segment finds it cached on the re-check instead of calling OSRM again.
        with self._miss_lock:
            cached = self.cache.get(origin, destination)
            if cached is not None:
                return cached

            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
                self.throttle.wait(cancel_token)
                cancel_token.raise_if_cancelled()
            else:
                self.throttle.wait()

            self._external_calls += 1
            logger.debug("OSRM call #%d for %s -> %s", self._external_calls, origin, destination)
            raw = self.osrm_client.compute_route([origin, destination])

            try:
                metrics = RouteMetrics(
                    distance_km=float(raw["distance"]) / METERS_PER_KM,
                    duration_hours=float(raw["duration"]) / SECONDS_PER_HOUR,
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise ProviderError(f"Unusable routing response for {origin} -> {destination}") from exc

            self.cache.put(origin, destination, metrics)
            return metrics
