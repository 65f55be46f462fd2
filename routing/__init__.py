#Marks routing as a package.
#Re-exports the public routing API (OSRM client, distance cache, route metrics,
#geo helpers) so other modules import from routing without knowing internal file names.
#No business logic.

from .geo import InputValidationError, LatLon, estimate_travel_minutes, haversine_km, time_to_minutes
from .osrm_client import OSRMClient, ProviderError
from .distance_cache import CacheIOError, DistanceCache, RouteMetrics
from .route_metrics import CancellationToken, RequestThrottle, RouteMetricsProvider, RunCancelledError

__all__ = [
    "LatLon",
    "InputValidationError",
    "haversine_km",
    "estimate_travel_minutes",
    "time_to_minutes",
    "OSRMClient",
    "ProviderError",
    "DistanceCache",
    "CacheIOError",
    "RouteMetrics",
    "RouteMetricsProvider",
    "RequestThrottle",
    "CancellationToken",
    "RunCancelledError",
]
