"""Domain layer - Core models and the failure taxonomy.

Models are immutable and free of I/O. Errors form a closed taxonomy
(validation, upstream_api, network, unknown) shared by every component.
"""

from .errors import (
    FailureKind,
    NetworkFailure,
    TransportError,
    UnknownFailure,
    UpstreamApiFailure,
    ValidationFailure,
    api_failure,
    network_failure,
    unknown_failure,
    validation_failure,
)
from .models import (
    CachedToken,
    Coordinates,
    Endpoint,
    PointKind,
    Price,
    Route,
    RoutePoint,
    RouteSegment,
    SearchParams,
    TransportMode,
    TransportResult,
    TripDetails,
)

__all__ = [
    # Models
    "TransportMode",
    "PointKind",
    "SearchParams",
    "Endpoint",
    "Price",
    "TripDetails",
    "TransportResult",
    "CachedToken",
    "Coordinates",
    "RoutePoint",
    "RouteSegment",
    "Route",
    # Errors
    "FailureKind",
    "TransportError",
    "ValidationFailure",
    "UpstreamApiFailure",
    "NetworkFailure",
    "UnknownFailure",
    "validation_failure",
    "api_failure",
    "network_failure",
    "unknown_failure",
]
