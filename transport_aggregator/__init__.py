"""Transport Aggregation Service.

One search capability over three heterogeneous providers (rail, air,
coach) returning canonical TransportResult objects and a closed failure
taxonomy, plus a geocoding and routing helper that builds itineraries.

    from transport_aggregator import SearchParams, search_transports

    results = await search_transports(
        SearchParams("Paris", "Lyon", "2024-06-01", passengers=2, mode="rail")
    )
"""

from .domain import (
    FailureKind,
    Route,
    SearchParams,
    TransportError,
    TransportMode,
    TransportResult,
)
from .pipeline import build_itinerary, search_transports

__all__ = [
    "FailureKind",
    "Route",
    "SearchParams",
    "TransportError",
    "TransportMode",
    "TransportResult",
    "build_itinerary",
    "search_transports",
]
