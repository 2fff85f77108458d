"""Geocoding and routing ports.

These protocols separate the itinerary service from the concrete place
search (Nominatim) and routing (OSRM) endpoints.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..domain.models import Coordinates, RouteSegment


class GeocoderPort(Protocol):
    """Port for place-name resolution.

    Implementation: adapters/geocoding/nominatim_adapter.py
    """

    async def resolve_place(self, name: str) -> Coordinates:
        """Resolve a place name to coordinates.

        Args:
            name: Free-form place name (e.g., "Paris", "Gare de Lyon").

        Returns:
            Coordinates of the best match.

        Raises:
            ValidationFailure: If the provider returns no match.
            TransportError: For upstream or network failures.
        """
        ...


class RouterPort(Protocol):
    """Port for routing between two coordinates.

    Implementation: adapters/routing/osrm_adapter.py
    """

    async def route_between(self, start: Coordinates, end: Coordinates) -> RouteSegment:
        """Compute a routed path between two points.

        Args:
            start: Segment origin.
            end: Segment destination.

        Returns:
            Distance, duration and polyline of the best route.

        Raises:
            UpstreamApiFailure: If no route is returned.
            TransportError: For upstream or network failures.
        """
        ...
