"""Itinerary service - Geocoding followed by segment routing.

Turns place names into a Route: every name is resolved to coordinates
first, then each consecutive pair is routed. Both stages run
sequentially to keep request volume to the public geocoding and routing
services predictable. Any failure aborts the build; no partial itinerary
is ever returned.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from ..domain.errors import TransportError, unknown_failure
from ..domain.models import Coordinates, PointKind, Route, RoutePoint, RouteSegment
from ..ports.geocoding import GeocoderPort, RouterPort


def _kind_for(index: int, count: int) -> PointKind:
    if index == 0:
        return PointKind.DEPARTURE
    if index == count - 1:
        return PointKind.ARRIVAL
    return PointKind.STOP


def _join_geometry(segments: Sequence[RouteSegment]) -> tuple[Coordinates, ...]:
    polyline: list[Coordinates] = []
    for segment in segments:
        geometry = list(segment.geometry)
        # Consecutive segments share their junction vertex.
        if polyline and geometry and polyline[-1] == geometry[0]:
            geometry = geometry[1:]
        polyline.extend(geometry)
    return tuple(polyline)


@dataclass
class ItineraryService:
    """Builds itineraries from place names.

    Attributes:
        geocoder: Resolves place names to coordinates
        router: Routes between two coordinates
    """

    geocoder: GeocoderPort
    router: RouterPort

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    async def resolve_points(self, names: Sequence[str]) -> list[RoutePoint]:
        """Resolve every name, in order, tagging departure/stop/arrival."""
        points: list[RoutePoint] = []
        for index, name in enumerate(names):
            coordinates = await self.geocoder.resolve_place(name)
            points.append(
                RoutePoint(
                    lat=coordinates.lat,
                    lon=coordinates.lon,
                    name=name,
                    kind=_kind_for(index, len(names)),
                )
            )
        return points

    async def route_points(self, points: Sequence[RoutePoint]) -> list[RouteSegment]:
        """Route each consecutive pair of points, in order."""
        segments: list[RouteSegment] = []
        for start, end in zip(points, points[1:]):
            segments.append(
                await self.router.route_between(start.coordinates, end.coordinates)
            )
        return segments

    async def build_itinerary(
        self,
        departure: str,
        arrival: str,
        stops: Sequence[str] = (),
    ) -> Route:
        """Build a routed itinerary.

        Args:
            departure: Departure place name.
            arrival: Arrival place name.
            stops: Intermediate place names, in travel order.

        Returns:
            Route over all resolved points with summed distance and duration.

        Raises:
            ValidationFailure: If a place cannot be resolved.
            TransportError: If geocoding or routing fails.
        """
        names = [departure, *stops, arrival]
        self._logger.info("Building itinerary", extra={"points": len(names)})

        try:
            points = await self.resolve_points(names)
            segments = await self.route_points(points)
        except TransportError as exc:
            self._logger.warning(
                "Itinerary build failed",
                extra={
                    "provider": exc.provider,
                    "kind": exc.kind.value,
                    "error": exc.message,
                },
            )
            raise
        except Exception as exc:
            raise unknown_failure(exc, "itinerary") from exc

        route = Route(
            points=tuple(points),
            distance_meters=sum(s.distance_meters for s in segments),
            duration_seconds=sum(s.duration_seconds for s in segments),
            geometry=_join_geometry(segments),
        )
        self._logger.info(
            "Itinerary built",
            extra={
                "points": len(route.points),
                "distance_m": route.distance_meters,
                "duration_s": route.duration_seconds,
            },
        )
        return route
