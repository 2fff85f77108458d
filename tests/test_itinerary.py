"""Tests for the itinerary service."""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from transport_aggregator.domain.errors import (
    NetworkFailure,
    UnknownFailure,
    ValidationFailure,
)
from transport_aggregator.domain.models import Coordinates, PointKind, RouteSegment
from transport_aggregator.services import ItineraryService

PLACES = {
    "Paris": Coordinates(lat=48.8566, lon=2.3522),
    "Dijon": Coordinates(lat=47.3220, lon=5.0415),
    "Lyon": Coordinates(lat=45.7640, lon=4.8357),
    "Marseille": Coordinates(lat=43.2965, lon=5.3698),
}


@dataclass
class FakeGeocoder:
    lookups: list[str] = field(default_factory=list)

    async def resolve_place(self, name: str) -> Coordinates:
        self.lookups.append(name)
        if name not in PLACES:
            raise ValidationFailure(f"no coordinates found for place: {name}")
        return PLACES[name]


@dataclass
class FakeRouter:
    calls: list[tuple[Coordinates, Coordinates]] = field(default_factory=list)
    fail_on_call: int | None = None

    async def route_between(self, start: Coordinates, end: Coordinates) -> RouteSegment:
        self.calls.append((start, end))
        if self.fail_on_call == len(self.calls):
            raise NetworkFailure("no response from routing-provider")
        return RouteSegment(
            start=start,
            end=end,
            distance_meters=1000.0 * len(self.calls),
            duration_seconds=60.0 * len(self.calls),
            geometry=(start, end),
        )


@pytest.fixture
def geocoder():
    return FakeGeocoder()


@pytest.fixture
def router():
    return FakeRouter()


@pytest.fixture
def service(geocoder, router):
    return ItineraryService(geocoder=geocoder, router=router)


class TestBuildItinerary:
    @pytest.mark.asyncio
    async def test_direct_route_has_one_segment(self, service, router):
        route = await service.build_itinerary("Paris", "Lyon")

        assert [p.name for p in route.points] == ["Paris", "Lyon"]
        assert [p.kind for p in route.points] == [PointKind.DEPARTURE, PointKind.ARRIVAL]
        assert route.stop_count == 0
        assert router.calls == [(PLACES["Paris"], PLACES["Lyon"])]
        assert route.distance_meters == 1000.0
        assert route.duration_seconds == 60.0

    @pytest.mark.asyncio
    async def test_stops_are_routed_in_order(self, service, router):
        route = await service.build_itinerary("Paris", "Marseille", ["Dijon", "Lyon"])

        assert [p.kind for p in route.points] == [
            PointKind.DEPARTURE,
            PointKind.STOP,
            PointKind.STOP,
            PointKind.ARRIVAL,
        ]
        assert route.points[1].lat == PLACES["Dijon"].lat
        assert router.calls == [
            (PLACES["Paris"], PLACES["Dijon"]),
            (PLACES["Dijon"], PLACES["Lyon"]),
            (PLACES["Lyon"], PLACES["Marseille"]),
        ]
        assert route.distance_meters == 6000.0
        assert route.duration_seconds == 360.0

    @pytest.mark.asyncio
    async def test_geometry_joins_segments_without_duplicate_vertices(self, service):
        route = await service.build_itinerary("Paris", "Lyon", ["Dijon"])

        assert route.geometry == (PLACES["Paris"], PLACES["Dijon"], PLACES["Lyon"])

    @pytest.mark.asyncio
    async def test_unresolvable_place_fails_before_routing(self, service, geocoder, router):
        with pytest.raises(ValidationFailure) as excinfo:
            await service.build_itinerary("Paris", "Lyon", ["Atlantis"])

        assert "Atlantis" in excinfo.value.message
        assert geocoder.lookups == ["Paris", "Atlantis"]
        assert router.calls == []

    @pytest.mark.asyncio
    async def test_routing_failure_aborts_the_build(self, geocoder):
        router = FakeRouter(fail_on_call=2)
        service = ItineraryService(geocoder=geocoder, router=router)

        with pytest.raises(NetworkFailure):
            await service.build_itinerary("Paris", "Marseille", ["Dijon", "Lyon"])
        assert len(router.calls) == 2

    @pytest.mark.asyncio
    async def test_untyped_errors_become_unknown_failures(self, router):
        class BrokenGeocoder:
            async def resolve_place(self, name):
                raise RuntimeError("socket closed")

        service = ItineraryService(geocoder=BrokenGeocoder(), router=router)

        with pytest.raises(UnknownFailure) as excinfo:
            await service.build_itinerary("Paris", "Lyon")
        assert excinfo.value.provider == "itinerary"


class TestResolvePoints:
    @pytest.mark.asyncio
    async def test_single_intermediate_point_is_a_stop(self, service):
        points = await service.resolve_points(["Paris", "Dijon", "Lyon"])
        assert [p.kind for p in points] == [
            PointKind.DEPARTURE,
            PointKind.STOP,
            PointKind.ARRIVAL,
        ]
        assert points[2].coordinates == PLACES["Lyon"]
