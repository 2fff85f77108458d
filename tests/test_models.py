"""Tests for domain model invariants."""

import pytest

from transport_aggregator.domain.models import (
    CachedToken,
    Coordinates,
    Endpoint,
    PointKind,
    Price,
    Route,
    RoutePoint,
    TransportMode,
    TransportResult,
    TripDetails,
)


def _result(departure_time: str, arrival_time: str, **details) -> TransportResult:
    return TransportResult(
        id="r1",
        mode=TransportMode.RAIL,
        provider="SNCF",
        departure=Endpoint("Paris", departure_time, departure_time[:10]),
        arrival=Endpoint("Lyon", arrival_time, arrival_time[:10]),
        duration="2h00m",
        price=Price(45.0, "EUR"),
        details=TripDetails(
            stops=details.get("stops", 0),
            number="6601",
            operator="SNCF",
            booking_url="https://book.test",
            travel_class=details.get("travel_class"),
        ),
    )


def _point(kind: PointKind, name: str = "x") -> RoutePoint:
    return RoutePoint(lat=1.0, lon=2.0, name=name, kind=kind)


class TestTransportResult:
    def test_departure_after_arrival_is_rejected(self):
        with pytest.raises(ValueError):
            _result("2024-06-01T12:00:00", "2024-06-01T10:00:00")

    def test_unparseable_times_are_not_compared(self):
        result = _result("morning", "evening")
        assert result.departure.time == "morning"

    def test_negative_price_is_rejected(self):
        with pytest.raises(ValueError):
            Price(-1.0, "EUR")

    def test_negative_stops_are_rejected(self):
        with pytest.raises(ValueError):
            TripDetails(stops=-1, number="1", operator="x", booking_url="")

    def test_to_dict_uses_class_key_only_when_present(self):
        without = _result("2024-06-01T08:00:00", "2024-06-01T10:00:00").to_dict()
        with_class = _result(
            "2024-06-01T08:00:00", "2024-06-01T10:00:00", travel_class="2"
        ).to_dict()

        assert "class" not in without["details"]
        assert with_class["details"]["class"] == "2"
        assert with_class["mode"] == "rail"
        assert with_class["price"] == {"amount": 45.0, "currency": "EUR"}


class TestCachedToken:
    def test_valid_strictly_before_expiry(self):
        token = CachedToken("abc", expires_at_epoch_millis=1_000)
        assert token.is_valid(999)
        assert not token.is_valid(1_000)


class TestRoute:
    def test_minimal_route(self):
        route = Route(
            points=(_point(PointKind.DEPARTURE), _point(PointKind.ARRIVAL)),
            distance_meters=10.0,
            duration_seconds=5.0,
        )
        assert route.stop_count == 0

    def test_single_point_is_rejected(self):
        with pytest.raises(ValueError):
            Route(points=(_point(PointKind.DEPARTURE),), distance_meters=0, duration_seconds=0)

    def test_order_of_kinds_is_enforced(self):
        with pytest.raises(ValueError):
            Route(
                points=(_point(PointKind.ARRIVAL), _point(PointKind.DEPARTURE)),
                distance_meters=0,
                duration_seconds=0,
            )
        with pytest.raises(ValueError):
            Route(
                points=(
                    _point(PointKind.DEPARTURE),
                    _point(PointKind.DEPARTURE),
                    _point(PointKind.ARRIVAL),
                ),
                distance_meters=0,
                duration_seconds=0,
            )

    def test_negative_totals_are_rejected(self):
        with pytest.raises(ValueError):
            Route(
                points=(_point(PointKind.DEPARTURE), _point(PointKind.ARRIVAL)),
                distance_meters=-1,
                duration_seconds=0,
            )


def test_coordinates_range_is_validated():
    with pytest.raises(ValueError):
        Coordinates(lat=91, lon=0)
    with pytest.raises(ValueError):
        Coordinates(lat=0, lon=-181)
