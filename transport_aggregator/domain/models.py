"""Immutable domain models for the Transport Aggregation Service.

All models are frozen dataclasses with slots. They carry no I/O and
validate their own invariants, raising ValueError when a provider payload
or a caller produces something the canonical shape cannot represent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Union


class TransportMode(str, Enum):
    """Transport modes served by the aggregation facade."""

    RAIL = "rail"
    AIR = "air"
    COACH = "coach"


class PointKind(str, Enum):
    """Role of a point inside an itinerary."""

    DEPARTURE = "departure"
    ARRIVAL = "arrival"
    STOP = "stop"


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True, slots=True)
class SearchParams:
    """A single transport search request.

    The constructor performs no validation so that raw caller input reaches
    the facade, which reports problems as typed validation failures.

    Attributes:
        departure: Departure station, airport or city
        arrival: Arrival station, airport or city
        date: Travel date (or date-time) as sent to the provider
        passengers: Number of travellers
        mode: Requested transport mode
    """

    departure: str
    arrival: str
    date: str
    passengers: int = 1
    mode: Union[TransportMode, str] = TransportMode.RAIL


@dataclass(frozen=True, slots=True)
class Endpoint:
    """Departure or arrival side of a transport offer."""

    station: str
    time: str
    date: str


@dataclass(frozen=True, slots=True)
class Price:
    """Offer price."""

    amount: float
    currency: str

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError(f"Price amount must be non-negative, got {self.amount}")


@dataclass(frozen=True, slots=True)
class TripDetails:
    """Provider-independent offer details.

    Attributes:
        stops: Number of intermediate stops or transfers
        number: Train, flight or bus number
        operator: Operating company
        booking_url: Where the offer can be booked
        travel_class: Cabin or comfort class, when the provider reports one
    """

    stops: int
    number: str
    operator: str
    booking_url: str
    travel_class: Optional[str] = None

    def __post_init__(self) -> None:
        if self.stops < 0:
            raise ValueError(f"Stop count must be non-negative, got {self.stops}")


@dataclass(frozen=True, slots=True)
class TransportResult:
    """Canonical transport offer produced by every provider adapter."""

    id: str
    mode: TransportMode
    provider: str
    departure: Endpoint
    arrival: Endpoint
    duration: str
    price: Price
    details: TripDetails

    def __post_init__(self) -> None:
        start = _parse_timestamp(self.departure.time)
        end = _parse_timestamp(self.arrival.time)
        if start is None or end is None:
            return
        # Mixed naive/aware timestamps cannot be compared.
        if (start.tzinfo is None) != (end.tzinfo is None):
            return
        if start > end:
            raise ValueError(
                f"Departure {self.departure.time} is after arrival {self.arrival.time}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Render the result as a plain dictionary for JSON consumers."""
        details: Dict[str, Any] = {
            "stops": self.details.stops,
            "number": self.details.number,
            "operator": self.details.operator,
            "booking_url": self.details.booking_url,
        }
        if self.details.travel_class is not None:
            details["class"] = self.details.travel_class

        return {
            "id": self.id,
            "mode": self.mode.value,
            "provider": self.provider,
            "departure": {
                "station": self.departure.station,
                "time": self.departure.time,
                "date": self.departure.date,
            },
            "arrival": {
                "station": self.arrival.station,
                "time": self.arrival.time,
                "date": self.arrival.date,
            },
            "duration": self.duration,
            "price": {"amount": self.price.amount, "currency": self.price.currency},
            "details": details,
        }


@dataclass(frozen=True, slots=True)
class CachedToken:
    """Bearer token with its absolute expiry.

    Attributes:
        value: The access token
        expires_at_epoch_millis: Expiry instant in milliseconds since the epoch
    """

    value: str
    expires_at_epoch_millis: int

    def is_valid(self, now_epoch_millis: int) -> bool:
        """A token is usable only strictly before its expiry."""
        return now_epoch_millis < self.expires_at_epoch_millis


@dataclass(frozen=True, slots=True)
class Coordinates:
    """GPS coordinates."""

    lat: float
    lon: float

    def __post_init__(self) -> None:
        if not -90 <= self.lat <= 90:
            raise ValueError(f"Latitude must be between -90 and 90, got {self.lat}")
        if not -180 <= self.lon <= 180:
            raise ValueError(
                f"Longitude must be between -180 and 180, got {self.lon}"
            )


@dataclass(frozen=True, slots=True)
class RoutePoint:
    """A resolved itinerary point."""

    lat: float
    lon: float
    name: str
    kind: PointKind

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(lat=self.lat, lon=self.lon)


@dataclass(frozen=True, slots=True)
class RouteSegment:
    """Routed path between two consecutive points.

    Attributes:
        start: Segment origin
        end: Segment destination
        distance_meters: Routed distance
        duration_seconds: Routed travel time
        geometry: Polyline of the routed path, origin first
    """

    start: Coordinates
    end: Coordinates
    distance_meters: float
    duration_seconds: float
    geometry: tuple[Coordinates, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.distance_meters < 0 or self.duration_seconds < 0:
            raise ValueError("Segment distance and duration must be non-negative")


@dataclass(frozen=True, slots=True)
class Route:
    """A complete itinerary.

    Attributes:
        points: Resolved points, departure first and arrival last
        distance_meters: Sum of segment distances
        duration_seconds: Sum of segment durations
        geometry: Concatenated polyline of every segment
    """

    points: tuple[RoutePoint, ...]
    distance_meters: float
    duration_seconds: float
    geometry: tuple[Coordinates, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if len(self.points) < 2:
            raise ValueError("A route needs at least a departure and an arrival")
        if self.points[0].kind is not PointKind.DEPARTURE:
            raise ValueError("First route point must be the departure")
        if self.points[-1].kind is not PointKind.ARRIVAL:
            raise ValueError("Last route point must be the arrival")
        if any(p.kind is not PointKind.STOP for p in self.points[1:-1]):
            raise ValueError("Interior route points must be stops")
        if self.distance_meters < 0 or self.duration_seconds < 0:
            raise ValueError("Route distance and duration must be non-negative")

    @property
    def stop_count(self) -> int:
        """Return the number of intermediate stops."""
        return len(self.points) - 2
