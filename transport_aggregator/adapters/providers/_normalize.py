"""Helpers shared by the provider normalizers.

Normalizers are pure functions of the provider payload; these helpers keep
the canonical field semantics identical across the three providers.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, List, Optional, TypeVar

from ...domain.errors import ValidationFailure, validation_failure

T = TypeVar("T")

_ISO_DURATION = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)

# Exceptions a malformed offer produces while being read.
_SHAPE_ERRORS = (KeyError, IndexError, TypeError, ValueError, AttributeError)


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def calendar_date(timestamp: str) -> str:
    """Return the ISO calendar date of a timestamp string."""
    parsed = parse_timestamp(timestamp)
    if parsed is not None:
        return parsed.date().isoformat()
    return timestamp.split("T")[0]


def format_duration(delta: timedelta) -> str:
    """Render a duration as ``HhMMm`` (e.g. ``2h05m``)."""
    total_minutes = int(delta.total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h{minutes:02d}m"


def duration_between(departure: Any, arrival: Any) -> Optional[str]:
    """Format the wall-clock difference between two timestamps, if both parse."""
    start = parse_timestamp(departure)
    end = parse_timestamp(arrival)
    if start is None or end is None:
        return None
    try:
        return format_duration(end - start)
    except TypeError:
        # naive minus aware
        return None


def iso_duration(value: Any) -> Optional[str]:
    """Convert an ISO-8601 duration such as ``PT2H10M`` to ``2h10m``."""
    if not isinstance(value, str):
        return None
    match = _ISO_DURATION.match(value)
    if match is None or value in ("P", "PT"):
        return None
    parts = {key: int(val) for key, val in match.groupdict().items() if val}
    return format_duration(timedelta(**parts))


def minutes_duration(value: Any) -> Optional[str]:
    """Format a number of minutes as ``HhMMm``."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return format_duration(timedelta(minutes=value))


def count_or_zero(value: Any) -> int:
    """Return ``value`` as an int when it is a whole number, 0 otherwise."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        return 0
    return value


def require_collection(raw: Any, key: str, label: str, provider: str) -> List[Any]:
    """Return ``raw[key]`` if it is a list, else raise a shape failure."""
    collection = raw.get(key) if isinstance(raw, dict) else None
    if not isinstance(collection, list):
        raise validation_failure(f"invalid {label} response shape", provider)
    return collection


def normalize_each(
    items: Iterable[Any],
    convert: Callable[[Any], T],
    label: str,
    provider: str,
) -> List[T]:
    """Convert every item, reporting any malformed item as a shape failure."""
    results: List[T] = []
    for item in items:
        try:
            results.append(convert(item))
        except _SHAPE_ERRORS as exc:
            raise ValidationFailure(
                f"invalid {label} response shape", provider=provider, cause=exc
            ) from exc
    return results
