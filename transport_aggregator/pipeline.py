"""Upward entry points consumed by the presentation layer.

Both helpers resolve their service from the default container unless one
is passed in. Neither applies a timeout: wrap the call, e.g. in
``asyncio.wait_for``, to bound its latency.

The host application sets up log output once at startup, before the first
call::

    from transport_aggregator.logging_config import configure_logging

    configure_logging()

Each call may run on its own event loop (e.g. one ``asyncio.run`` per
request); adapters rebuild their loop-bound clients and locks as needed.
"""

from __future__ import annotations

from typing import Optional, Sequence

from .container import Container, get_container
from .domain.models import Route, SearchParams, TransportResult
from .services import ItineraryService, TransportSearchService


async def search_transports(
    params: SearchParams,
    container: Optional[Container] = None,
) -> list[TransportResult]:
    """Search transport options for one mode.

    Raises:
        TransportError: One of validation, upstream_api, network or unknown.
    """
    service: TransportSearchService = (container or get_container()).resolve(
        TransportSearchService
    )
    return await service.search_transports(params)


async def build_itinerary(
    departure: str,
    arrival: str,
    stops: Sequence[str] = (),
    container: Optional[Container] = None,
) -> Route:
    """Geocode and route ``departure -> stops -> arrival``.

    Raises:
        TransportError: If any place cannot be resolved or any segment routed.
    """
    service: ItineraryService = (container or get_container()).resolve(
        ItineraryService
    )
    return await service.build_itinerary(departure, arrival, stops)
