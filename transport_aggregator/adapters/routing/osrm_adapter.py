"""OSRM routing adapter.

Computes a routed path between two coordinates with the configured
profile (driving by default), asking for the full GeoJSON geometry so the
itinerary polyline can be drawn.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from ...config import RoutingConfig, get_config
from ...domain.errors import UpstreamApiFailure, api_failure
from ...domain.models import Coordinates, RouteSegment
from ..http import build_client, current_loop, get_json

NO_ROUTE_MESSAGE = "unable to compute route"


@dataclass
class OsrmRouterAdapter:
    """OSRM router implementing RouterPort.

    Attributes:
        config: Routing configuration
        client: Optional pre-built HTTP client (built from config otherwise)
    """

    config: RoutingConfig = field(default_factory=lambda: get_config().routing)
    client: Optional[httpx.AsyncClient] = field(default=None, repr=False)

    _owns_client: bool = field(default=False, init=False, repr=False)
    _client_loop: Optional[asyncio.AbstractEventLoop] = field(
        default=None, init=False, repr=False
    )
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def _get_client(self) -> httpx.AsyncClient:
        loop = current_loop()
        if self._owns_client and self._client_loop is not loop:
            # Its connection pool is tied to a previous loop.
            self.client = None
            self._owns_client = False

        if self.client is None:
            self.client = build_client(
                self.config.base_url, timeout=self.config.timeout_seconds
            )
            self._owns_client = True
            self._client_loop = loop
        return self.client

    def _no_route(
        self, cause: Optional[BaseException] = None, status_code: Optional[int] = None
    ) -> UpstreamApiFailure:
        return UpstreamApiFailure(
            NO_ROUTE_MESSAGE,
            provider=self.config.name,
            cause=cause,
            status_code=status_code,
        )

    async def route_between(self, start: Coordinates, end: Coordinates) -> RouteSegment:
        """Route between two points.

        Raises:
            UpstreamApiFailure: If the router returns no route.
            TransportError: For other provider or network failures.
        """
        path = (
            f"/route/v1/{self.config.profile}/"
            f"{start.lon},{start.lat};{end.lon},{end.lat}"
        )
        params = {"overview": "full", "geometries": "geojson"}

        self._logger.debug(
            "Routing segment",
            extra={"start": (start.lat, start.lon), "end": (end.lat, end.lon)},
        )

        try:
            payload = await get_json(self._get_client(), path, params=params)
        except httpx.HTTPStatusError as exc:
            if _error_code(exc.response) == "NoRoute":
                raise self._no_route(exc, exc.response.status_code) from exc
            raise api_failure(exc, self.config.name) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise api_failure(exc, self.config.name) from exc

        routes = payload.get("routes") if isinstance(payload, dict) else None
        if not routes:
            self._logger.warning(
                "Router returned no route",
                extra={"code": payload.get("code") if isinstance(payload, dict) else None},
            )
            raise self._no_route()

        try:
            return self._to_segment(start, end, routes[0])
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as exc:
            raise self._no_route(exc) from exc

    @staticmethod
    def _to_segment(start: Coordinates, end: Coordinates, route: dict[str, Any]) -> RouteSegment:
        geometry = route.get("geometry") or {}
        # GeoJSON positions are [lon, lat]
        polyline = tuple(
            Coordinates(lat=float(position[1]), lon=float(position[0]))
            for position in geometry.get("coordinates", [])
        )
        return RouteSegment(
            start=start,
            end=end,
            distance_meters=float(route["distance"]),
            duration_seconds=float(route["duration"]),
            geometry=polyline,
        )

    async def aclose(self) -> None:
        if self.client is not None and self._owns_client:
            await self.client.aclose()
            self.client = None
            self._owns_client = False


def _error_code(response: httpx.Response) -> Optional[str]:
    try:
        payload = response.json()
    except ValueError:
        return None
    if isinstance(payload, dict):
        return payload.get("code")
    return None
