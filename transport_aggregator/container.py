"""Dependency injection container.

Explicit registration and resolution of the adapters and services, with
lazily created singletons. The container also owns the lifetime of the
HTTP clients its adapters open: call ``aclose()`` on shutdown.
"""

from __future__ import annotations

import inspect
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .config import AppConfig, get_config

logger = logging.getLogger(__name__)


@dataclass
class Container:
    """Dependency injection container.

    Usage:
        # Production
        container = Container.create_default()
        service = container.resolve(TransportSearchService)

        # Testing
        container = Container()
        container.register(GeocoderPort, lambda: FakeGeocoder())

    Attributes:
        config: Application configuration
    """

    config: AppConfig = field(default_factory=get_config)

    _factories: Dict[Any, Callable[[], Any]] = field(default_factory=dict, repr=False)
    _singletons: Dict[Any, Any] = field(default_factory=dict, repr=False)
    _singleton_types: set[Any] = field(default_factory=set, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def register(
        self,
        key: Any,
        factory: Callable[[], Any],
        singleton: bool = True,
    ) -> None:
        """Register a factory for a port or service type.

        Args:
            key: The type (usually a Protocol) to register.
            factory: A callable that creates instances of the type.
            singleton: If True, only one instance is created.
        """
        with self._lock:
            self._factories[key] = factory
            self._singletons.pop(key, None)
            if singleton:
                self._singleton_types.add(key)
            else:
                self._singleton_types.discard(key)

    def resolve(self, key: Any) -> Any:
        """Resolve an instance of a registered type.

        Raises:
            KeyError: If the type is not registered.
        """
        with self._lock:
            if key not in self._factories:
                raise KeyError(f"Type not registered: {key}")

            if key in self._singleton_types:
                if key not in self._singletons:
                    self._singletons[key] = self._factories[key]()
                return self._singletons[key]

            return self._factories[key]()

    def is_registered(self, key: Any) -> bool:
        return key in self._factories

    async def aclose(self) -> None:
        """Close every created singleton that holds network resources."""
        with self._lock:
            instances = list(self._singletons.values())
            self._singletons.clear()

        for instance in instances:
            close = getattr(instance, "aclose", None)
            if close is None:
                continue
            result = close()
            if inspect.isawaitable(result):
                await result
            logger.debug("Closed %s", type(instance).__name__)

    @classmethod
    def create_default(cls, config: Optional[AppConfig] = None) -> Container:
        """Create a container with default production bindings.

        The token cache is a singleton injected into the air adapter, so
        every air search resolved from this container reuses the same token.

        Args:
            config: Optional configuration override.

        Returns:
            A configured Container instance.
        """
        from .adapters.auth import ClientCredentialsTokenCache
        from .adapters.geocoding import NominatimGeocoderAdapter
        from .adapters.providers import (
            AirProviderAdapter,
            CoachProviderAdapter,
            RailProviderAdapter,
        )
        from .adapters.routing import OsrmRouterAdapter
        from .domain.models import TransportMode
        from .ports.geocoding import GeocoderPort, RouterPort
        from .ports.transport import TokenProviderPort
        from .services import ItineraryService, TransportSearchService

        config = config or get_config()
        container = cls(config=config)

        # Providers
        container.register(RailProviderAdapter, lambda: RailProviderAdapter(config.rail))
        container.register(
            CoachProviderAdapter, lambda: CoachProviderAdapter(config.coach)
        )

        container.register(
            TokenProviderPort,
            lambda: ClientCredentialsTokenCache(config=config.air),
        )
        container.register(
            AirProviderAdapter,
            lambda: AirProviderAdapter(
                config=config.air,
                token_provider=container.resolve(TokenProviderPort),
            ),
        )

        # Geocoding and routing
        container.register(
            GeocoderPort, lambda: NominatimGeocoderAdapter(config.geocoding)
        )
        container.register(RouterPort, lambda: OsrmRouterAdapter(config.routing))

        # Services
        def create_search_service() -> TransportSearchService:
            return TransportSearchService(
                providers={
                    TransportMode.RAIL: container.resolve(RailProviderAdapter),
                    TransportMode.AIR: container.resolve(AirProviderAdapter),
                    TransportMode.COACH: container.resolve(CoachProviderAdapter),
                }
            )

        container.register(TransportSearchService, create_search_service)
        container.register(
            ItineraryService,
            lambda: ItineraryService(
                geocoder=container.resolve(GeocoderPort),
                router=container.resolve(RouterPort),
            ),
        )

        return container


# Global default container (lazy initialized)
_default_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Get the default application container (creates one if needed)."""
    global _default_container
    if _default_container is None:
        with _container_lock:
            if _default_container is None:
                _default_container = Container.create_default()
    return _default_container


async def reset_container() -> None:
    """Close and drop the default container.

    Call this on shutdown, or in tests to ensure a fresh container.
    """
    global _default_container
    with _container_lock:
        container = _default_container
        _default_container = None
    if container is not None:
        await container.aclose()
