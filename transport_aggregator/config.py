"""Centralized configuration using Pydantic Settings.

Each upstream collaborator gets its own settings class with its own
environment prefix, so credentials can be supplied per provider:
- TA_RAIL_BASE_URL / TA_RAIL_API_KEY
- TA_AIR_BASE_URL / TA_AIR_CLIENT_ID / TA_AIR_CLIENT_SECRET
- TA_COACH_BASE_URL / TA_COACH_API_KEY
- TA_GEO_USER_AGENT, TA_ROUTE_BASE_URL
- TA_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RailProviderConfig(BaseSettings):
    """Rail provider configuration.

    Environment variables prefixed with TA_RAIL_.
    """

    model_config = SettingsConfigDict(env_prefix="TA_RAIL_")

    name: str = "rail-provider"
    base_url: Optional[str] = None
    api_key: Optional[str] = Field(default=None, repr=False)
    journeys_path: str = "/coverage/sncf/journeys"
    result_limit: int = 10
    default_operator: str = "SNCF"
    currency: str = "EUR"
    timeout_seconds: float = 10.0


class AirProviderConfig(BaseSettings):
    """Air provider configuration (client-credentials authentication).

    Environment variables prefixed with TA_AIR_.
    """

    model_config = SettingsConfigDict(env_prefix="TA_AIR_")

    name: str = "air-provider"
    base_url: Optional[str] = None
    client_id: Optional[str] = Field(default=None, repr=False)
    client_secret: Optional[str] = Field(default=None, repr=False)
    token_path: str = "/v1/security/oauth2/token"
    offers_path: str = "/v2/shopping/flight-offers"
    result_limit: int = 10
    timeout_seconds: float = 10.0


class CoachProviderConfig(BaseSettings):
    """Coach provider configuration.

    Environment variables prefixed with TA_COACH_.
    """

    model_config = SettingsConfigDict(env_prefix="TA_COACH_")

    name: str = "coach-provider"
    base_url: Optional[str] = None
    api_key: Optional[str] = Field(default=None, repr=False)
    search_path: str = "/search"
    timeout_seconds: float = 10.0


class GeocodingConfig(BaseSettings):
    """Geocoding configuration.

    Environment variables prefixed with TA_GEO_.
    """

    model_config = SettingsConfigDict(env_prefix="TA_GEO_")

    name: str = "geocoding-provider"
    user_agent: str = "transport-aggregator/1.0"
    domain: str = "nominatim.openstreetmap.org"
    scheme: str = "https"
    timeout_seconds: float = 10.0
    rate_limit_delay: float = 1.0
    language: Optional[str] = None


class RoutingConfig(BaseSettings):
    """Routing configuration.

    Environment variables prefixed with TA_ROUTE_.
    """

    model_config = SettingsConfigDict(env_prefix="TA_ROUTE_")

    name: str = "routing-provider"
    base_url: str = "https://router.project-osrm.org"
    profile: str = "driving"
    timeout_seconds: float = 10.0


class ObservabilityConfig(BaseSettings):
    """Logging configuration.

    Environment variables prefixed with TA_LOG_.
    """

    model_config = SettingsConfigDict(env_prefix="TA_LOG_")

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = False  # JSON lines including ``extra`` fields


class AppConfig(BaseSettings):
    """Main application configuration aggregating all sub-configs.

        config = get_config()
        print(config.air.token_path)

    Environment variables prefixed with TA_.
    """

    model_config = SettingsConfigDict(env_prefix="TA_")

    rail: RailProviderConfig = Field(default_factory=RailProviderConfig)
    air: AirProviderConfig = Field(default_factory=AirProviderConfig)
    coach: CoachProviderConfig = Field(default_factory=CoachProviderConfig)
    geocoding: GeocodingConfig = Field(default_factory=GeocodingConfig)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the singleton application configuration.

    Configuration is loaded once and cached. To reload configuration
    (e.g., in tests), use reset_config() first.
    """
    return AppConfig()


def reset_config() -> None:
    """Reset the configuration cache."""
    get_config.cache_clear()
