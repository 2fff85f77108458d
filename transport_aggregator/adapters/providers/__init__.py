"""Provider adapters - Implementations of TransportProviderPort.

Available implementations:
- RailProviderAdapter: journey planner with a static API key
- AirProviderAdapter: flight offers behind a client-credentials token
- CoachProviderAdapter: coach trip search with a static API key
"""

from .air_adapter import AirProviderAdapter
from .coach_adapter import CoachProviderAdapter
from .rail_adapter import RailProviderAdapter

__all__ = ["RailProviderAdapter", "AirProviderAdapter", "CoachProviderAdapter"]
