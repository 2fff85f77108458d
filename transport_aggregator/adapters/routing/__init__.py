"""Routing adapters - Implementations of RouterPort.

Available implementations:
- OsrmRouterAdapter: OSRM route service
"""

from .osrm_adapter import OsrmRouterAdapter

__all__ = ["OsrmRouterAdapter"]
