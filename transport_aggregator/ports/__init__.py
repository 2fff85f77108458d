"""Ports layer - Abstract interfaces (Protocols) for the application.

Ports define the contracts between the services and the adapters that
talk to external providers, which keeps services testable with fakes.
"""

from .geocoding import GeocoderPort, RouterPort
from .transport import TokenProviderPort, TransportProviderPort

__all__ = [
    # Transport
    "TransportProviderPort",
    "TokenProviderPort",
    # Geocoding
    "GeocoderPort",
    "RouterPort",
]
