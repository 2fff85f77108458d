"""Adapters layer - Concrete implementations of ports.

This module contains implementations of the port interfaces,
connecting the services to external systems:
- Transport providers (rail, air, coach)
- Client-credentials token cache (air)
- Geocoding (Nominatim) and routing (OSRM)
"""
