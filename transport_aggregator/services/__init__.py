"""Services layer - Application orchestration.

Available services:
- TransportSearchService: Aggregation facade over the provider adapters
- ItineraryService: Geocoding and routing of an itinerary
"""

from .itinerary import ItineraryService
from .transport_search import TransportSearchService

__all__ = ["TransportSearchService", "ItineraryService"]
