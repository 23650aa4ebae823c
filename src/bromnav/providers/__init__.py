# Backend adapters. Each one translates the provider-neutral request into its
# own wire format and normalizes the answer; ordering and fallback live in
# route_service / geocoder.

from .base import GeocodingProvider, HttpBackend, RoutingProvider
from .nominatim import NominatimGeocoder
from .normalize import normalize_maneuver, ordered_instructions
from .osrm import OsrmProvider
from .tomtom import TomTomProvider

__all__ = [
    "GeocodingProvider",
    "HttpBackend",
    "NominatimGeocoder",
    "OsrmProvider",
    "RoutingProvider",
    "TomTomProvider",
    "normalize_maneuver",
    "ordered_instructions",
]
