# geocoder.py
# Address search with fallback: primary geocoder first, then the next one.

import logging
from typing import List, Optional, Sequence

import requests

from .errors import GeocodeNotFound, ProviderUnavailable
from .models import Coord, Suggestion
from .nav_config import NavConfig
from .providers import GeocodingProvider, NominatimGeocoder, TomTomProvider

logger = logging.getLogger(__name__)

MIN_SUGGEST_CHARS = 3


def default_geocoders(config: NavConfig,
                      session: Optional[requests.Session] = None) -> List[GeocodingProvider]:
    geocoders: List[GeocodingProvider] = []
    if config.tomtom_api_key:
        geocoders.append(TomTomProvider(config, session))
    geocoders.append(NominatimGeocoder(config, session))
    return geocoders


class Geocoder:
    """
    Resolves free-text addresses to coordinates.

    Args:
        providers: Geocoders tried in order; defaults to default_geocoders().
        config:    NavConfig instance.
    """

    def __init__(self, providers: Optional[Sequence[GeocodingProvider]] = None,
                 config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self.providers: List[GeocodingProvider] = (
            list(providers) if providers is not None else default_geocoders(self.config)
        )

    def geocode(self, query: str) -> Coord:
        """
        Best match for an address.

        Raises:
            GeocodeNotFound: Blank query, or no provider found a result.
        """
        query = (query or "").strip()
        if not query:
            raise GeocodeNotFound("Empty address.")

        for provider in self.providers:
            try:
                coord = provider.geocode(query)
            except ProviderUnavailable as e:
                logger.warning(f"Geocoding via {provider.name} failed: {e.reason}")
                continue
            if coord is not None:
                logger.info(f"Geocoded '{query}' via {provider.name}: {coord}")
                return coord

        raise GeocodeNotFound(f"No result for '{query}'.")

    def suggest(self, query: str, limit: int = 5) -> List[Suggestion]:
        """Autocomplete candidates from the first provider that answers."""
        query = (query or "").strip()
        if len(query) < MIN_SUGGEST_CHARS:
            return []

        for provider in self.providers:
            try:
                return provider.suggest(query, limit)
            except ProviderUnavailable as e:
                logger.warning(f"Autocomplete via {provider.name} failed: {e.reason}")
        return []
