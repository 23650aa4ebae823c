# nominatim.py
# Nominatim (OpenStreetMap) search: fallback geocoder and autocomplete.

import logging
from typing import List, Optional

from ..errors import ProviderUnavailable
from ..models import Coord, Suggestion
from .base import GeocodingProvider, HttpBackend

logger = logging.getLogger(__name__)


class NominatimGeocoder(HttpBackend, GeocodingProvider):
    """Free-text search restricted to NavConfig.country_code."""

    name = "nominatim"

    @property
    def base_url(self) -> str:
        return self.config.nominatim_base_url.rstrip("/")

    def _search(self, query: str, limit: int, details: bool = False) -> list:
        params = {
            "format": "json",
            "q": query,
            "countrycodes": self.config.country_code.lower(),
            "limit": limit,
        }
        if details:
            params["addressdetails"] = 1
        data = self._get_json(f"{self.base_url}/search", params)
        if not isinstance(data, list):
            raise ProviderUnavailable(self.name, "malformed search response")
        return data

    def geocode(self, query: str) -> Optional[Coord]:
        results = self._search(query, limit=1)
        if not results:
            return None
        try:
            return Coord(float(results[0]["lat"]), float(results[0]["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderUnavailable(self.name, f"malformed search result: {e}") from e

    def suggest(self, query: str, limit: int = 5) -> List[Suggestion]:
        suggestions: List[Suggestion] = []
        for result in self._search(query, limit=limit, details=True):
            try:
                suggestions.append(Suggestion(
                    suggestion_id=str(result["place_id"]),
                    label=result["display_name"],
                    coord=Coord(float(result["lat"]), float(result["lon"])),
                ))
            except (KeyError, TypeError, ValueError):
                logger.debug(f"[nominatim] Skipping malformed suggestion: {result!r}")
        return suggestions
