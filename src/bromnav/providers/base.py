# base.py
# Capabilities every backend adapter implements, plus the shared HTTP plumbing.
# Backends only translate requests and normalize responses; fallback order
# lives in route_service / geocoder.

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

import requests

from ..errors import ProviderUnavailable
from ..models import Coord, Incident, Route, RouteRequest, Suggestion
from ..nav_config import NavConfig

logger = logging.getLogger(__name__)


class HttpBackend:
    """
    Owns the requests.Session and timeout of one backend.

    Every transport-level problem is raised as ProviderUnavailable so the
    caller can move on to the next backend.
    """

    name: str = "http"

    def __init__(self, config: Optional[NavConfig] = None,
                 session: Optional[requests.Session] = None) -> None:
        self.config = config or NavConfig()
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        try:
            return self.session.get(url, params=params, timeout=self.config.request_timeout_s)
        except requests.RequestException as e:
            raise ProviderUnavailable(self.name, f"transport failure: {e}") from e

    def _json(self, response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ProviderUnavailable(self.name, f"invalid JSON: {e}") from e

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET url and decode JSON, failing on any HTTP error status."""
        response = self._get(url, params)
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise ProviderUnavailable(self.name, f"HTTP {response.status_code}") from e
        return self._json(response)


class RoutingProvider(ABC):
    """One routing backend: translates a RouteRequest and normalizes the answer."""

    name: str = "provider"
    supports_traffic: bool = False

    @abstractmethod
    def plan(self, request: RouteRequest) -> Optional[Route]:
        """
        Ask the backend for a route.

        Returns:
            A normalized Route, or None if the backend found no route.

        Raises:
            ProviderUnavailable: On transport failure or malformed response.
        """

    def fetch_incidents(self, coordinates: Sequence[Coord]) -> List[Incident]:
        """Live incidents around a route; empty for traffic-blind backends."""
        return []


class GeocodingProvider(ABC):
    """One geocoding backend restricted to a country."""

    name: str = "geocoder"

    @abstractmethod
    def geocode(self, query: str) -> Optional[Coord]:
        """
        Best match for a free-text address.

        Raises:
            ProviderUnavailable: On transport failure or malformed response.
        """

    @abstractmethod
    def suggest(self, query: str, limit: int = 5) -> List[Suggestion]:
        """Autocomplete candidates for a partial address."""
