# tomtom.py
# TomTom adapter: traffic-aware routing, incident details and address search.
# Requires an API key (NavConfig.tomtom_api_key).

import logging
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote

import requests
from shapely.errors import ShapelyError
from shapely.geometry import shape

from ..errors import ProviderUnavailable
from ..geo_utils import padded_bounds
from ..models import (
    Coord, Incident, IncidentType, Instruction, Route, RouteRequest, Suggestion,
    VehicleClass,
)
from ..nav_config import NavConfig
from .base import GeocodingProvider, HttpBackend, RoutingProvider
from .normalize import normalize_maneuver, ordered_instructions

logger = logging.getLogger(__name__)

INCIDENT_FIELDS = (
    "{incidents{type,geometry{type,coordinates},"
    "properties{id,iconCategory,magnitudeOfDelay,delay,"
    "events{description,code,iconCategory}}}}"
)
DEFAULT_INCIDENT_TEXT = "Traffic disruption"


class TomTomProvider(HttpBackend, RoutingProvider, GeocodingProvider):
    """
    TomTom routing / traffic / search client.

    Args:
        config:  NavConfig with tomtom_api_key set.
        session: Optional requests.Session (tests inject a fake).
    """

    name = "tomtom"
    supports_traffic = True

    def __init__(self, config: Optional[NavConfig] = None,
                 session: Optional[requests.Session] = None) -> None:
        super().__init__(config, session)
        if not self.config.tomtom_api_key:
            raise ValueError("TomTom API key not set. Please set TOMTOM_API_KEY.")
        self.base_url = self.config.tomtom_base_url.rstrip("/")

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def _route_params(self, request: RouteRequest) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "key": self.config.tomtom_api_key,
            "traffic": "true",
            # current traffic conditions, not historic averages
            "departAt": "now",
            "travelMode": "bicycle" if request.vehicle_class is VehicleClass.A else "motorcycle",
            "language": self.config.language,
            "instructionsType": "text",
        }
        if request.max_speed_kph is not None:
            params["vehicleMaxSpeed"] = request.max_speed_kph
        if request.avoid_motorways:
            params["avoid"] = "motorways"
        return params

    def plan(self, request: RouteRequest) -> Optional[Route]:
        locations = (
            f"{request.start.lat},{request.start.lon}:{request.end.lat},{request.end.lon}"
        )
        url = f"{self.base_url}/routing/1/calculateRoute/{locations}/json"
        data = self._get_json(url, self._route_params(request))

        if not isinstance(data, dict) or not data.get("routes"):
            logger.info("[tomtom] No route returned.")
            return None

        try:
            return self._parse_route(data["routes"][0])
        except (KeyError, TypeError, IndexError, ValueError, AttributeError) as e:
            raise ProviderUnavailable(self.name, f"malformed route: {e}") from e

    def _parse_route(self, route: dict) -> Route:
        points = [
            Coord(float(p["latitude"]), float(p["longitude"]))
            for leg in route["legs"]
            for p in leg["points"]
        ]
        guidance = (route.get("guidance") or {}).get("instructions") or []

        candidates = []
        for instr in guidance:
            index = instr.get("pointIndex")
            if not isinstance(index, int) or not 0 <= index < len(points):
                continue
            candidates.append(Instruction(
                route_index=index,
                distance_from_start_m=float(instr.get("routeOffsetInMeters") or 0),
                text=instr.get("message") or "",
                maneuver=normalize_maneuver(instr.get("maneuver")),
                location=points[index],
            ))

        summary = route["summary"]
        duration = float(summary["travelTimeInSeconds"]) + float(summary.get("trafficDelayInSeconds") or 0)
        return Route(
            coordinates=points,
            instructions=ordered_instructions(candidates, len(points), self.name),
            total_distance_m=float(summary["lengthInMeters"]),
            total_duration_s=duration,
            provider=self.name,
        )

    # ------------------------------------------------------------------
    # Traffic incidents
    # ------------------------------------------------------------------

    def fetch_incidents(self, coordinates: Sequence[Coord]) -> List[Incident]:
        """
        Incidents inside the padded bounding box of a route.

        Incidents whose geometry cannot be parsed are dropped.

        Raises:
            ProviderUnavailable: On transport failure or malformed response.
        """
        if not coordinates:
            return []

        min_lon, min_lat, max_lon, max_lat = padded_bounds(
            coordinates, self.config.incident_bbox_padding_deg
        )
        params = {
            "key": self.config.tomtom_api_key,
            "bbox": f"{min_lon},{min_lat},{max_lon},{max_lat}",
            "fields": INCIDENT_FIELDS,
            "language": self.config.language,
        }
        data = self._get_json(f"{self.base_url}/traffic/services/5/incidentDetails", params)
        if not isinstance(data, dict):
            raise ProviderUnavailable(self.name, "malformed incident response")

        incidents: List[Incident] = []
        for index, raw in enumerate(data.get("incidents") or []):
            incident = self._parse_incident(raw, index)
            if incident is not None:
                incidents.append(incident)
        return incidents

    @staticmethod
    def _incident_location(geometry: Any) -> Optional[Coord]:
        try:
            geom = shape(geometry)
        except (KeyError, TypeError, ValueError, IndexError, AttributeError, ShapelyError):
            return None
        if geom.is_empty:
            return None
        if geom.geom_type == "Point":
            return Coord(geom.y, geom.x)
        if geom.geom_type == "LineString":
            lon, lat = geom.coords[0][:2]
            return Coord(lat, lon)
        return None

    def _parse_incident(self, raw: Any, index: int) -> Optional[Incident]:
        if not isinstance(raw, dict):
            return None
        location = self._incident_location(raw.get("geometry"))
        if location is None:
            logger.debug(f"[tomtom] Skipping incident {index}: unusable geometry.")
            return None

        try:
            props = raw.get("properties") or {}
            events = props.get("events") or []
            description = (events[0].get("description") if events else None) or DEFAULT_INCIDENT_TEXT
            return Incident(
                incident_id=str(props.get("id") or f"inc-{index}"),
                location=location,
                incident_type=IncidentType.from_icon_category(props.get("iconCategory")),
                description=str(description),
                magnitude=int(props.get("magnitudeOfDelay") or 0),
                delay_s=float(props.get("delay") or 0),
            )
        except (AttributeError, KeyError, TypeError, ValueError, IndexError) as e:
            logger.debug(f"[tomtom] Skipping incident {index}: malformed properties ({e}).")
            return None

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _search(self, query: str, limit: int, typeahead: bool = False) -> List[dict]:
        url = f"{self.base_url}/search/2/search/{quote(query)}.json"
        params: Dict[str, Any] = {
            "key": self.config.tomtom_api_key,
            "countrySet": self.config.country_code,
            "limit": limit,
        }
        if typeahead:
            params["typeahead"] = "true"
        data = self._get_json(url, params)
        if not isinstance(data, dict):
            raise ProviderUnavailable(self.name, "malformed search response")
        return data.get("results") or []

    def geocode(self, query: str) -> Optional[Coord]:
        results = self._search(query, limit=1)
        if not results:
            return None
        try:
            position = results[0]["position"]
            return Coord(float(position["lat"]), float(position["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            raise ProviderUnavailable(self.name, f"malformed search result: {e}") from e

    def suggest(self, query: str, limit: int = 5) -> List[Suggestion]:
        suggestions: List[Suggestion] = []
        for result in self._search(query, limit=limit, typeahead=True):
            try:
                suggestions.append(Suggestion(
                    suggestion_id=str(result["id"]),
                    label=result["address"]["freeformAddress"],
                    coord=Coord(float(result["position"]["lat"]), float(result["position"]["lon"])),
                ))
            except (KeyError, TypeError, ValueError):
                logger.debug(f"[tomtom] Skipping malformed suggestion: {result!r}")
        return suggestions
