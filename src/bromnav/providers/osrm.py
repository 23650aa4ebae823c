# osrm.py
# OSRM adapter. Traffic-blind, needs no key.
# OSRM steps carry no index into the route geometry, so instructions are
# bound to their sequential step position instead.

import logging
from typing import List, Optional

from ..errors import ProviderUnavailable
from ..models import Coord, Instruction, Route, RouteRequest
from .base import HttpBackend, RoutingProvider
from .normalize import normalize_maneuver, ordered_instructions

logger = logging.getLogger(__name__)


def _maneuver_token(maneuver: dict) -> str:
    kind = maneuver.get("type") or ""
    if kind in ("depart", "arrive"):
        return kind
    return f"{kind} {maneuver.get('modifier') or ''}".strip()


def _step_text(step: dict) -> str:
    token = _maneuver_token(step.get("maneuver") or {})
    name = step.get("name") or ""
    return f"{token} {name}".strip()


class OsrmProvider(HttpBackend, RoutingProvider):
    """
    OSRM /route client.

    Sole responsibility: talk to OSRM via HTTP, convert (lat, lon) to
    OSRM's lon,lat order and return a normalized Route.
    """

    name = "osrm"
    supports_traffic = False

    @property
    def base_url(self) -> str:
        return self.config.osrm_base_url.rstrip("/")

    def plan(self, request: RouteRequest) -> Optional[Route]:
        coordinates = (
            f"{request.start.lon},{request.start.lat};{request.end.lon},{request.end.lat}"
        )
        url = f"{self.base_url}/route/v1/{request.profile.value}/{coordinates}"
        response = self._get(url, {
            "overview": "full",
            "geometries": "geojson",
            "steps": "true",
        })
        # OSRM answers "no route" with an error status and a JSON body.
        data = self._json(response)
        code = data.get("code") if isinstance(data, dict) else None

        if code == "NoRoute":
            logger.info("[osrm] No route returned.")
            return None
        if response.status_code >= 400 or code != "Ok":
            message = data.get("message", "Unknown error") if isinstance(data, dict) else "Unknown error"
            raise ProviderUnavailable(self.name, f"OSRM error ({response.status_code}): {message}")
        if not data.get("routes"):
            logger.info("[osrm] No route returned.")
            return None

        try:
            return self._parse_route(data["routes"][0])
        except (KeyError, TypeError, IndexError, ValueError, AttributeError) as e:
            raise ProviderUnavailable(self.name, f"malformed route: {e}") from e

    def _parse_route(self, route: dict) -> Route:
        points = [Coord(float(lat), float(lon)) for lon, lat, *_ in route["geometry"]["coordinates"]]

        candidates: List[Instruction] = []
        travelled = 0.0
        step_index = 0
        for leg in route.get("legs") or []:
            for step in leg.get("steps") or []:
                lon, lat = step["maneuver"]["location"][:2]
                candidates.append(Instruction(
                    route_index=step_index,
                    distance_from_start_m=travelled,
                    text=_step_text(step),
                    maneuver=normalize_maneuver(_maneuver_token(step["maneuver"])),
                    location=Coord(float(lat), float(lon)),
                ))
                travelled += float(step.get("distance") or 0)
                step_index += 1

        return Route(
            coordinates=points,
            instructions=ordered_instructions(candidates, len(points), self.name),
            total_distance_m=float(route["distance"]),
            total_duration_s=float(route["duration"]),
            provider=self.name,
        )
