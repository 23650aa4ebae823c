# bromnav: legality-aware routing and live navigation for mopeds.
# Re-exports the public API so callers don't need the internal file names.

from .errors import (
    GeocodeNotFound, NavError, ProviderUnavailable, RouteNotFound, SensorUnavailable,
    StaleGeneration,
)
from .geo_utils import bearing_deg, distance_m
from .legality import build_route_request, is_segment_accessible, preferred_profile
from .models import (
    Coord, Incident, IncidentType, Instruction, Maneuver, NavigationState, PlanOutcome,
    PositionFix, RoadSegment, RoadType, Route, Surface, VehicleClass,
)
from .nav_config import NavConfig
from .navigator import NavigationSystem
from .route_service import RouteService
from .route_tracker import RouteTracker

__all__ = [
    "Coord",
    "GeocodeNotFound",
    "Incident",
    "IncidentType",
    "Instruction",
    "Maneuver",
    "NavConfig",
    "NavError",
    "NavigationState",
    "NavigationSystem",
    "PlanOutcome",
    "PositionFix",
    "ProviderUnavailable",
    "RoadSegment",
    "RoadType",
    "Route",
    "RouteNotFound",
    "RouteService",
    "RouteTracker",
    "SensorUnavailable",
    "StaleGeneration",
    "Surface",
    "VehicleClass",
    "bearing_deg",
    "build_route_request",
    "distance_m",
    "is_segment_accessible",
    "preferred_profile",
]
