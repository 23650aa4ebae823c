# models.py
# Shared data structures and enums used across all modules.

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


# ---------------------------------------------------------------------------
# Coordinate
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Coord:
    """Immutable geographic coordinate (WGS-84, decimal degrees)."""
    lat: float
    lon: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lon": self.lon}

    @staticmethod
    def from_dict(d: dict) -> "Coord":
        return Coord(float(d["lat"]), float(d["lon"]))


# ---------------------------------------------------------------------------
# Vehicle classes and road data
# ---------------------------------------------------------------------------

class VehicleClass(Enum):
    A = "A"     # 25 km/h
    B = "B"     # 45 km/h

    @property
    def max_speed_kph(self) -> int:
        return 25 if self is VehicleClass.A else 45


class RoadType(Enum):
    MOTORWAY    = "motorway"
    TRUNK       = "trunk"
    PRIMARY     = "primary"
    SECONDARY   = "secondary"
    RESIDENTIAL = "residential"
    CYCLEWAY    = "cycleway"
    PATH        = "path"


class Surface(Enum):
    ASPHALT     = "asphalt"
    COBBLESTONE = "cobblestone"
    GRAVEL      = "gravel"


@dataclass(frozen=True)
class RoadSegment:
    """A classified way with the legal signage that applies to it."""
    road_type: RoadType
    max_speed_kph: int
    surface: Surface = Surface.ASPHALT
    has_cycle_path: bool = False
    cycle_path_compulsory: bool = False          # D7
    mopeds_allowed_on_cycle_path: bool = False   # M sign, class B permitted
    mopeds_prohibited_on_road: bool = False      # C6
    is_one_way_car: bool = False
    is_one_way_moped_exempt: bool = False        # M2 / M3
    is_destination_only: bool = False
    segment_id: Optional[str] = None
    name: Optional[str] = None


class ProfileTag(Enum):
    """Coarse routing preference understood by public routing engines."""
    BIKE    = "bike"
    FOOT    = "foot"
    DRIVING = "driving"


@dataclass(frozen=True)
class RouteRequest:
    """Provider-neutral route query; each backend translates it."""
    start: Coord
    end: Coord
    vehicle_class: VehicleClass
    profile: ProfileTag
    max_speed_kph: Optional[int] = None
    avoid_motorways: bool = False


# ---------------------------------------------------------------------------
# Route and instructions
# ---------------------------------------------------------------------------

class Maneuver(Enum):
    TURN_LEFT   = "TURN_LEFT"
    TURN_RIGHT  = "TURN_RIGHT"
    GO_STRAIGHT = "GO_STRAIGHT"
    ROUNDABOUT  = "ROUNDABOUT"
    U_TURN      = "U_TURN"
    ARRIVE      = "ARRIVE"
    DEPART      = "DEPART"
    UNKNOWN     = "UNKNOWN"


@dataclass(frozen=True)
class Instruction:
    """A single turn-by-turn instruction bound to a point of the route."""
    route_index: int
    distance_from_start_m: float
    text: str
    maneuver: Maneuver
    location: Coord

    def to_dict(self) -> dict:
        return {
            "route_index": self.route_index,
            "distance_from_start_m": self.distance_from_start_m,
            "text": self.text,
            "maneuver": self.maneuver.value,
            "location": self.location.to_dict(),
        }

    @staticmethod
    def from_dict(d: dict) -> "Instruction":
        return Instruction(
            route_index=int(d["route_index"]),
            distance_from_start_m=float(d["distance_from_start_m"]),
            text=d["text"],
            maneuver=Maneuver(d["maneuver"]),
            location=Coord.from_dict(d["location"]),
        )


@dataclass(frozen=True)
class Route:
    """
    A normalized route as returned by one provider.

    Created once per successful provider call and never patched; a
    recalculation produces a new Route.
    """
    coordinates: Tuple[Coord, ...]
    instructions: Tuple[Instruction, ...]
    total_distance_m: float
    total_duration_s: float
    provider: str

    def __post_init__(self) -> None:
        # Accept lists from callers but store tuples.
        object.__setattr__(self, "coordinates", tuple(self.coordinates))
        object.__setattr__(self, "instructions", tuple(self.instructions))

        if not self.coordinates:
            raise ValueError("Route must contain at least one coordinate.")

        previous = -1
        for instr in self.instructions:
            if not 0 <= instr.route_index < len(self.coordinates):
                raise ValueError(
                    f"Instruction index {instr.route_index} outside route "
                    f"of {len(self.coordinates)} points."
                )
            if instr.route_index <= previous:
                raise ValueError("Instruction indices must be strictly increasing.")
            previous = instr.route_index

    @property
    def destination(self) -> Coord:
        return self.coordinates[-1]

    def to_dict(self) -> dict:
        return {
            "provider": self.provider,
            "total_distance_m": self.total_distance_m,
            "total_duration_s": self.total_duration_s,
            "coordinates": [c.to_dict() for c in self.coordinates],
            "instructions": [i.to_dict() for i in self.instructions],
        }

    @staticmethod
    def from_dict(d: dict) -> "Route":
        return Route(
            coordinates=tuple(Coord.from_dict(c) for c in d["coordinates"]),
            instructions=tuple(Instruction.from_dict(i) for i in d["instructions"]),
            total_distance_m=float(d["total_distance_m"]),
            total_duration_s=float(d["total_duration_s"]),
            provider=d["provider"],
        )


# ---------------------------------------------------------------------------
# Traffic incidents
# ---------------------------------------------------------------------------

class IncidentType(Enum):
    # Values are the provider's icon category index.
    UNKNOWN              = 0
    ACCIDENT             = 1
    FOG                  = 2
    DANGEROUS_CONDITIONS = 3
    RAIN                 = 4
    ICE                  = 5
    JAM                  = 6
    LANE_CLOSED          = 7
    ROAD_CLOSED          = 8

    @staticmethod
    def from_icon_category(icon: Optional[int]) -> "IncidentType":
        try:
            return IncidentType(icon)
        except ValueError:
            return IncidentType.UNKNOWN


@dataclass(frozen=True)
class Incident:
    incident_id: str
    location: Coord
    incident_type: IncidentType
    description: str
    magnitude: int = 0              # 0 (unknown) .. 4 (major)
    delay_s: float = 0.0


# ---------------------------------------------------------------------------
# Geocoding
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Suggestion:
    """One address autocomplete candidate."""
    suggestion_id: str
    label: str
    coord: Coord


# ---------------------------------------------------------------------------
# Live navigation
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PositionFix:
    """One reading from the location sensor."""
    coord: Coord
    speed_mps: Optional[float] = None


class TrackerState(Enum):
    IDLE     = "idle"
    TRACKING = "tracking"


@dataclass(frozen=True)
class NavigationState:
    """Returned by RouteTracker.update() on every position fix."""
    closest_route_index: int
    distance_to_next_m: int
    remaining_duration_s: int
    next_instruction: Instruction
    heading_deg: float
    progress: float = 0.0
    speed_kph: Optional[int] = None

    @property
    def arrived(self) -> bool:
        return (
            self.next_instruction.maneuver is Maneuver.ARRIVE
            and self.distance_to_next_m == 0
        )


@dataclass
class PlanOutcome:
    """Result reported by NavigationSystem for a route planning request."""
    success: bool
    message: str
    route: Optional[Route] = None
