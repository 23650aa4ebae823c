# legality.py
# Belgian moped access rules, as pure functions.
#
# Rule summary (also the basis of a server-side routing profile):
#   - motorway / trunk (and their links) are closed to both classes
#   - class A (25 km/h) may always use cycleways and paths
#   - class B (45 km/h) needs an explicit sign to use a cycleway
#   - a C6 sign closes the carriageway unless a usable cycle path runs beside it
#   - cobblestones cost 3x
#   - a car one-way is two-way for mopeds when an M2/M3 sign exempts them

from typing import Optional

from .models import (
    Coord, ProfileTag, RoadSegment, RoadType, RouteRequest, Surface, VehicleClass,
)
from .nav_config import NavConfig


EXCLUDED_ROAD_TYPES: frozenset = frozenset({RoadType.MOTORWAY, RoadType.TRUNK})
SLOW_TRAFFIC_TYPES: frozenset = frozenset({RoadType.CYCLEWAY, RoadType.PATH})

HIGH_SPEED_THRESHOLD_KPH: int = 50
COBBLESTONE_PENALTY: float = 3.0


def _usable_parallel_cycle_path(segment: RoadSegment) -> bool:
    return segment.has_cycle_path and segment.mopeds_allowed_on_cycle_path


def is_segment_accessible(segment: RoadSegment, vehicle_class: VehicleClass) -> bool:
    """
    Decide whether a road segment may legally be used by a vehicle class.

    The first matching rule wins, and every (segment, class) pair resolves
    to exactly one boolean.

    Args:
        segment:       Classified road segment.
        vehicle_class: Moped class A or B.

    Returns:
        True if the segment is usable.
    """
    if segment.road_type in EXCLUDED_ROAD_TYPES:
        return False

    if vehicle_class is VehicleClass.A:
        if segment.road_type in SLOW_TRAFFIC_TYPES:
            return True
        # With a cycle path present the rider is expected to use it.
        return not (segment.mopeds_prohibited_on_road and not segment.has_cycle_path)

    if vehicle_class is VehicleClass.B:
        if segment.road_type is RoadType.CYCLEWAY and not segment.mopeds_allowed_on_cycle_path:
            return False

        if segment.max_speed_kph > HIGH_SPEED_THRESHOLD_KPH:
            if _usable_parallel_cycle_path(segment):
                return True
            return not segment.mopeds_prohibited_on_road

        if segment.mopeds_prohibited_on_road:
            return _usable_parallel_cycle_path(segment)
        return True

    return False


def preferred_profile(vehicle_class: VehicleClass) -> ProfileTag:
    """
    Coarse routing profile to request from providers for a vehicle class.

    Motor-vehicle profiles would traverse motorways and trunk roads, which
    are closed to both classes, so both get the cycle profile.
    """
    return ProfileTag.BIKE


def surface_penalty(segment: RoadSegment) -> float:
    """Cost multiplier for the segment surface."""
    return COBBLESTONE_PENALTY if segment.surface is Surface.COBBLESTONE else 1.0


def allows_both_directions(segment: RoadSegment) -> bool:
    """True if a moped may ride the segment in both directions."""
    return not segment.is_one_way_car or segment.is_one_way_moped_exempt


def build_route_request(
    start: Coord,
    end: Coord,
    vehicle_class: VehicleClass,
    config: Optional[NavConfig] = None,
) -> RouteRequest:
    """
    Provider-neutral route request for a vehicle class.

    Class B additionally carries its speed cap and a motorway avoidance flag.
    """
    config = config or NavConfig()
    if vehicle_class is VehicleClass.B:
        return RouteRequest(
            start=start,
            end=end,
            vehicle_class=vehicle_class,
            profile=preferred_profile(vehicle_class),
            max_speed_kph=config.class_b_speed_cap_kph,
            avoid_motorways=True,
        )
    return RouteRequest(
        start=start,
        end=end,
        vehicle_class=vehicle_class,
        profile=preferred_profile(vehicle_class),
    )
