# route_tracker.py
# State machine that tracks a rider's position against an active route.
# Call load_route() once, start(), then update() on every position fix.

import logging
from typing import Optional

import numpy as np

from .geo_utils import bearing_deg, distance_m, haversine_many
from .models import (
    Coord, Instruction, Maneuver, NavigationState, PositionFix, Route, TrackerState,
)
from .nav_config import NavConfig

logger = logging.getLogger(__name__)


class RouteTracker:
    """
    Stateful progress tracker for a single navigation session.

    IDLE -> TRACKING on start() with a loaded route, TRACKING -> IDLE on
    cancel(). Arrival does not change the state; it shows up as an ARRIVE
    instruction with zero distance.

    Usage:
        tracker = RouteTracker(config)
        tracker.load_route(route)
        tracker.start()

        # Inside GPS loop:
        state = tracker.update(fix)
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self._route: Optional[Route] = None
        self._state = TrackerState.IDLE
        self._last: Optional[NavigationState] = None
        self._lats: np.ndarray = np.empty(0)
        self._lons: np.ndarray = np.empty(0)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def load_route(self, route: Route) -> None:
        """Load a new route and reset all progress state."""
        self._route = route
        self._last = None
        stride = max(1, self.config.closest_point_stride)
        sampled = route.coordinates[::stride]
        self._lats = np.array([c.lat for c in sampled], dtype=float)
        self._lons = np.array([c.lon for c in sampled], dtype=float)
        logger.debug(f"Route loaded: {len(route.coordinates)} points, {len(route.instructions)} instructions.")

    def start(self, position: Optional[Coord] = None) -> Optional[NavigationState]:
        """
        Begin tracking the loaded route.

        Args:
            position: Current position, if known; used to compute the first
                      state at route index 0.

        Raises:
            RuntimeError: If no route is loaded.
        """
        if self._route is None:
            raise RuntimeError("Cannot start tracking without a route.")
        self._state = TrackerState.TRACKING
        if position is None:
            return None
        self._last = self._compute(0, PositionFix(position))
        return self._last

    def cancel(self) -> None:
        """End navigation and drop the route."""
        self._state = TrackerState.IDLE
        self._route = None
        self._last = None
        self._lats = np.empty(0)
        self._lons = np.empty(0)

    # ------------------------------------------------------------------
    # Read-only properties
    # ------------------------------------------------------------------

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is TrackerState.TRACKING

    @property
    def route(self) -> Optional[Route]:
        return self._route

    @property
    def last_state(self) -> Optional[NavigationState]:
        return self._last

    # ------------------------------------------------------------------
    # Core method: call on every position fix
    # ------------------------------------------------------------------

    def closest_index(self, position: Coord) -> int:
        """
        Index of the nearest route point, scanning every Nth point only.

        Ties resolve to the earliest index.
        """
        if self._route is None or not len(self._lats):
            return 0
        distances = haversine_many(position, self._lats, self._lons)
        return int(np.argmin(distances)) * max(1, self.config.closest_point_stride)

    def update(self, fix: PositionFix) -> Optional[NavigationState]:
        """
        Compare the current position to the active route.

        Args:
            fix: Latest position fix.

        Returns:
            NavigationState, or None when not tracking.
        """
        if not self.is_active or self._route is None:
            return None
        self._last = self._compute(self.closest_index(fix.coord), fix)
        return self._last

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _arrival_instruction(self) -> Instruction:
        return Instruction(
            route_index=len(self._route.coordinates) - 1,
            distance_from_start_m=self._route.total_distance_m,
            text=self.config.arrival_text,
            maneuver=Maneuver.ARRIVE,
            location=self._route.destination,
        )

    def _heading(self, position: Coord, closest: int) -> float:
        coords = self._route.coordinates
        ahead = coords[min(closest + self.config.heading_lookahead_points, len(coords) - 1)]
        if ahead == position:
            # zero vector: keep the last known heading
            return self._last.heading_deg if self._last is not None else 0.0
        return bearing_deg(position, ahead)

    def _compute(self, closest: int, fix: PositionFix) -> NavigationState:
        route = self._route
        position = fix.coord

        # Linear in point count; ignores per-segment speed differences.
        progress = closest / len(route.coordinates)
        remaining = round(route.total_duration_s * (1 - progress))

        upcoming = next((i for i in route.instructions if i.route_index > closest), None)
        if upcoming is None:
            upcoming = self._arrival_instruction()
            distance_to_next = 0
        else:
            distance_to_next = round(distance_m(position, upcoming.location))

        speed_kph = round(fix.speed_mps * 3.6) if fix.speed_mps is not None else None

        return NavigationState(
            closest_route_index=closest,
            distance_to_next_m=distance_to_next,
            remaining_duration_s=remaining,
            next_instruction=upcoming,
            heading_deg=self._heading(position, closest),
            progress=progress,
            speed_kph=speed_kph,
        )
