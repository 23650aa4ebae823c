# navigator.py
# Public entry point for the navigation system.
# Owns no business logic; delegates everything to specialist modules and
# keeps background results from overwriting newer state.

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional, Tuple

from .errors import (
    GeocodeNotFound, ProviderUnavailable, RouteNotFound, SensorUnavailable, StaleGeneration,
)
from .generations import GenerationCounter
from .geocoder import Geocoder
from .models import (
    Coord, Incident, NavigationState, PlanOutcome, PositionFix, Route, Suggestion, VehicleClass,
)
from .nav_config import NavConfig
from .nav_logger import NavLogger
from .position_source import CancelHandle, PositionSource
from .presenter import Presenter
from .route_service import RouteService
from .route_tracker import RouteTracker

logger = logging.getLogger(__name__)

SUPERSEDED = "Superseded by a newer request."


class NavigationSystem:
    """
    High-level navigation facade.

    Typical lifecycle:
        nav = NavigationSystem(NavConfig.from_env())
        nav.plan_route(Coord(51.054, 3.717), Coord(51.036, 3.710), VehicleClass.B).result()
        nav.start_navigation()

        # GPS loop:
        state = nav.update(PositionFix(Coord(lat, lon), speed_mps))

    Route planning, incident lookups and geocoding run on a worker pool and
    return Futures. Each request carries a generation token; a result whose
    token has been superseded (newer request or cancel) is discarded.
    Presenter calls and route persistence happen under the state lock, so
    the UI never shows a route the system no longer holds.

    Args:
        config:        Optional NavConfig; defaults to NavConfig().
        route_service: Routing backends with fallback.
        geocoder:      Geocoding backends with fallback.
        presenter:     UI boundary; defaults to a no-op Presenter.
        nav_logger:    Route / session persistence; None disables it.
    """

    def __init__(
        self,
        config: Optional[NavConfig] = None,
        route_service: Optional[RouteService] = None,
        geocoder: Optional[Geocoder] = None,
        presenter: Optional[Presenter] = None,
        nav_logger: Optional[NavLogger] = None,
    ) -> None:
        self.config = config or NavConfig()

        # Specialist modules
        self._routes    = route_service or RouteService(config=self.config)
        self._geocoder  = geocoder or Geocoder(config=self.config)
        self._tracker   = RouteTracker(self.config)
        self._presenter = presenter or Presenter()
        self._logger    = nav_logger

        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_workers, thread_name_prefix="bromnav"
        )
        self._lock = threading.RLock()
        self._route_generation = GenerationCounter()
        self._geocode_generation = GenerationCounter()
        self._suggest_generation = GenerationCounter()

        self._vehicle_class = VehicleClass.B
        self._position: Optional[Coord] = None
        self._start: Optional[Coord] = None          # None = follow current position
        self._destination: Optional[Coord] = None
        self._route: Optional[Route] = None
        self._incidents: List[Incident] = []

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "NavigationSystem":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    # Route planning
    # ------------------------------------------------------------------

    def plan_route(
        self,
        start: Optional[Coord],
        destination: Coord,
        vehicle_class: Optional[VehicleClass] = None,
    ) -> "Future[PlanOutcome]":
        """
        Calculate a route in the background and load it into the tracker.

        Args:
            start:         Starting coordinate; None = current position.
            destination:   Target coordinate.
            vehicle_class: Overrides the current vehicle class.

        Returns:
            Future resolving to a PlanOutcome.
        """
        return self._executor.submit(self._plan_job, *self._begin_plan(start, destination, vehicle_class))

    def plan_route_to_address(
        self,
        start_query: Optional[str],
        destination_query: str,
        vehicle_class: Optional[VehicleClass] = None,
    ) -> "Future[PlanOutcome]":
        """
        Geocode both addresses, then plan between them.

        A blank start_query starts from the current position. Any later
        plan or cancel supersedes the request, even while it is geocoding.
        """
        with self._lock:
            token = self._geocode_generation.issue()
            route_token = self._route_generation.issue()
        return self._executor.submit(
            self._address_job, token, route_token, start_query, destination_query, vehicle_class
        )

    def set_vehicle_class(self, vehicle_class: VehicleClass) -> "Optional[Future[PlanOutcome]]":
        """Switch vehicle class and re-plan the current trip, if any."""
        with self._lock:
            changed = vehicle_class is not self._vehicle_class
            self._vehicle_class = vehicle_class
            destination = self._destination
            start = self._start
        if not changed or destination is None:
            return None
        logger.info(f"Vehicle class changed to {vehicle_class.value}, recalculating.")
        return self.plan_route(start, destination)

    def _begin_plan(self, start: Optional[Coord], destination: Coord,
                    vehicle_class: Optional[VehicleClass],
                    reserved: Optional[int] = None) -> Tuple[int, Coord, Coord, VehicleClass]:
        """
        Record the trip and issue its route token.

        Raises:
            StaleGeneration: If reserved (a token taken before geocoding)
                             has been superseded in the meantime.
        """
        with self._lock:
            if reserved is not None:
                self._route_generation.check(reserved)
            if vehicle_class is not None:
                self._vehicle_class = vehicle_class
            self._start = start
            self._destination = destination
            token = self._route_generation.issue()
            origin = self._effective_start()
            cls = self._vehicle_class
        logger.info(f"Calculating route #{token}: {origin} → {destination} (class {cls.value})")
        return token, origin, destination, cls

    def _effective_start(self) -> Coord:
        return self._start or self._position or self.config.default_position

    def _plan_job(self, token: int, origin: Coord, destination: Coord,
                  vehicle_class: VehicleClass) -> PlanOutcome:
        try:
            route = self._routes.plan_route(origin, destination, vehicle_class)
        except RouteNotFound as e:
            return self._report_failure(token, "No route found.", e)
        except ProviderUnavailable as e:
            return self._report_failure(token, "Could not calculate route.", e)

        # Install, render and persist in one critical section so a newer
        # route cannot be shown or saved in between.
        with self._lock:
            try:
                self._route_generation.check(token)
            except StaleGeneration as e:
                logger.debug(f"Discarding route: {e}")
                return PlanOutcome(False, SUPERSEDED)
            self._route = route
            self._incidents = []
            # Wholesale replacement; also resets the tracker's search state.
            self._tracker.load_route(route)

            self._presenter.render_route(route)
            if self._logger is not None:
                self._logger.save_route(route)

            if self._routes.supports_traffic(route):
                self._executor.submit(self._incidents_job, token, route)

        msg = f"Route ready via {route.provider}. {len(route.instructions)} instructions."
        logger.info(msg)
        return PlanOutcome(True, msg, route)

    def _report_failure(self, token: int, message: str, error: Exception) -> PlanOutcome:
        with self._lock:
            if not self._route_generation.is_current(token):
                logger.debug(f"Discarding failure of superseded request #{token}: {error}")
                return PlanOutcome(False, SUPERSEDED)
            logger.warning(f"Route calculation failed: {error}")
            self._presenter.show_message(message)
        return PlanOutcome(False, message)

    def _incidents_job(self, token: int, route: Route) -> List[Incident]:
        incidents = self._routes.fetch_incidents(route)
        with self._lock:
            if not self._route_generation.is_current(token) or self._route is not route:
                logger.debug(f"Discarding incidents of superseded route #{token}.")
                return []
            self._incidents = incidents
            self._presenter.render_incidents(incidents)
        return incidents

    def _address_current(self, token: int, route_token: int) -> bool:
        return (
            self._geocode_generation.is_current(token)
            and self._route_generation.is_current(route_token)
        )

    def _address_job(self, token: int, route_token: int, start_query: Optional[str],
                     destination_query: str,
                     vehicle_class: Optional[VehicleClass]) -> PlanOutcome:
        try:
            start = None
            if start_query and start_query.strip():
                start = self._geocoder.geocode(start_query)
            destination = self._geocoder.geocode(destination_query)
        except GeocodeNotFound as e:
            with self._lock:
                if not self._address_current(token, route_token):
                    return PlanOutcome(False, SUPERSEDED)
                logger.warning(str(e))
                message = "No result for that address."
                self._presenter.show_message(message)
            return PlanOutcome(False, message)

        if not self._geocode_generation.is_current(token):
            logger.debug(f"Discarding geocode result of superseded request #{token}.")
            return PlanOutcome(False, SUPERSEDED)
        try:
            plan = self._begin_plan(start, destination, vehicle_class, reserved=route_token)
        except StaleGeneration as e:
            logger.debug(f"Discarding address plan: {e}")
            return PlanOutcome(False, SUPERSEDED)
        return self._plan_job(*plan)

    # ------------------------------------------------------------------
    # Geocoding
    # ------------------------------------------------------------------

    def geocode(self, query: str) -> "Future[Optional[Coord]]":
        """Resolve an address; the Future yields None if not found or superseded."""
        token = self._geocode_generation.issue()

        def job() -> Optional[Coord]:
            try:
                coord = self._geocoder.geocode(query)
            except GeocodeNotFound as e:
                logger.info(str(e))
                coord = None
            with self._lock:
                if not self._geocode_generation.is_current(token):
                    logger.debug(f"Discarding geocode result of superseded request #{token}.")
                    return None
                if coord is None:
                    self._presenter.show_message("No result for that address.")
            return coord

        return self._executor.submit(job)

    def suggest(self, query: str, limit: int = 5) -> "Future[List[Suggestion]]":
        """Autocomplete candidates; the Future yields [] once a newer query superseded it."""
        token = self._suggest_generation.issue()

        def job() -> List[Suggestion]:
            suggestions = self._geocoder.suggest(query, limit)
            if not self._suggest_generation.is_current(token):
                logger.debug(f"Discarding suggestions of superseded query #{token}.")
                return []
            return suggestions

        return self._executor.submit(job)

    # ------------------------------------------------------------------
    # Navigation control
    # ------------------------------------------------------------------

    def start_navigation(self) -> Tuple[bool, str]:
        """
        Begin tracking the loaded route.

        Returns:
            (success, message)
        """
        with self._lock:
            if self._route is None:
                return False, "No route to navigate."
            state = self._tracker.start(self._position)
            if state is not None:
                self._presenter.render_state(state)
        logger.info("Navigation started.")
        return True, "Navigation started."

    def cancel_navigation(self) -> None:
        """End navigation, forget the trip and ignore any in-flight results."""
        with self._lock:
            self._route_generation.invalidate()
            self._geocode_generation.invalidate()
            self._suggest_generation.invalidate()
            self._tracker.cancel()
            self._route = None
            self._incidents = []
            self._start = None
            self._destination = None
            self._presenter.clear()
        logger.info("Navigation cancelled by user.")

    # ------------------------------------------------------------------
    # Position input: call this on every fix
    # ------------------------------------------------------------------

    def update(self, fix: PositionFix) -> Optional[NavigationState]:
        """
        Process a new position fix.

        Returns:
            NavigationState while tracking, otherwise None.
        """
        with self._lock:
            self._position = fix.coord
            state = self._tracker.update(fix)
            if state is None:
                return None
            self._presenter.render_state(state)
            if self._logger is not None:
                self._logger.log_event(state, fix.coord)
        return state

    def on_sensor_error(self, error: SensorUnavailable) -> None:
        """Fall back to the default position if none is known yet."""
        with self._lock:
            if self._position is None:
                self._position = self.config.default_position
                logger.warning(f"{error} Using default position {self._position}.")
            else:
                logger.warning(f"{error} Keeping last known position.")

    def attach_sensor(self, source: PositionSource) -> CancelHandle:
        """Subscribe to a position source; returns its cancel handle."""
        return source.subscribe(self.update, self.on_sensor_error)

    # ------------------------------------------------------------------
    # Convenience read-only properties
    # ------------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self._tracker.is_active

    @property
    def route(self) -> Optional[Route]:
        return self._route

    @property
    def incidents(self) -> List[Incident]:
        return list(self._incidents)

    @property
    def position(self) -> Optional[Coord]:
        return self._position

    @property
    def vehicle_class(self) -> VehicleClass:
        return self._vehicle_class

    @property
    def navigation_state(self) -> Optional[NavigationState]:
        return self._tracker.last_state
