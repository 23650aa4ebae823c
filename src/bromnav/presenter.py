# presenter.py
# Presentation boundary. The core calls through this interface and never
# shares mutable state with the UI; everything it passes is read-only.

import logging
from typing import List, Optional

from .models import Incident, NavigationState, Route

logger = logging.getLogger(__name__)


class Presenter:
    """No-op presenter; subclass and override what the UI needs."""

    def render_route(self, route: Route) -> None:
        pass

    def render_incidents(self, incidents: List[Incident]) -> None:
        pass

    def render_state(self, state: NavigationState) -> None:
        pass

    def show_message(self, message: str) -> None:
        pass

    def clear(self) -> None:
        pass


class ConsolePresenter(Presenter):
    """Prints navigation output, as the simulation entry point expects."""

    def __init__(self, prefix: str = "[Nav]") -> None:
        self.prefix = prefix
        self._last_text: Optional[str] = None

    def render_route(self, route: Route) -> None:
        minutes = round(route.total_duration_s / 60)
        print(f"{self.prefix} Route via {route.provider}: "
              f"{route.total_distance_m / 1000:.1f} km, ~{minutes} min, "
              f"{len(route.instructions)} instructions.")

    def render_incidents(self, incidents: List[Incident]) -> None:
        if incidents:
            print(f"{self.prefix} {len(incidents)} incidents along the route.")
        for incident in incidents:
            print(f"{self.prefix}   {incident.incident_type.name}: {incident.description}")

    def render_state(self, state: NavigationState) -> None:
        instruction = state.next_instruction
        line = f"{state.distance_to_next_m} m: {instruction.text} ({instruction.maneuver.name})"
        eta = f"ETA {state.remaining_duration_s // 60} min"
        speed = f", {state.speed_kph} km/h" if state.speed_kph is not None else ""
        print(f"{self.prefix} {line} | {eta}, heading {state.heading_deg:.0f}°{speed}")
        if instruction.text != self._last_text:
            logger.info(f"Next instruction: {instruction.text}")
            self._last_text = instruction.text

    def show_message(self, message: str) -> None:
        print(f"{self.prefix} {message}")

    def clear(self) -> None:
        self._last_text = None
        print(f"{self.prefix} Navigation cleared.")
