# nav_logger.py
# Handles all file I/O for the navigation system.
# Saves routes and navigation events as JSON.

import json
import os
import logging
from datetime import datetime
from typing import Optional

from .models import Coord, NavigationState, Route
from .nav_config import NavConfig

# Standard Python logger; configure at app entry point if needed
logger = logging.getLogger(__name__)


class NavLogger:
    """
    Persists the active route and navigation events to JSON files.

    Args:
        config: NavConfig instance for file paths and directories.
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        os.makedirs(self.config.log_dir, exist_ok=True)

    # ------------------------------------------------------------------
    # Route persistence
    # ------------------------------------------------------------------

    def save_route(self, route: Route) -> bool:
        """
        Serialize a route to JSON.

        Returns:
            True on success, False on failure.
        """
        filepath = self.config.route_filepath
        try:
            data = {
                "saved_at": datetime.now().isoformat(),
                "point_count": len(route.coordinates),
                "route": route.to_dict(),
            }
            with open(filepath, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            logger.info(f"Route saved to {filepath} ({len(route.coordinates)} points).")
            return True
        except (IOError, TypeError) as e:
            logger.error(f"Failed to save route to {filepath}: {e}")
            return False

    def load_route(self, filepath: Optional[str] = None) -> Optional[Route]:
        """
        Load a previously saved route from JSON.

        Args:
            filepath: Path override; uses config default if omitted.

        Returns:
            Route, or None if loading failed.
        """
        path = filepath or self.config.route_filepath
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            route = Route.from_dict(data["route"])
            logger.info(f"Route loaded from {path} ({len(route.coordinates)} points).")
            return route
        except (IOError, KeyError, ValueError) as e:
            logger.error(f"Failed to load route from {path}: {e}")
            return None

    # ------------------------------------------------------------------
    # Session event logging
    # ------------------------------------------------------------------

    def log_event(self, state: NavigationState, position: Coord) -> None:
        """
        Append a single navigation event to the session log file.

        Args:
            state:    NavigationState from RouteTracker.
            position: Position the state was computed for.
        """
        entry = {
            "timestamp": datetime.now().isoformat(),
            "lat": position.lat,
            "lon": position.lon,
            "closest_index": state.closest_route_index,
            "maneuver": state.next_instruction.maneuver.value,
            "message": state.next_instruction.text,
            "distance_to_next": state.distance_to_next_m,
            "remaining_s": state.remaining_duration_s,
            "heading": round(state.heading_deg, 1),
        }
        try:
            with open(self.config.session_filepath, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False) + "\n")
        except IOError as e:
            logger.error(f"Failed to write event log: {e}")
