# nav_config.py
# All tuneable constants in one place.
# Pass a NavConfig instance to every module that needs settings.

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .models import Coord


# ---------------------------------------------------------------------------
# Provider endpoints
# ---------------------------------------------------------------------------

OSRM_BASE_URL: str = "https://router.project-osrm.org"
TOMTOM_BASE_URL: str = "https://api.tomtom.com"
NOMINATIM_BASE_URL: str = "https://nominatim.openstreetmap.org"

# Used when the position sensor is denied or unavailable (Brussels).
DEFAULT_POSITION: Coord = Coord(50.8466, 4.3528)


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class NavConfig:
    # Providers
    tomtom_api_key: Optional[str] = None
    tomtom_base_url: str = TOMTOM_BASE_URL
    osrm_base_url: str = OSRM_BASE_URL
    nominatim_base_url: str = NOMINATIM_BASE_URL
    request_timeout_s: float = 20.0
    language: str = "nl-NL"
    country_code: str = "BE"
    user_agent: str = "bromnav/0.1"

    # Routing
    class_b_speed_cap_kph: int = 45
    incident_bbox_padding_deg: float = 0.01

    # Progress tracking
    closest_point_stride: int = 2          # scan every Nth route point
    heading_lookahead_points: int = 3      # heading toward the point N ahead
    arrival_text: str = "You have reached your destination."
    default_position: Coord = field(default_factory=lambda: DEFAULT_POSITION)

    # Background work
    max_workers: int = 4

    # Logging
    log_dir: str = "."                     # directory for saved JSON files
    route_filename: str = "active_route.json"
    session_filename: str = "nav_session.jsonl"

    @property
    def route_filepath(self) -> str:
        return os.path.join(self.log_dir, self.route_filename)

    @property
    def session_filepath(self) -> str:
        return os.path.join(self.log_dir, self.session_filename)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "NavConfig":
        """
        Build a config from environment variables (and an optional .env file).

        Recognised variables: TOMTOM_API_KEY, TOMTOM_BASE_URL, OSRM_BASE_URL,
        NOMINATIM_BASE_URL, BROMNAV_LOG_DIR, BROMNAV_TIMEOUT_S.
        Keyword overrides win over the environment.
        """
        load_dotenv(env_file)
        values = {
            "tomtom_api_key": os.getenv("TOMTOM_API_KEY") or None,
            "tomtom_base_url": os.getenv("TOMTOM_BASE_URL", TOMTOM_BASE_URL),
            "osrm_base_url": os.getenv("OSRM_BASE_URL", OSRM_BASE_URL),
            "nominatim_base_url": os.getenv("NOMINATIM_BASE_URL", NOMINATIM_BASE_URL),
            "log_dir": os.getenv("BROMNAV_LOG_DIR", "."),
        }
        timeout = os.getenv("BROMNAV_TIMEOUT_S")
        if timeout:
            values["request_timeout_s"] = float(timeout)
        values.update(overrides)
        return cls(**values)
