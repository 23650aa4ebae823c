# main.py
# Entry point: simulates a GPS loop feeding positions into NavigationSystem.
# In production, replace the ReplayPositionSource with a real location sensor.
#
# Usage:
#   python -m bromnav.main --class A 51.0543 3.7174 51.0365 3.7100
#   python -m bromnav.main --to "Korenmarkt, Gent" --from "Sint-Pietersstation, Gent"

import argparse
import logging
from typing import List

from .geo_utils import distance_m
from .models import Coord, PositionFix, Route, VehicleClass
from .nav_config import NavConfig
from .nav_logger import NavLogger
from .navigator import NavigationSystem
from .position_source import ReplayPositionSource
from .presenter import ConsolePresenter

logger = logging.getLogger(__name__)


def simulated_fixes(route: Route, vehicle_class: VehicleClass, every: int = 5) -> List[PositionFix]:
    """Fixes along the route geometry at the class speed cap."""
    speed_mps = vehicle_class.max_speed_kph / 3.6
    fixes = [PositionFix(c, speed_mps) for c in route.coordinates[::every]]
    fixes.append(PositionFix(route.destination, 0.0))
    return fixes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="bromnav: moped route planning and simulated navigation"
    )
    parser.add_argument("coords", nargs="*", type=float,
                        help="start_lat start_lon end_lat end_lon")
    parser.add_argument("--from", dest="start_address", default=None,
                        help="Start address (default: current position)")
    parser.add_argument("--to", dest="end_address", default=None,
                        help="Destination address")
    parser.add_argument("--class", dest="vehicle_class", choices=["A", "B"], default="B",
                        help="Moped class: A (25 km/h) or B (45 km/h)")
    parser.add_argument("--interval", type=float, default=0.05,
                        help="Seconds between simulated fixes")
    parser.add_argument("--log-dir", default="logs",
                        help="Directory for route and session logs")
    return parser


def main(argv=None) -> int:
    # ------------------------------------------------------------------
    # Logging setup: configure once here, all modules inherit
    # ------------------------------------------------------------------
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    parser = build_parser()
    args = parser.parse_args(argv)
    vehicle_class = VehicleClass(args.vehicle_class)

    # Config: API keys come from the environment / .env
    config = NavConfig.from_env(log_dir=args.log_dir)

    with NavigationSystem(config, presenter=ConsolePresenter(),
                          nav_logger=NavLogger(config)) as nav:
        if args.end_address:
            outcome = nav.plan_route_to_address(args.start_address, args.end_address,
                                                vehicle_class).result()
        elif len(args.coords) == 4:
            s_lat, s_lon, e_lat, e_lon = args.coords
            outcome = nav.plan_route(Coord(s_lat, s_lon), Coord(e_lat, e_lon),
                                     vehicle_class).result()
        else:
            parser.error("give either --to ADDRESS or four coordinates")
            return 2

        if not outcome.success:
            print(f"[Main] Could not start navigation: {outcome.message}")
            return 1

        route = outcome.route
        nav.start_navigation()
        print("\n--- GPS Loop Active ---")

        source = ReplayPositionSource(simulated_fixes(route, vehicle_class), args.interval)
        cancel = nav.attach_sensor(source)
        source.worker.join()
        cancel()

        state = nav.navigation_state
        if state is not None and state.arrived:
            left = distance_m(nav.position, route.destination)
            print(f"  ✓  Destination reached ({left:.0f} m from end point).")

        nav.cancel_navigation()

    print("\n--- Session complete ---")
    print(f"    Log files written to: {config.log_dir}/")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
