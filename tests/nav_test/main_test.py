import pytest

from bromnav.main import build_parser, simulated_fixes
from bromnav.models import VehicleClass


def test_simulated_fixes_end_on_destination(make_route):
    route = make_route()
    fixes = simulated_fixes(route, VehicleClass.A, every=5)

    assert [f.coord for f in fixes[:-1]] == list(route.coordinates[::5])
    assert fixes[-1].coord == route.destination
    assert fixes[-1].speed_mps == 0.0
    assert fixes[0].speed_mps == pytest.approx(25 / 3.6)


def test_parser_defaults():
    args = build_parser().parse_args(["51.05", "3.71", "51.03", "3.70"])
    assert args.coords == [51.05, 3.71, 51.03, 3.70]
    assert args.vehicle_class == "B"
    assert args.end_address is None


def test_parser_addresses_and_class():
    args = build_parser().parse_args(["--to", "Korenmarkt, Gent", "--class", "A"])
    assert args.end_address == "Korenmarkt, Gent"
    assert args.vehicle_class == "A"
    assert args.coords == []
