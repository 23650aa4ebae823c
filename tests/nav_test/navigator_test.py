import os
import threading
from typing import Dict, List, Optional

import pytest

from conftest import RecordingPresenter, StubProvider, build_route
from bromnav.errors import ProviderUnavailable
from bromnav.geocoder import Geocoder
from bromnav.models import (
    Coord, Incident, IncidentType, PositionFix, Suggestion, VehicleClass,
)
from bromnav.nav_config import DEFAULT_POSITION, NavConfig
from bromnav.nav_logger import NavLogger
from bromnav.navigator import SUPERSEDED, NavigationSystem
from bromnav.position_source import ReplayPositionSource, UnavailablePositionSource
from bromnav.providers import GeocodingProvider
from bromnav.route_service import RouteService

START = Coord(51.0543, 3.7174)
END_A = Coord(51.0365, 3.7100)
END_B = Coord(51.0600, 3.7300)


def route_to(request):
    """A straight route that starts at the requested start point."""
    return build_route(origin=request.start, provider="stub")


class DictGeocoder(GeocodingProvider):
    name = "dict"

    def __init__(self, places: Dict[str, Coord]) -> None:
        self.places = places

    def geocode(self, query: str) -> Optional[Coord]:
        return self.places.get(query)

    def suggest(self, query: str, limit: int = 5) -> List[Suggestion]:
        return [Suggestion(q, q, c) for q, c in self.places.items() if q.startswith(query)][:limit]


class GatedGeocoder(DictGeocoder):
    """Holds geocode and suggest calls for the gated queries until released."""

    def __init__(self, places: Dict[str, Coord], gates: Dict[str, threading.Event]) -> None:
        super().__init__(places)
        self.gates = gates

    def _wait(self, query: str) -> None:
        gate = self.gates.get(query)
        if gate is not None:
            assert gate.wait(5), "gate never released"

    def geocode(self, query: str) -> Optional[Coord]:
        self._wait(query)
        return super().geocode(query)

    def suggest(self, query: str, limit: int = 5) -> List[Suggestion]:
        self._wait(query)
        return super().suggest(query, limit)


class BlockingPresenter(RecordingPresenter):
    """Blocks inside the first render_route until released."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def render_route(self, route):
        if not self.entered.is_set():
            self.entered.set()
            assert self.release.wait(5), "render never released"
        super().render_route(route)


@pytest.fixture
def config(tmp_path):
    return NavConfig(log_dir=str(tmp_path))


@pytest.fixture
def build_nav(config, presenter):
    systems = []

    def build(*providers, places=None, nav_logger=None, geocoders=None, ui=None):
        nav = NavigationSystem(
            config,
            route_service=RouteService(list(providers), config),
            geocoder=Geocoder(geocoders or [DictGeocoder(places or {})], config),
            presenter=ui or presenter,
            nav_logger=nav_logger,
        )
        systems.append(nav)
        return nav

    yield build
    for nav in systems:
        nav.shutdown()


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------

def test_plan_route_installs_and_renders_route(build_nav, presenter):
    nav = build_nav(StubProvider("stub", route_to))
    outcome = nav.plan_route(START, END_A).result(timeout=5)

    assert outcome.success
    assert outcome.route is nav.route
    assert presenter.routes == [outcome.route]
    assert nav.vehicle_class is VehicleClass.B


def test_secondary_provider_used_after_primary_fails(build_nav):
    primary = StubProvider("primary", ProviderUnavailable("primary", "HTTP 503"))
    secondary = StubProvider("secondary", build_route(provider="secondary"))
    nav = build_nav(primary, secondary)

    outcome = nav.plan_route(START, END_A).result(timeout=5)

    assert outcome.route.provider == "secondary"
    assert len(primary.requests) == 1


def test_unavailable_providers_are_reported(build_nav, presenter):
    nav = build_nav(StubProvider("stub", ProviderUnavailable("stub", "timeout")))
    outcome = nav.plan_route(START, END_A).result(timeout=5)

    assert not outcome.success
    assert outcome.message == "Could not calculate route."
    assert presenter.messages == ["Could not calculate route."]
    assert nav.route is None


def test_no_route_is_reported(build_nav, presenter):
    nav = build_nav(StubProvider("stub", None))
    outcome = nav.plan_route(START, END_A).result(timeout=5)
    assert outcome.message == "No route found."
    assert presenter.messages == ["No route found."]


def test_missing_start_uses_default_position(build_nav):
    provider = StubProvider("stub", route_to)
    nav = build_nav(provider)
    nav.plan_route(None, END_A).result(timeout=5)
    assert provider.requests[0].start == DEFAULT_POSITION


def test_missing_start_uses_current_position(build_nav):
    provider = StubProvider("stub", route_to)
    nav = build_nav(provider)
    nav.update(PositionFix(START))
    nav.plan_route(None, END_A).result(timeout=5)
    assert provider.requests[0].start == START


# ---------------------------------------------------------------------------
# Stale results
# ---------------------------------------------------------------------------

def test_newer_request_wins_over_slower_older_one(build_nav, presenter):
    gate = threading.Event()
    provider = StubProvider("stub", route_to, gates={END_A: gate})
    nav = build_nav(provider)

    older = nav.plan_route(START, END_A)
    newer = nav.plan_route(START, END_B).result(timeout=5)
    gate.set()
    stale = older.result(timeout=5)

    assert newer.success
    assert stale.success is False
    assert stale.message == SUPERSEDED
    assert nav.route is newer.route
    assert presenter.routes == [newer.route]


def test_cancel_discards_in_flight_request(build_nav, presenter):
    gate = threading.Event()
    nav = build_nav(StubProvider("stub", route_to, gates={END_A: gate}))

    pending = nav.plan_route(START, END_A)
    nav.cancel_navigation()
    gate.set()

    assert pending.result(timeout=5).message == SUPERSEDED
    assert nav.route is None
    assert presenter.routes == []
    assert presenter.cleared == 1


def test_failure_of_superseded_request_stays_silent(build_nav, presenter):
    gate = threading.Event()

    def answer(request):
        if request.end == END_A:
            raise ProviderUnavailable("stub", "late failure")
        return route_to(request)

    nav = build_nav(StubProvider("stub", answer, gates={END_A: gate}))

    older = nav.plan_route(START, END_A)
    nav.plan_route(START, END_B).result(timeout=5)
    gate.set()

    assert older.result(timeout=5).message == SUPERSEDED
    assert presenter.messages == []


def test_direct_plan_supersedes_address_plan_still_geocoding(build_nav, presenter):
    gate = threading.Event()
    provider = StubProvider("stub", route_to)
    geocoder = GatedGeocoder({"Sint-Pieters": END_A}, {"Sint-Pieters": gate})
    nav = build_nav(provider, geocoders=[geocoder])

    older = nav.plan_route_to_address(None, "Sint-Pieters")
    newer = nav.plan_route(START, END_B).result(timeout=5)
    gate.set()

    assert older.result(timeout=5).message == SUPERSEDED
    assert nav.route is newer.route
    assert presenter.routes == [newer.route]
    assert [r.end for r in provider.requests] == [END_B]


def test_cancel_discards_address_plan_still_geocoding(build_nav, presenter):
    gate = threading.Event()
    provider = StubProvider("stub", route_to)
    nav = build_nav(provider, geocoders=[GatedGeocoder({"Sint-Pieters": END_A}, {"Sint-Pieters": gate})])

    pending = nav.plan_route_to_address(None, "Sint-Pieters")
    nav.cancel_navigation()
    gate.set()

    assert pending.result(timeout=5).message == SUPERSEDED
    assert nav.route is None
    assert provider.requests == []


def test_older_render_finishes_before_newer_route_is_installed(build_nav):
    ui = BlockingPresenter()
    nav = build_nav(StubProvider("stub", route_to), ui=ui)

    older = nav.plan_route(START, END_A)
    assert ui.entered.wait(5)

    submitted = []
    planner = threading.Thread(target=lambda: submitted.append(nav.plan_route(START, END_B)))
    planner.start()
    planner.join(0.2)
    ui.release.set()
    planner.join(5)

    newer = submitted[0].result(timeout=5)
    older.result(timeout=5)

    assert newer.success
    assert nav.route is newer.route
    assert ui.routes[-1] is newer.route


# ---------------------------------------------------------------------------
# Incidents
# ---------------------------------------------------------------------------

def test_incidents_follow_traffic_aware_route(build_nav, presenter):
    jam = Incident("1", START, IncidentType.JAM, "File")
    nav = build_nav(StubProvider("stub", route_to, supports_traffic=True, incidents=[jam]))

    outcome = nav.plan_route(START, END_A).result(timeout=5)
    nav.shutdown(wait=True)

    assert outcome.success
    assert nav.incidents == [jam]
    assert presenter.incidents == [[jam]]


def test_traffic_blind_route_has_no_incidents(build_nav, presenter):
    jam = Incident("1", START, IncidentType.JAM, "File")
    nav = build_nav(StubProvider("stub", route_to, incidents=[jam]))

    nav.plan_route(START, END_A).result(timeout=5)
    nav.shutdown(wait=True)

    assert nav.incidents == []
    assert presenter.incidents == []


# ---------------------------------------------------------------------------
# Addresses and vehicle class
# ---------------------------------------------------------------------------

def test_plan_route_to_address(build_nav):
    provider = StubProvider("stub", route_to)
    nav = build_nav(provider, places={"Korenmarkt": START, "Sint-Pieters": END_A})

    outcome = nav.plan_route_to_address("Korenmarkt", "Sint-Pieters", VehicleClass.A).result(timeout=5)

    assert outcome.success
    request = provider.requests[0]
    assert request.start == START
    assert request.end == END_A
    assert request.vehicle_class is VehicleClass.A


def test_blank_start_address_means_current_position(build_nav):
    provider = StubProvider("stub", route_to)
    nav = build_nav(provider, places={"Sint-Pieters": END_A})
    nav.update(PositionFix(END_B))

    nav.plan_route_to_address("  ", "Sint-Pieters").result(timeout=5)
    assert provider.requests[0].start == END_B


def test_unknown_address_is_reported(build_nav, presenter):
    provider = StubProvider("stub", route_to)
    nav = build_nav(provider)

    outcome = nav.plan_route_to_address(None, "Nergensstraat 1").result(timeout=5)

    assert not outcome.success
    assert presenter.messages == ["No result for that address."]
    assert provider.requests == []


def test_geocode_future(build_nav, presenter):
    nav = build_nav(StubProvider("stub", route_to), places={"Korenmarkt": START})
    assert nav.geocode("Korenmarkt").result(timeout=5) == START
    assert nav.geocode("Nergens").result(timeout=5) is None
    assert presenter.messages == ["No result for that address."]


def test_suggest_future(build_nav):
    nav = build_nav(StubProvider("stub", route_to), places={"Korenmarkt": START})
    assert [s.label for s in nav.suggest("Koren").result(timeout=5)] == ["Korenmarkt"]


def test_superseded_suggestions_come_back_empty(build_nav):
    gate = threading.Event()
    places = {"Korenmarkt": START, "Kouter": END_A}
    nav = build_nav(StubProvider("stub", route_to), geocoders=[GatedGeocoder(places, {"Kor": gate})])

    older = nav.suggest("Kor")
    newer = nav.suggest("Kou").result(timeout=5)
    gate.set()

    assert older.result(timeout=5) == []
    assert [s.label for s in newer] == ["Kouter"]


def test_vehicle_class_change_replans(build_nav):
    provider = StubProvider("stub", route_to)
    nav = build_nav(provider)
    nav.plan_route(START, END_A, VehicleClass.B).result(timeout=5)

    assert nav.set_vehicle_class(VehicleClass.B) is None
    outcome = nav.set_vehicle_class(VehicleClass.A).result(timeout=5)

    assert outcome.success
    assert [r.vehicle_class for r in provider.requests] == [VehicleClass.B, VehicleClass.A]
    assert provider.requests[1].end == END_A


def test_vehicle_class_change_without_trip(build_nav):
    nav = build_nav(StubProvider("stub", route_to))
    assert nav.set_vehicle_class(VehicleClass.A) is None
    assert nav.vehicle_class is VehicleClass.A


# ---------------------------------------------------------------------------
# Navigation and sensors
# ---------------------------------------------------------------------------

def test_start_navigation_needs_a_route(build_nav):
    nav = build_nav(StubProvider("stub", route_to))
    assert nav.start_navigation() == (False, "No route to navigate.")


def test_update_outside_navigation_only_stores_position(build_nav, presenter):
    nav = build_nav(StubProvider("stub", route_to))
    assert nav.update(PositionFix(START)) is None
    assert nav.position == START
    assert presenter.states == []


def test_denied_sensor_falls_back_to_default_position(build_nav):
    nav = build_nav(StubProvider("stub", route_to))
    nav.attach_sensor(UnavailablePositionSource())
    assert nav.position == DEFAULT_POSITION


def test_sensor_error_keeps_known_position(build_nav):
    nav = build_nav(StubProvider("stub", route_to))
    nav.update(PositionFix(START))
    nav.attach_sensor(UnavailablePositionSource())
    assert nav.position == START


def test_replayed_fixes_drive_navigation(build_nav, presenter, config):
    nav = build_nav(StubProvider("stub", route_to), nav_logger=NavLogger(config))
    route = nav.plan_route(START, END_A).result(timeout=5).route
    assert nav.start_navigation() == (True, "Navigation started.")

    fixes = [PositionFix(c, 8.0) for c in route.coordinates[::4]] + [PositionFix(route.destination, 0.0)]
    source = ReplayPositionSource(fixes)
    nav.attach_sensor(source)
    source.worker.join(timeout=5)

    assert len(presenter.states) == len(fixes)
    assert nav.navigation_state.arrived
    assert nav.is_active
    assert os.path.exists(config.route_filepath)
    with open(config.session_filepath, encoding="utf-8") as f:
        assert len(f.readlines()) == len(fixes)


def test_cancel_stops_navigation(build_nav, presenter):
    nav = build_nav(StubProvider("stub", route_to))
    nav.plan_route(START, END_A).result(timeout=5)
    nav.start_navigation()
    nav.cancel_navigation()

    assert not nav.is_active
    assert nav.route is None
    assert nav.update(PositionFix(START)) is None
