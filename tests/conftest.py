import threading
from typing import Any, Dict, List, Optional, Tuple

import pytest
import requests

from bromnav.models import Coord, Incident, Instruction, Maneuver, Route, RouteRequest
from bromnav.presenter import Presenter
from bromnav.providers import RoutingProvider

INVALID_JSON = object()


class FakeResponse:
    def __init__(self, json_data: Any = None, status_code: int = 200) -> None:
        self.status_code = status_code
        self.json_data = json_data

    def json(self) -> Any:
        if self.json_data is INVALID_JSON:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.json_data

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Stands in for requests.Session: answers by URL substring, records calls."""

    def __init__(self, routes: Optional[List[Tuple[str, Any]]] = None) -> None:
        self.routes = list(routes or [])
        self.headers: Dict[str, str] = {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def add(self, url_part: str, answer: Any) -> None:
        self.routes.append((url_part, answer))

    def get(self, url: str, params=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        for url_part, answer in self.routes:
            if url_part in url:
                if isinstance(answer, Exception):
                    raise answer
                return answer
        raise AssertionError(f"Unexpected request: {url}")


class StubProvider(RoutingProvider):
    """
    Routing backend with canned answers: a Route, None, or an exception.

    gates maps a destination to a threading.Event the call waits on first,
    which keeps a request in flight until the test releases it.
    """

    def __init__(self, name: str, answer=None, supports_traffic: bool = False,
                 incidents=None, gates: Optional[Dict[Coord, threading.Event]] = None) -> None:
        self.name = name
        self.answer = answer
        self.supports_traffic = supports_traffic
        self.incidents = incidents or []
        self.gates = gates or {}
        self.requests: List[RouteRequest] = []

    def plan(self, request: RouteRequest) -> Optional[Route]:
        self.requests.append(request)
        gate = self.gates.get(request.end)
        if gate is not None:
            assert gate.wait(5), "gate never released"
        if isinstance(self.answer, Exception):
            raise self.answer
        if callable(self.answer):
            return self.answer(request)
        return self.answer

    def fetch_incidents(self, coordinates) -> List[Incident]:
        if isinstance(self.incidents, Exception):
            raise self.incidents
        return self.incidents


class RecordingPresenter(Presenter):
    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.routes: List[Route] = []
        self.states = []
        self.messages: List[str] = []
        self.incidents = []
        self.cleared = 0

    def render_route(self, route):
        with self.lock:
            self.routes.append(route)

    def render_incidents(self, incidents):
        with self.lock:
            self.incidents.append(incidents)

    def render_state(self, state):
        with self.lock:
            self.states.append(state)

    def show_message(self, message):
        with self.lock:
            self.messages.append(message)

    def clear(self):
        self.cleared += 1


def build_route(
    n: int = 21,
    origin: Coord = Coord(51.0, 3.7),
    step_deg: float = 0.0001,
    heading: str = "north",
    instruction_indices=(0, 6, 14, 20),
    duration_s: float = 210.0,
    provider: str = "test",
) -> Route:
    """Straight route of n points, ~11 m apart, with instructions at the given indices."""
    if heading == "north":
        coords = [Coord(origin.lat + i * step_deg, origin.lon) for i in range(n)]
    else:
        coords = [Coord(origin.lat, origin.lon + i * step_deg) for i in range(n)]

    maneuvers = [Maneuver.DEPART, Maneuver.TURN_LEFT, Maneuver.TURN_RIGHT, Maneuver.ARRIVE]
    instructions = []
    for k, index in enumerate(instruction_indices):
        maneuver = maneuvers[k] if k < len(maneuvers) else Maneuver.GO_STRAIGHT
        instructions.append(Instruction(
            route_index=index,
            distance_from_start_m=index * 11.1,
            text=f"{maneuver.name} at {index}",
            maneuver=maneuver,
            location=coords[index],
        ))
    return Route(
        coordinates=coords,
        instructions=instructions,
        total_distance_m=(n - 1) * 11.1,
        total_duration_s=duration_s,
        provider=provider,
    )


@pytest.fixture
def make_route():
    return build_route


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def presenter():
    return RecordingPresenter()
