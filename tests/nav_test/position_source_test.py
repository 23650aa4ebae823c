import threading

import pytest

from bromnav.errors import SensorUnavailable
from bromnav.models import Coord, PositionFix
from bromnav.position_source import (
    PositionSource, ReplayPositionSource, UnavailablePositionSource,
)


def test_position_source_is_abstract():
    with pytest.raises(TypeError):
        PositionSource()


def test_subclass_must_implement_subscribe():
    class Silent(PositionSource):
        pass

    with pytest.raises(TypeError):
        Silent()


def test_replay_delivers_fixes_in_order():
    fixes = [PositionFix(Coord(51.0 + i * 0.001, 3.7)) for i in range(3)]
    received = []
    source = ReplayPositionSource(fixes)

    source.subscribe(received.append)
    source.worker.join(5)

    assert received == fixes


def test_replay_without_fixes_reports_error():
    errors = []
    source = ReplayPositionSource([])
    source.subscribe(lambda fix: None, errors.append)
    source.worker.join(5)

    assert len(errors) == 1
    assert isinstance(errors[0], SensorUnavailable)


def test_cancel_stops_replay():
    first = threading.Event()
    received = []

    def on_fix(fix):
        received.append(fix)
        first.set()

    source = ReplayPositionSource([PositionFix(Coord(51.0, 3.7))] * 50, interval_s=0.05)
    cancel = source.subscribe(on_fix)
    assert first.wait(5)
    cancel()
    source.worker.join(5)

    assert not source.worker.is_alive()
    assert len(received) < 50


def test_unavailable_source_reports_once():
    errors = []
    cancel = UnavailablePositionSource("denied").subscribe(lambda fix: None, errors.append)

    assert [e.args[0] for e in errors] == ["denied"]
    cancel()
