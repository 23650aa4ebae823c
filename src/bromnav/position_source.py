# position_source.py
# Location sensor boundary: a cancellable subscription delivering fixes.
# Fixes are handed to the callback as they arrive; nothing is buffered.

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Iterable, List, Optional

from .errors import SensorUnavailable
from .models import PositionFix

logger = logging.getLogger(__name__)

FixCallback = Callable[[PositionFix], None]
ErrorCallback = Callable[[SensorUnavailable], None]
CancelHandle = Callable[[], None]


class PositionSource(ABC):
    """One location sensor."""

    @abstractmethod
    def subscribe(self, on_fix: FixCallback,
                  on_error: Optional[ErrorCallback] = None) -> CancelHandle:
        """
        Start delivering fixes to on_fix.

        Returns:
            Callable that stops the subscription.
        """


class ReplayPositionSource(PositionSource):
    """
    Replays a fixed list of fixes on a daemon thread.

    Used for simulation and tests in place of a real GPS receiver.

    Args:
        fixes:      Fixes to deliver, in order.
        interval_s: Pause between fixes.
    """

    def __init__(self, fixes: Iterable[PositionFix], interval_s: float = 0.0) -> None:
        self.fixes: List[PositionFix] = list(fixes)
        self.interval_s = interval_s
        self.worker: Optional[threading.Thread] = None

    def subscribe(self, on_fix: FixCallback,
                  on_error: Optional[ErrorCallback] = None) -> CancelHandle:
        stop = threading.Event()

        def run() -> None:
            if not self.fixes and on_error is not None:
                on_error(SensorUnavailable("Replay source has no fixes."))
                return
            for fix in self.fixes:
                if stop.is_set():
                    return
                on_fix(fix)
                if self.interval_s:
                    stop.wait(self.interval_s)

        worker = threading.Thread(target=run, name="position-replay", daemon=True)
        worker.start()
        self.worker = worker
        return stop.set


class UnavailablePositionSource(PositionSource):
    """A sensor that was denied or is not present: reports the error once."""

    def __init__(self, reason: str = "Location permission denied.") -> None:
        self.reason = reason

    def subscribe(self, on_fix: FixCallback,
                  on_error: Optional[ErrorCallback] = None) -> CancelHandle:
        logger.warning(f"Position sensor unavailable: {self.reason}")
        if on_error is not None:
            on_error(SensorUnavailable(self.reason))
        return lambda: None
