# generations.py
# Monotonic tokens for background requests.
# A result is applied only if its token is still the current one.

import threading

from .errors import StaleGeneration


class GenerationCounter:
    """Thread-safe generation counter; each issue() supersedes older tokens."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current = 0

    @property
    def current(self) -> int:
        with self._lock:
            return self._current

    def issue(self) -> int:
        """Start a new generation and return its token."""
        with self._lock:
            self._current += 1
            return self._current

    def invalidate(self) -> None:
        """Supersede every outstanding token without starting a request."""
        self.issue()

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._current

    def check(self, token: int) -> None:
        """
        Raises:
            StaleGeneration: If token has been superseded.
        """
        with self._lock:
            if token != self._current:
                raise StaleGeneration(token, self._current)
