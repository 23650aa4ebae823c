# errors.py
# Exception types raised inside the navigation core.
# None of them is fatal: the navigator turns each into a reported outcome.


class NavError(Exception):
    """Base class for navigation core errors."""


class ProviderUnavailable(NavError):
    """Transport or parse failure of one backend."""

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class RouteNotFound(NavError):
    """Every provider answered, none found a path."""


class GeocodeNotFound(NavError):
    """No result for the given address."""


class SensorUnavailable(NavError):
    """Position sensor denied or not present."""


class StaleGeneration(NavError):
    """A background result arrived after its request was superseded."""

    def __init__(self, token: int, current: int) -> None:
        super().__init__(f"generation {token} superseded by {current}")
        self.token = token
        self.current = current
