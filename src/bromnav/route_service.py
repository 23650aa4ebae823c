# route_service.py
# Ordered list of routing backends with fallback.
# Returns one normalized Route; never computes shortest paths itself.

import logging
from typing import Dict, List, Optional, Sequence

import requests

from .errors import ProviderUnavailable, RouteNotFound
from .legality import build_route_request
from .models import Coord, Incident, Route, VehicleClass
from .nav_config import NavConfig
from .providers import OsrmProvider, RoutingProvider, TomTomProvider

logger = logging.getLogger(__name__)


def default_providers(config: NavConfig,
                      session: Optional[requests.Session] = None) -> List[RoutingProvider]:
    """TomTom first when a key is configured, OSRM always as the last resort."""
    providers: List[RoutingProvider] = []
    if config.tomtom_api_key:
        providers.append(TomTomProvider(config, session))
    providers.append(OsrmProvider(config, session))
    return providers


class RouteService:
    """
    Plans routes through an ordered list of providers.

    Args:
        providers: Backends tried in order; defaults to default_providers().
        config:    NavConfig instance.
    """

    def __init__(self, providers: Optional[Sequence[RoutingProvider]] = None,
                 config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self.providers: List[RoutingProvider] = (
            list(providers) if providers is not None else default_providers(self.config)
        )
        if not self.providers:
            raise ValueError("RouteService needs at least one routing provider.")
        self._by_name: Dict[str, RoutingProvider] = {p.name: p for p in self.providers}

    def plan_route(self, start: Coord, end: Coord, vehicle_class: VehicleClass) -> Route:
        """
        Ask each provider in turn until one returns a route.

        Each provider is called at most once; a failure or an empty answer
        moves on to the next one.

        Returns:
            Route from the first provider that found one.

        Raises:
            RouteNotFound:       At least one provider answered with no route.
            ProviderUnavailable: Every provider failed.
        """
        request = build_route_request(start, end, vehicle_class, self.config)
        answered = False
        last_error: Optional[ProviderUnavailable] = None

        for provider in self.providers:
            try:
                route = provider.plan(request)
            except ProviderUnavailable as e:
                logger.warning(f"Routing via {provider.name} failed: {e.reason}")
                last_error = e
                continue

            if route is None:
                logger.info(f"{provider.name} found no route, trying next provider.")
                answered = True
                continue

            logger.info(
                f"Route from {provider.name}: {len(route.coordinates)} points, "
                f"{int(route.total_distance_m)} m, {int(route.total_duration_s)} s."
            )
            return route

        if answered:
            raise RouteNotFound(f"No route between {start} and {end} for class {vehicle_class.value}.")
        raise ProviderUnavailable("all", str(last_error.reason if last_error else "no providers"))

    def supports_traffic(self, route: Route) -> bool:
        provider = self._by_name.get(route.provider)
        return provider is not None and provider.supports_traffic

    def fetch_incidents(self, route: Route) -> List[Incident]:
        """
        Live incidents around the route, from the provider that produced it.

        Returns an empty list for traffic-blind providers and on failure.
        """
        provider = self._by_name.get(route.provider)
        if provider is None or not provider.supports_traffic:
            return []
        try:
            incidents = provider.fetch_incidents(route.coordinates)
        except ProviderUnavailable as e:
            logger.warning(f"Incident lookup via {provider.name} failed: {e.reason}")
            return []
        logger.info(f"{len(incidents)} incidents along the route.")
        return incidents
