"""Map catalog: the fixed routes and permits a game is played on."""
from __future__ import annotations

from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

import networkx as nx

from permit_engine.core.errors import ErrorKind, GameError
from permit_engine.core.graph import build_route_graph, load_permits, load_routes
from permit_engine.core.routes import city_pair
from permit_engine.models import Color, Permit, Route

STANDARD_ROUTES_FILE = "routes.csv"
STANDARD_PERMITS_FILE = "permits.csv"


@dataclass(frozen=True)
class GameMap:
    routes: Tuple[Route, ...]
    permits: Tuple[Permit, ...]

    def __post_init__(self) -> None:
        _validate_routes(self.routes)
        _validate_permits(self.permits)

    @classmethod
    def build(cls, routes: Iterable[Route], permits: Iterable[Permit]) -> 'GameMap':
        return cls(routes=tuple(routes), permits=tuple(permits))

    @classmethod
    def load(cls, routes_file: str | Path, permits_file: str | Path) -> 'GameMap':
        """
        Load a map from CSV files.

        Args:
            routes_file: Routes CSV (``Id, From, To, Distance, Color, Double``)
            permits_file: Permits CSV (``Id, From, To, Points``)
        """
        return cls.build(load_routes(routes_file), load_permits(permits_file))

    @classmethod
    def standard(cls) -> 'GameMap':
        """The bundled 36-city North America map: 97 routes and 30 permits."""
        data = resources.files("permit_engine") / "data"
        with resources.as_file(data / STANDARD_ROUTES_FILE) as routes_file, \
                resources.as_file(data / STANDARD_PERMITS_FILE) as permits_file:
            return cls.load(routes_file, permits_file)

    def route(self, route_id: int) -> Optional[Route]:
        for route in self.routes:
            if route.id == route_id:
                return route
        return None

    def get_graph(self) -> nx.MultiGraph:
        """Return the whole map as a multigraph keyed by route id."""
        return build_route_graph(self.routes)


def _validate_routes(routes: Tuple[Route, ...]) -> None:
    by_id: Dict[int, Route] = {}
    for route in routes:
        if route.id in by_id:
            raise GameError(ErrorKind.INVALID_CATALOG, f"Duplicate route id {route.id}")
        if route.city1 is route.city2:
            raise GameError(ErrorKind.INVALID_CATALOG, f"Route {route.id} starts and ends in {route.city1.value}")
        if route.length < 1:
            raise GameError(ErrorKind.INVALID_CATALOG, f"Route {route.id} has length {route.length}")
        if route.color is Color.WILD:
            raise GameError(ErrorKind.INVALID_CATALOG, f"Route {route.id} cannot be wild")
        if route.claimed_by is not None:
            raise GameError(ErrorKind.INVALID_CATALOG, f"Route {route.id} is already claimed")
        by_id[route.id] = route

    for route in routes:
        if route.double_route_partner_id is None:
            continue
        partner = by_id.get(route.double_route_partner_id)
        if partner is None or partner.double_route_partner_id != route.id:
            raise GameError(
                ErrorKind.INVALID_CATALOG,
                f"Route {route.id} names partner {route.double_route_partner_id} which does not pair back",
            )
        if city_pair(partner) != city_pair(route):
            raise GameError(ErrorKind.INVALID_CATALOG, f"Routes {route.id} and {partner.id} join different cities")


def _validate_permits(permits: Tuple[Permit, ...]) -> None:
    seen = set()
    for permit in permits:
        if permit.id in seen:
            raise GameError(ErrorKind.INVALID_CATALOG, f"Duplicate permit id {permit.id}")
        seen.add(permit.id)
