"""Graph building and catalog loading utilities."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

import networkx as nx
import pandas as pd

from permit_engine.core.errors import ErrorKind, GameError
from permit_engine.models import City, Color, Permit, Route

ROUTE_COLUMNS = ("Id", "From", "To", "Distance", "Color", "Double")
PERMIT_COLUMNS = ("Id", "From", "To", "Points")


def build_route_graph(routes: Iterable[Route]) -> nx.MultiGraph:
    """
    Build a multigraph with one edge per route.

    Edges are keyed by route id so parallel routes between the same two
    cities stay distinct, and carry ``weight`` (the route length) and
    ``color`` attributes.
    """
    graph = nx.MultiGraph()
    for route in routes:
        graph.add_edge(
            route.city1,
            route.city2,
            key=route.id,
            weight=route.length,
            color=route.color,
        )
    return graph


def build_connectivity_graph(routes: Iterable[Route]) -> nx.Graph:
    graph = nx.Graph()
    for route in routes:
        graph.add_edge(route.city1, route.city2)
    return graph


def load_routes(routes_file: Path | str) -> List[Route]:
    """
    Read routes from a CSV file.

    The file needs the columns ``Id, From, To, Distance, Color, Double``;
    ``Double`` holds the id of the paired route or is left empty.

    :param routes_file: Path of the routes CSV.
    :return: The routes, unclaimed, in file order.
    :rtype: List[Route]
    """
    frame = _read_frame(Path(routes_file), ROUTE_COLUMNS)
    routes: List[Route] = []
    for _, row in frame.iterrows():
        routes.append(Route(
            id=int(row["Id"]),
            city1=_city(row["From"]),
            city2=_city(row["To"]),
            length=int(row["Distance"]),
            color=_route_color(row["Color"]),
            double_route_partner_id=_optional_int(row["Double"]),
        ))
    return routes


def load_permits(permits_file: Path | str) -> List[Permit]:
    frame = _read_frame(Path(permits_file), PERMIT_COLUMNS)
    permits: List[Permit] = []
    for _, row in frame.iterrows():
        permits.append(Permit(
            id=int(row["Id"]),
            city1=_city(row["From"]),
            city2=_city(row["To"]),
            points=int(row["Points"]),
        ))
    return permits


def _read_frame(path: Path, columns: Iterable[str]) -> pd.DataFrame:
    frame = pd.read_csv(path, skipinitialspace=True)
    missing = [column for column in columns if column not in frame.columns]
    if missing:
        raise GameError(ErrorKind.INVALID_CATALOG, f"{path.name} is missing columns {missing}")
    return frame


def _city(value: object) -> City:
    try:
        return City(str(value).strip())
    except ValueError as exc:
        raise GameError(ErrorKind.INVALID_CATALOG, f"Unknown city {value!r}") from exc


def _route_color(value: object) -> Color:
    try:
        color = Color(str(value).strip().lower())
    except ValueError as exc:
        raise GameError(ErrorKind.INVALID_CATALOG, f"Unknown route color {value!r}") from exc
    if color is Color.WILD:
        raise GameError(ErrorKind.INVALID_CATALOG, "Routes cannot be wild")
    return color


def _optional_int(value: object) -> Optional[int]:
    if value is None or pd.isna(value) or str(value).strip() == "":
        return None
    return int(value)
