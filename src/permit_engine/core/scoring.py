"""
Scoring utilities shared by the game and the AI policies.

This module checks permit completion, computes the longest continuous path
through a set of claimed routes, and assembles end-of-game score breakdowns.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence, Set, Tuple

import networkx as nx

from permit_engine.core.constants import LONGEST_PATH_BONUS, route_points
from permit_engine.core.graph import build_connectivity_graph, build_route_graph
from permit_engine.models import City, Permit, Route


@dataclass(frozen=True)
class ScoreBreakdown:
    """
    Breakdown of a player's final score into components.

    Attributes:
        route_points: Points from claimed routes (based on length)
        permit_points_gained: Points from completed permits
        permit_points_lost: Points lost to uncompleted permits (positive number)
        completed_permits: How many held permits were completed
        longest_path_length: Length of the longest continuous path
        longest_bonus: Bonus awarded for holding the longest path, or 0
    """

    route_points: int
    permit_points_gained: int
    permit_points_lost: int
    completed_permits: int
    longest_path_length: int
    longest_bonus: int

    @property
    def total_score(self) -> int:
        return self.route_points + self.permit_points_gained - self.permit_points_lost + self.longest_bonus


def calculate_route_points(routes: Sequence[Route]) -> int:
    return sum(route_points(route.length) for route in routes)


def is_permit_completed(permit: Permit, routes: Sequence[Route]) -> bool:
    """
    Check whether the routes connect the two cities of a permit.

    Only the given routes count, so pass the routes claimed by the permit's
    holder.

    :param permit: The permit to check.
    :type permit: Permit
    :param routes: The routes claimed by the player.
    :type routes: Sequence[Route]
    :return: Whether the permit's cities are connected.
    :rtype: bool
    """
    graph = build_connectivity_graph(routes)
    if permit.city1 not in graph or permit.city2 not in graph:
        return False
    return nx.has_path(graph, permit.city1, permit.city2)


def calculate_longest_path(routes: Sequence[Route]) -> int:
    """
    Length of the longest walk that never reuses a route.

    Cities may be revisited. Every city is tried as a starting point and the
    search is exhaustive, so the cost grows quickly with the number of routes;
    a single player's network stays small enough for that.
    """
    if not routes:
        return 0

    graph = build_route_graph(routes)
    max_length = 0
    for city in graph.nodes:
        max_length = max(max_length, _longest_walk_from(graph, city))
    return max_length


def _longest_walk_from(graph: nx.MultiGraph, start: City) -> int:
    best = 0
    used: Set[int] = set()
    # frame: (length so far, route id used to get here, remaining edges to try)
    stack: List[Tuple[int, int | None, Iterator[Tuple[City, int, int]]]] = [
        (0, None, _edges_from(graph, start)),
    ]
    while stack:
        length, via, edges = stack[-1]
        for neighbor, route_id, weight in edges:
            if route_id in used:
                continue
            used.add(route_id)
            best = max(best, length + weight)
            stack.append((length + weight, route_id, _edges_from(graph, neighbor)))
            break
        else:
            stack.pop()
            if via is not None:
                used.discard(via)
    return best


def _edges_from(graph: nx.MultiGraph, city: City) -> Iterator[Tuple[City, int, int]]:
    return iter([
        (neighbor, key, data["weight"])
        for _, neighbor, key, data in graph.edges(city, keys=True, data=True)
    ])


def players_with_longest_path(path_lengths: Dict[str, int]) -> List[str]:
    """Every player tied for the longest path, or nobody if the longest is 0."""
    longest = max(path_lengths.values(), default=0)
    if longest <= 0:
        return []
    return [player_id for player_id, length in path_lengths.items() if length == longest]


def score_player(
    routes: Sequence[Route],
    permits: Sequence[Permit],
    longest_path_length: int,
    has_longest_path: bool,
) -> ScoreBreakdown:
    gained = 0
    lost = 0
    completed = 0
    for permit in permits:
        if is_permit_completed(permit, routes):
            gained += permit.points
            completed += 1
        else:
            lost += permit.points
    return ScoreBreakdown(
        route_points=calculate_route_points(routes),
        permit_points_gained=gained,
        permit_points_lost=lost,
        completed_permits=completed,
        longest_path_length=longest_path_length,
        longest_bonus=LONGEST_PATH_BONUS if has_longest_path else 0,
    )
