"""Shared core utilities for the permit engine."""

from permit_engine.core.constants import LONGEST_PATH_BONUS, ROUTE_POINTS, TOTAL_SEGMENTS, route_points
from permit_engine.core.errors import ErrorKind, GameError
from permit_engine.core.graph import build_connectivity_graph, build_route_graph, load_permits, load_routes
from permit_engine.core.rng import make_rng
from permit_engine.core.routes import cards_match_route, count_usable_cards, double_route_conflict, find_cards_for_route
from permit_engine.core.scoring import ScoreBreakdown, calculate_longest_path, calculate_route_points, is_permit_completed, score_player

__all__ = [
    "LONGEST_PATH_BONUS",
    "ROUTE_POINTS",
    "TOTAL_SEGMENTS",
    "route_points",
    "ErrorKind",
    "GameError",
    "build_connectivity_graph",
    "build_route_graph",
    "load_permits",
    "load_routes",
    "make_rng",
    "cards_match_route",
    "count_usable_cards",
    "double_route_conflict",
    "find_cards_for_route",
    "ScoreBreakdown",
    "calculate_longest_path",
    "calculate_route_points",
    "is_permit_completed",
    "score_player",
]
