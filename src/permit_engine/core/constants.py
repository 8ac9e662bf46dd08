"""
Rule constants shared across the engine.

This module defines the fixed numbers of the game: the build budget each
player starts with, dealing sizes, the final-round threshold and the points
awarded for claiming a route of a given length.
"""
from __future__ import annotations

from typing import Dict

# Build segments each player starts with
TOTAL_SEGMENTS: int = 45

MIN_PLAYERS: int = 2
MAX_PLAYERS: int = 5

INITIAL_HAND_SIZE: int = 4
FACE_UP_COUNT: int = 5
INITIAL_PERMIT_COUNT: int = 3
MIN_INITIAL_PERMITS_TO_KEEP: int = 2
PERMIT_DRAW_COUNT: int = 3

# The final round is armed once a player holds this many segments or fewer
FINAL_ROUND_SEGMENT_THRESHOLD: int = 2

# Oldest log entries are evicted past this many
MAX_LOG_ENTRIES: int = 100

# A face-up display holding this many wilds is discarded and redealt
WILD_FLOOD_LIMIT: int = 3

LONGEST_PATH_BONUS: int = 10

# Games with this many players or fewer may only use one route of a double pair
SMALL_GAME_MAX_PLAYERS: int = 3

REGULAR_CARDS_PER_COLOR: int = 12
WILD_CARD_COUNT: int = 14

ROUTE_POINTS: Dict[int, int] = {
    1: 1,
    2: 2,
    3: 4,
    4: 7,
    5: 10,
    6: 15,
}


def route_points(length: int) -> int:
    """
    Points awarded for claiming a route of the given length.

    Args:
        length: Number of segments in the route (1-6)

    Returns:
        Points for that length, or 0 for any length outside the table
    """
    return ROUTE_POINTS.get(length, 0)
