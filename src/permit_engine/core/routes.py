"""
Route utilities shared by the game and the AI policies.

This module answers the card-level questions about a route: which cards may
pay for it, which combination of held cards would pay for it, and whether the
double-route rule lets a player take it at all.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from permit_engine.core.constants import SMALL_GAME_MAX_PLAYERS
from permit_engine.core.errors import ErrorKind
from permit_engine.models import Card, City, Color, Route


def cards_match_route(cards: Sequence[Card], route: Route) -> bool:
    """
    Check the colours of the cards offered for a route.

    Wild cards always match. On an ``ANY`` route the other cards must share
    a single colour; on a coloured route they must all be that colour.
    The number of cards is not checked here.

    Args:
        cards: Cards offered as payment, in any order
        route: Route to pay for

    Returns:
        Whether the colours are acceptable
    """
    colors: Set[Color] = {card.color for card in cards if not card.is_wild}
    if route.color is Color.ANY:
        return len(colors) <= 1
    return colors <= {route.color}


def find_cards_for_route(route: Route, hand_cards: Sequence[Card]) -> Optional[List[str]]:
    """
    Pick one combination of held cards that pays for the route.

    Coloured cards are preferred over wilds. For an ``ANY`` route the colour
    needing the fewest wilds wins, ties going to the colour seen first in the
    hand.

    :param route: The route to pay for.
    :type route: Route
    :param hand_cards: The cards in the player's hand.
    :type hand_cards: Sequence[Card]
    :return: Card ids to spend, or None if the hand cannot pay.
    :rtype: Optional[List[str]]
    """
    wilds: List[str] = [card.id for card in hand_cards if card.is_wild]
    by_color: Dict[Color, List[str]] = defaultdict(list)
    for card in hand_cards:
        if not card.is_wild:
            by_color[card.color].append(card.id)

    if route.color is Color.ANY:
        candidates: List[List[str]] = list(by_color.values())
    else:
        candidates = [by_color.get(route.color, [])]

    best: Optional[List[str]] = None
    for matching in candidates:
        if len(matching) + len(wilds) < route.length:
            continue
        selected = matching[:route.length]
        selected = selected + wilds[:route.length - len(selected)]
        if best is None or _wilds_used(selected, wilds) < _wilds_used(best, wilds):
            best = selected

    if best is None and len(wilds) >= route.length:
        best = wilds[:route.length]
    return best


def _wilds_used(selected: Sequence[str], wilds: Sequence[str]) -> int:
    return sum(1 for card_id in selected if card_id in wilds)


def count_usable_cards(route: Route, hand_cards: Sequence[Card]) -> int:
    """Largest number of held cards that could go towards the route."""
    wild_count = sum(1 for card in hand_cards if card.is_wild)
    counts: Dict[Color, int] = defaultdict(int)
    for card in hand_cards:
        if not card.is_wild:
            counts[card.color] += 1
    if route.color is Color.ANY:
        return max(counts.values(), default=0) + wild_count
    return counts.get(route.color, 0) + wild_count


def double_route_conflict(
    route: Route,
    partner: Optional[Route],
    player_id: str,
    player_count: int,
) -> Optional[ErrorKind]:
    """
    Return why the double-route rule forbids the claim, or None if it allows it.

    A player may never hold both routes of a pair. In games with three
    players or fewer, once either route of a pair is taken the other is
    closed to everyone.
    """
    if partner is None or partner.claimed_by is None:
        return None
    if partner.claimed_by == player_id:
        return ErrorKind.CANNOT_CLAIM_BOTH_DOUBLE_ROUTES
    if player_count <= SMALL_GAME_MAX_PLAYERS:
        return ErrorKind.DOUBLE_ROUTE_BLOCKED_IN_SMALL_GAME
    return None


def cities_of(routes: Iterable[Route]) -> Set[City]:
    cities: Set[City] = set()
    for route in routes:
        cities.update(route.cities)
    return cities


def segments_used(routes: Iterable[Route]) -> int:
    """
    Calculate total number of segments spent on a collection of routes.

    Args:
        routes: Iterable of Route objects

    Returns:
        Sum of route lengths
    """
    return sum(route.length for route in routes)


def city_pair(route: Route) -> Tuple[str, str]:
    """Order-independent key for the two cities a route joins."""
    first, second = sorted((route.city1.value, route.city2.value))
    return first, second
