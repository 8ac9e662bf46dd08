from __future__ import annotations

from dataclasses import replace

from conftest import cards, make_routes
from permit_engine.core.errors import ErrorKind
from permit_engine.core.routes import (
    cards_match_route,
    city_pair,
    count_usable_cards,
    double_route_conflict,
    find_cards_for_route,
)
from permit_engine.models import Card, City, Color, Route

ANY_THREE = Route(id=10, city1=City.DENVER, city2=City.OMAHA, length=3, color=Color.ANY)
RED_TWO = Route(id=11, city1=City.DENVER, city2=City.OMAHA, length=2, color=Color.RED)


class TestCardsMatchRoute:
    def test_colored_route(self):
        assert cards_match_route(cards(Color.RED, 2), RED_TWO)
        assert not cards_match_route(cards(Color.BLUE, 2), RED_TWO)
        assert cards_match_route(cards(Color.RED, 1) + cards(Color.WILD, 1), RED_TWO)

    def test_any_route_single_color(self):
        assert cards_match_route(cards(Color.GREEN, 3), ANY_THREE)
        assert cards_match_route(cards(Color.WILD, 3), ANY_THREE)
        assert not cards_match_route(cards(Color.GREEN, 2) + cards(Color.BLUE, 1), ANY_THREE)


class TestFindCards:
    def test_prefers_colored_cards(self):
        hand = cards(Color.WILD, 2) + cards(Color.RED, 3)
        assert find_cards_for_route(RED_TWO, hand) == ["red-1", "red-2"]

    def test_tops_up_with_wilds(self):
        hand = cards(Color.RED, 1) + cards(Color.WILD, 2)
        assert find_cards_for_route(RED_TWO, hand) == ["red-1", "wild-1"]

    def test_any_route_picks_fewest_wilds(self):
        hand = cards(Color.BLUE, 1) + cards(Color.GREEN, 3) + cards(Color.WILD, 2)
        assert find_cards_for_route(ANY_THREE, hand) == ["green-1", "green-2", "green-3"]

    def test_any_route_tie_uses_first_color(self):
        hand = cards(Color.BLUE, 2) + cards(Color.GREEN, 2) + cards(Color.WILD, 1)
        assert find_cards_for_route(ANY_THREE, hand) == ["blue-1", "blue-2", "wild-1"]

    def test_only_wilds(self):
        assert find_cards_for_route(ANY_THREE, cards(Color.WILD, 3)) == ["wild-1", "wild-2", "wild-3"]

    def test_cannot_pay(self):
        hand = cards(Color.BLUE, 1) + cards(Color.GREEN, 1)
        assert find_cards_for_route(RED_TWO, hand) is None
        assert find_cards_for_route(ANY_THREE, hand) is None

    def test_count_usable(self):
        hand = cards(Color.BLUE, 1) + cards(Color.GREEN, 2) + [Card(id="wild-1", color=Color.WILD)]
        assert count_usable_cards(ANY_THREE, hand) == 3
        assert count_usable_cards(RED_TWO, hand) == 1


class TestDoubleRouteConflict:
    def setup_method(self):
        routes = make_routes()
        self.red, self.green = routes[4], routes[5]

    def test_unclaimed_partner(self):
        assert double_route_conflict(self.green, self.red, "bob", 2) is None

    def test_no_partner(self):
        assert double_route_conflict(make_routes()[0], None, "bob", 2) is None

    def test_same_player(self):
        red = replace(self.red, claimed_by="alice")
        assert double_route_conflict(self.green, red, "alice", 5) is ErrorKind.CANNOT_CLAIM_BOTH_DOUBLE_ROUTES

    def test_small_and_large_games(self):
        red = replace(self.red, claimed_by="alice")
        assert double_route_conflict(self.green, red, "bob", 3) is ErrorKind.DOUBLE_ROUTE_BLOCKED_IN_SMALL_GAME
        assert double_route_conflict(self.green, red, "bob", 4) is None

    def test_city_pair_ignores_direction(self):
        flipped = Route(id=12, city1=City.OMAHA, city2=City.DENVER, length=1, color=Color.ANY)
        assert city_pair(flipped) == city_pair(ANY_THREE) == ("denver", "omaha")
