from __future__ import annotations

from typing import List, Sequence

import pytest

from permit_engine.game import Game
from permit_engine.map import GameMap
from permit_engine.models import Card, City, Color, Permit, Player, Route


def make_routes() -> List[Route]:
    return [
        Route(id=1, city1=City.VANCOUVER, city2=City.CALGARY, length=1, color=Color.ANY),
        Route(id=2, city1=City.CALGARY, city2=City.WINNIPEG, length=1, color=Color.ANY),
        Route(id=3, city1=City.WINNIPEG, city2=City.HELENA, length=1, color=Color.ANY),
        Route(id=4, city1=City.VANCOUVER, city2=City.HELENA, length=2, color=Color.BLUE),
        Route(id=5, city1=City.CALGARY, city2=City.HELENA, length=2, color=Color.RED, double_route_partner_id=6),
        Route(id=6, city1=City.CALGARY, city2=City.HELENA, length=2, color=Color.GREEN, double_route_partner_id=5),
    ]


def make_permits() -> List[Permit]:
    return [
        Permit(id=1, city1=City.VANCOUVER, city2=City.CALGARY, points=3),
        Permit(id=2, city1=City.CALGARY, city2=City.WINNIPEG, points=3),
        Permit(id=3, city1=City.WINNIPEG, city2=City.HELENA, points=3),
        Permit(id=4, city1=City.VANCOUVER, city2=City.WINNIPEG, points=5),
        Permit(id=5, city1=City.CALGARY, city2=City.HELENA, points=5),
        Permit(id=6, city1=City.VANCOUVER, city2=City.HELENA, points=10),
    ]


def cards(color: Color, count: int, start: int = 1) -> List[Card]:
    return [Card(id=f"{color.value}-{i}", color=color) for i in range(start, start + count)]


def simple_deck() -> List[Card]:
    return cards(Color.BLUE, 30) + cards(Color.RED, 30) + cards(Color.WILD, 4)


def make_players(*names: str) -> List[Player]:
    return [Player(id=name, name=name.title()) for name in names]


def new_game(
    players: Sequence[Player],
    deck: Sequence[Card] | None = None,
    segments: int = 45,
    rng: int = 7,
    game_map: GameMap | None = None,
) -> Game:
    return Game(
        players,
        game_map if game_map is not None else GameMap.build(make_routes(), make_permits()),
        deck=deck if deck is not None else simple_deck(),
        permit_order=make_permits(),
        segments_per_player=segments,
        rng=rng,
        clock=lambda: 1_700_000_000.0,
    )


def finish_setup(game: Game) -> Game:
    """Every player keeps the first two permits dealt."""
    for hand in game.hands:
        game.select_initial_permits(hand.player_id, [permit.id for permit in hand.permits[:2]])
    return game


@pytest.fixture
def toy_map() -> GameMap:
    return GameMap.build(make_routes(), make_permits())


@pytest.fixture
def players() -> List[Player]:
    return make_players("alice", "bob")


@pytest.fixture
def game(players) -> Game:
    return new_game(players)


@pytest.fixture
def ready_game(players) -> Game:
    """Two players past setup, alice to play."""
    return finish_setup(new_game(players))
