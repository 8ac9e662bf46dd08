from __future__ import annotations

import json

import pytest

from conftest import cards, new_game
from permit_engine import serialization
from permit_engine.core.errors import ErrorKind, GameError
from permit_engine.game import Game
from permit_engine.models import Color
from permit_engine.states import ChoosingPermits, DrawingSecondCard, DrawPile, FaceUp


def round_trip(game: Game) -> Game:
    return serialization.loads(serialization.dumps(game))


class TestRoundTrip:
    def test_setup(self, game):
        assert round_trip(game) == game

    def test_mid_draw(self, ready_game):
        ready_game.draw_card(FaceUp(1))
        restored = round_trip(ready_game)
        assert restored == ready_game
        assert restored.current_phase == DrawingSecondCard(first_card_id="blue-10", first_source=FaceUp(1))

    def test_choosing_permits(self, ready_game):
        ready_game.draw_permits()
        restored = round_trip(ready_game)
        assert isinstance(restored.current_phase, ChoosingPermits)
        assert restored == ready_game

    def test_complete_game(self, players):
        game = new_game(players, deck=cards(Color.BLUE, 60), segments=3)
        game.select_initial_permits("alice", [1, 2])
        game.select_initial_permits("bob", [4, 5])
        game.claim_route(1, ["blue-1"])
        game.claim_route(2, ["blue-5"])
        game.claim_route(3, ["blue-2"])
        restored = round_trip(game)
        assert restored == game
        assert restored.winner_id == "alice"
        assert [entry.decision for entry in restored.log] == [entry.decision for entry in game.log]

    def test_restored_game_keeps_playing(self, ready_game):
        restored = round_trip(ready_game)
        restored.draw_card(DrawPile())
        ready_game.draw_card(DrawPile())
        assert restored == ready_game

    def test_games_differ(self, ready_game, game):
        assert ready_game != game


class TestFormat:
    def test_variants_are_tagged(self, ready_game):
        ready_game.draw_card(DrawPile())
        data = json.loads(serialization.dumps(ready_game, indent=2))
        assert data["status"]["type"] == "awaiting_action"
        assert data["status"]["phase"]["type"] == "drawing_second_card"
        assert data["status"]["phase"]["first_source"] == {"type": "draw_pile"}

    def test_malformed(self, ready_game):
        data = serialization.game_to_dict(ready_game)
        del data["hands"]
        with pytest.raises(GameError) as info:
            serialization.game_from_dict(data)
        assert info.value.kind is ErrorKind.INVALID_CATALOG

    def test_unknown_variant(self, ready_game):
        data = serialization.game_to_dict(ready_game)
        data["status"] = {"type": "paused"}
        with pytest.raises(GameError) as info:
            serialization.game_from_dict(data)
        assert info.value.kind is ErrorKind.INVALID_CATALOG
