from __future__ import annotations

import numpy as np
import pytest

from conftest import cards, new_game
from permit_engine.core.errors import ErrorKind, GameError
from permit_engine.models import Card, Color
from permit_engine.supply import CardSupply


class InOrderRng:
    """Stands in for a generator whose shuffles keep the original order."""

    def permutation(self, n):
        return np.arange(n)


def make_supply(deck, face_up=(), discard=(), rng=None):
    registry = {card.id: card for card in deck}
    in_play = set(face_up) | set(discard)
    pile = [card.id for card in deck if card.id not in in_play]
    rng = rng if rng is not None else np.random.default_rng(0)
    return CardSupply(registry, pile, rng, discard_pile=discard, face_up=face_up)


class TestWildFlood:
    def test_redeal_clears_flood(self, players):
        deck = (
            cards(Color.BLUE, 8)
            + cards(Color.WILD, 3)
            + cards(Color.BLUE, 2, start=9)
            + cards(Color.BLUE, 5, start=11)
        )
        game = new_game(players, deck=deck)
        assert len(game.face_up) == 5
        assert sum(1 for card in game.face_up_cards if card.is_wild) < 3
        assert game.face_up == ("blue-11", "blue-12", "blue-13", "blue-14", "blue-15")
        assert sorted(game.discard_pile) == sorted(["wild-1", "wild-2", "wild-3", "blue-9", "blue-10"])

    def test_small_supply_terminates(self, players):
        game = new_game(players, deck=cards(Color.BLUE, 8) + cards(Color.WILD, 5))
        assert len(game.face_up) == 5
        assert sorted(game.face_up) == [f"wild-{i}" for i in range(1, 6)]
        assert game.draw_pile == ()

    def test_always_flooded_supply_terminates(self):
        deck = cards(Color.WILD, 5) + cards(Color.BLUE, 1)
        supply = make_supply(deck, face_up=[f"wild-{i}" for i in range(1, 6)], discard=["blue-1"])
        assert supply.draw_pile == []
        supply.replace_face_up_if_needed()
        assert len(supply.face_up) == 5
        assert supply.face_up_wild_count() >= 3
        everything = supply.face_up + supply.draw_pile + supply.discard_pile
        assert sorted(everything) == sorted(card.id for card in deck)

    def test_redeal_reshuffles_discards_when_pile_runs_out(self):
        deck = (
            cards(Color.WILD, 3)
            + cards(Color.BLUE, 2)
            + cards(Color.WILD, 3, start=4)
            + cards(Color.BLUE, 2, start=3)
            + cards(Color.BLUE, 3, start=5)
        )
        supply = make_supply(
            deck,
            face_up=["wild-1", "wild-2", "wild-3", "blue-1", "blue-2"],
            discard=["blue-5", "blue-6", "blue-7"],
            rng=InOrderRng(),
        )
        assert supply.draw_pile == ["wild-4", "wild-5", "wild-6", "blue-3", "blue-4"]

        supply.replace_face_up_if_needed()

        # the first redeal empties the pile and still shows three wilds
        assert supply.face_up == ["blue-5", "blue-6", "blue-7", "wild-1", "wild-2"]
        assert supply.face_up_wild_count() < 3
        assert supply.draw_pile == ["wild-3", "blue-1", "blue-2", "wild-4", "wild-5", "wild-6", "blue-3", "blue-4"]
        assert supply.discard_pile == []

    def test_flooded_redeal_recycles_discards_before_giving_up(self):
        deck = cards(Color.WILD, 3) + cards(Color.BLUE, 2) + cards(Color.WILD, 3, start=4) + cards(Color.BLUE, 2, start=3)
        supply = make_supply(deck, face_up=["wild-1", "wild-2", "wild-3", "blue-1", "blue-2"], rng=InOrderRng())
        supply.replace_face_up_if_needed()
        # every display from these ten cards floods; the loop ends on a repeat
        assert supply.face_up == ["wild-1", "wild-2", "wild-3", "blue-1", "blue-2"]
        assert supply.draw_pile == ["wild-4", "wild-5", "wild-6", "blue-3", "blue-4"]
        assert supply.discard_pile == []

    def test_legal_display_untouched(self):
        deck = cards(Color.WILD, 2) + cards(Color.BLUE, 10)
        supply = make_supply(deck, face_up=["wild-1", "wild-2", "blue-1", "blue-2", "blue-3"])
        supply.refill_face_up()
        assert supply.face_up == ["wild-1", "wild-2", "blue-1", "blue-2", "blue-3"]
        assert supply.discard_pile == []


class TestDraws:
    def test_take_from_pile_reshuffles(self):
        deck = cards(Color.BLUE, 3)
        supply = make_supply(deck, discard=["blue-1", "blue-2", "blue-3"])
        assert supply.draw_pile == []
        drawn = supply.take_from_pile()
        assert drawn in {"blue-1", "blue-2", "blue-3"}
        assert len(supply.draw_pile) == 2
        assert supply.discard_pile == []

    def test_take_from_empty(self):
        supply = make_supply([])
        with pytest.raises(GameError) as info:
            supply.take_from_pile()
        assert info.value.kind is ErrorKind.NO_CARDS_AVAILABLE

    def test_face_up_index_checked(self):
        supply = make_supply(cards(Color.BLUE, 2), face_up=["blue-1"])
        with pytest.raises(GameError) as info:
            supply.take_face_up(1)
        assert info.value.kind is ErrorKind.INVALID_FACE_UP_INDEX
        assert supply.take_face_up(0) == "blue-1"

    def test_can_draw_non_wild(self):
        supply = make_supply([Card(id="wild-1", color=Color.WILD)], face_up=["wild-1"])
        assert not supply.can_draw_from_pile
        assert not supply.can_draw_non_wild

    def test_registry_is_read_only(self):
        supply = make_supply(cards(Color.BLUE, 1))
        with pytest.raises(TypeError):
            supply.registry["blue-2"] = Card(id="blue-2", color=Color.BLUE)

    def test_unknown_card(self):
        supply = make_supply(cards(Color.BLUE, 1))
        with pytest.raises(GameError) as info:
            supply.card("red-1")
        assert info.value.kind is ErrorKind.CARD_NOT_FOUND
