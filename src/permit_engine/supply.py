"""Card supply: draw pile, discard pile, face-up display and the card registry."""
from __future__ import annotations

import logging
from types import MappingProxyType
from typing import FrozenSet, Iterable, List, Mapping, Sequence, Set

import numpy as np

from permit_engine.core.constants import FACE_UP_COUNT, WILD_FLOOD_LIMIT
from permit_engine.core.errors import ErrorKind, GameError
from permit_engine.core.rng import shuffled
from permit_engine.models import Card

logger = logging.getLogger(__name__)


class CardSupply:
    """
    Every card that is not in a player's hand.

    The draw pile is ordered with the next card to draw first. The registry
    maps every card id dealt at the start of the game to its card and never
    changes afterwards.
    """

    def __init__(
        self,
        cards: Mapping[str, Card],
        draw_pile: Sequence[str],
        rng: np.random.Generator,
        discard_pile: Sequence[str] = (),
        face_up: Sequence[str] = (),
        face_up_capacity: int = FACE_UP_COUNT,
    ) -> None:
        self._cards = dict(cards)
        self.registry: Mapping[str, Card] = MappingProxyType(self._cards)
        self.draw_pile: List[str] = list(draw_pile)
        self.discard_pile: List[str] = list(discard_pile)
        self.face_up: List[str] = list(face_up)
        self.face_up_capacity = face_up_capacity
        self.rng = rng

    def card(self, card_id: str) -> Card:
        try:
            return self._cards[card_id]
        except KeyError:
            raise GameError(ErrorKind.CARD_NOT_FOUND, f"Unknown card {card_id!r}") from None

    def is_wild(self, card_id: str) -> bool:
        return self.card(card_id).is_wild

    @property
    def can_draw_from_pile(self) -> bool:
        """True if a pile draw would succeed, reshuffling the discards if needed."""
        return bool(self.draw_pile) or bool(self.discard_pile)

    @property
    def can_draw_non_wild(self) -> bool:
        return self.can_draw_from_pile or any(not self.is_wild(card_id) for card_id in self.face_up)

    def face_up_wild_count(self) -> int:
        return sum(1 for card_id in self.face_up if self.is_wild(card_id))

    def check_face_up_index(self, index: int) -> str:
        if not 0 <= index < len(self.face_up):
            raise GameError(ErrorKind.INVALID_FACE_UP_INDEX, f"No face-up card at index {index}")
        return self.face_up[index]

    def take_face_up(self, index: int) -> str:
        """Remove the face-up card at ``index``; the slot is refilled by ``refill_face_up``."""
        self.check_face_up_index(index)
        return self.face_up.pop(index)

    def take_from_pile(self) -> str:
        """
        Draw the top card of the draw pile.

        An empty draw pile is first replaced by the shuffled discard pile.

        :raises GameError: NO_CARDS_AVAILABLE if both piles are empty.
        """
        self._reshuffle_if_needed()
        if not self.draw_pile:
            raise GameError(ErrorKind.NO_CARDS_AVAILABLE)
        return self.draw_pile.pop(0)

    def discard(self, card_ids: Iterable[str]) -> None:
        self.discard_pile.extend(card_ids)

    def refill_face_up(self) -> None:
        """Fill the display up to capacity, then apply the wild-flood rule."""
        self._fill_face_up()
        self.replace_face_up_if_needed()

    def replace_face_up_if_needed(self) -> None:
        """
        Discard and redeal the display while it shows too many wilds.

        Redeals draw through the usual reshuffle of the discard pile. Stops
        as soon as the display is legal or when a display repeats one
        already discarded (a small supply can keep producing the same cards).
        """
        seen: Set[FrozenSet[str]] = set()
        while self.face_up_wild_count() >= WILD_FLOOD_LIMIT:
            current = frozenset(self.face_up)
            if current in seen:
                logger.warning("Face-up display repeated while replacing wilds; keeping %s", sorted(current))
                return
            seen.add(current)

            logger.debug("Replacing face-up display with %d wilds", self.face_up_wild_count())
            self.discard(self.face_up)
            self.face_up = []
            self._fill_face_up()

    def _fill_face_up(self) -> None:
        while len(self.face_up) < self.face_up_capacity:
            self._reshuffle_if_needed()
            if not self.draw_pile:
                break
            self.face_up.append(self.draw_pile.pop(0))

    def _reshuffle_if_needed(self) -> None:
        if not self.draw_pile and self.discard_pile:
            logger.debug("Reshuffling %d discarded cards into the draw pile", len(self.discard_pile))
            self.draw_pile = shuffled(self.rng, self.discard_pile)
            self.discard_pile = []
