"""Game state and rules for the route-building game."""
from __future__ import annotations

import logging
import time
import uuid
from collections import Counter, deque
from dataclasses import replace
from typing import Callable, Deque, Dict, List, Mapping, Optional, Sequence, Tuple, Type

from permit_engine.core.constants import (
    FINAL_ROUND_SEGMENT_THRESHOLD,
    INITIAL_HAND_SIZE,
    INITIAL_PERMIT_COUNT,
    MAX_LOG_ENTRIES,
    MAX_PLAYERS,
    MIN_INITIAL_PERMITS_TO_KEEP,
    MIN_PLAYERS,
    PERMIT_DRAW_COUNT,
    TOTAL_SEGMENTS,
    route_points,
)
from permit_engine.core.errors import ErrorKind, GameError
from permit_engine.core.rng import RandomSource, make_rng, shuffled
from permit_engine.core.routes import cards_match_route, count_usable_cards, double_route_conflict, find_cards_for_route
from permit_engine.core.scoring import (
    ScoreBreakdown,
    calculate_longest_path,
    is_permit_completed,
    players_with_longest_path,
    score_player,
)
from permit_engine.map import GameMap
from permit_engine.models import Card, Permit, Player, PlayerHand, Route, standard_deck
from permit_engine.states import (
    AlreadyClaimed,
    AwaitingAction,
    CardsDrawn,
    ChoosingAction,
    ChoosingPermits,
    Claimability,
    Claimable,
    Complete,
    Decision,
    DoubleRouteBlocked,
    DrawingSecondCard,
    DrawnCard,
    DrawPile,
    DrawSource,
    FaceUp,
    GameStatus,
    LogEntry,
    NeedsMoreCards,
    NeedsMoreSegments,
    PermitsKept,
    RouteClaimed,
    Setup,
    TurnPhase,
    describe,
)
from permit_engine.supply import CardSupply

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class Game:
    """
    One game from the initial deal to final scoring.

    The game owns all of its state and is changed only through the action
    methods (``select_initial_permits``, ``draw_card``, ``claim_route``,
    ``draw_permits``, ``keep_permits``). Each action either applies fully or
    raises ``GameError`` leaving the game untouched. A game must not be shared
    between threads without external locking.

    :param players: Players in turn order (2 to 5).
    :param game_map: Routes and permits to play with; the standard map by default.
    :param deck: Cards in dealing order; the shuffled standard deck by default.
    :param permit_order: Permits in dealing order; the shuffled map permits by default.
    :param segments_per_player: Build budget each player starts with.
    :param rng: Random source (generator or seed) for shuffles.
    :param clock: Returns the current time as a POSIX timestamp.
    """

    def __init__(
        self,
        players: Sequence[Player],
        game_map: Optional[GameMap] = None,
        *,
        deck: Optional[Sequence[Card]] = None,
        permit_order: Optional[Sequence[Permit]] = None,
        segments_per_player: int = TOTAL_SEGMENTS,
        rng: RandomSource = None,
        game_id: Optional[str] = None,
        clock: Clock = time.time,
    ) -> None:
        if len(players) < MIN_PLAYERS:
            raise GameError(ErrorKind.NOT_ENOUGH_PLAYERS, f"At least {MIN_PLAYERS} players are needed")
        if len(players) > MAX_PLAYERS:
            raise GameError(ErrorKind.TOO_MANY_PLAYERS, f"At most {MAX_PLAYERS} players can play")
        if len({player.id for player in players}) != len(players):
            raise GameError(ErrorKind.DUPLICATE_PLAYER, "Player ids must be unique")

        self._rng = make_rng(rng)
        self._clock = clock
        game_map = game_map if game_map is not None else GameMap.standard()

        all_cards: List[Card] = list(deck) if deck is not None else shuffled(self._rng, standard_deck())
        registry: Dict[str, Card] = {card.id: card for card in all_cards}
        if len(registry) != len(all_cards):
            raise GameError(ErrorKind.INVALID_CATALOG, "Card ids must be unique")
        all_permits: List[Permit] = (
            list(permit_order) if permit_order is not None else shuffled(self._rng, list(game_map.permits))
        )

        self.id: str = game_id or str(uuid.uuid4())
        self.started: float = clock()
        self.ended: Optional[float] = None

        remaining: List[str] = [card.id for card in all_cards]
        self._hands: List[PlayerHand] = []
        for player in players:
            dealt, remaining = remaining[:INITIAL_HAND_SIZE], remaining[INITIAL_HAND_SIZE:]
            permits, all_permits = all_permits[:INITIAL_PERMIT_COUNT], all_permits[INITIAL_PERMIT_COUNT:]
            self._hands.append(PlayerHand(
                player=player,
                cards=tuple(dealt),
                permits=tuple(permits),
                remaining_segments=segments_per_player,
            ))

        self._supply = CardSupply(registry, remaining, self._rng)
        self._supply.refill_face_up()
        self._routes: List[Route] = list(game_map.routes)
        self._permit_deck: List[Permit] = all_permits

        self.final_round_triggered_by: Optional[str] = None
        self.turns_remaining_in_final_round: Optional[int] = None
        self._log: Deque[LogEntry] = deque(maxlen=MAX_LOG_ENTRIES)
        self.status: GameStatus = Setup(pending=tuple(player.id for player in players))

        logger.info("Game %s created for %d players", self.id, len(players))

    @classmethod
    def restore(
        cls,
        *,
        game_id: str,
        started: float,
        ended: Optional[float],
        status: GameStatus,
        cards: Mapping[str, Card],
        draw_pile: Sequence[str],
        discard_pile: Sequence[str],
        face_up: Sequence[str],
        hands: Sequence[PlayerHand],
        routes: Sequence[Route],
        permit_deck: Sequence[Permit],
        final_round_triggered_by: Optional[str],
        turns_remaining_in_final_round: Optional[int],
        log: Sequence[LogEntry],
        rng: RandomSource = None,
        clock: Clock = time.time,
    ) -> 'Game':
        """Rebuild a game from previously captured state, without dealing."""
        game = cls.__new__(cls)
        game._rng = make_rng(rng)
        game._clock = clock
        game.id = game_id
        game.started = started
        game.ended = ended
        game._hands = list(hands)
        game._supply = CardSupply(cards, draw_pile, game._rng, discard_pile=discard_pile, face_up=face_up)
        game._routes = list(routes)
        game._permit_deck = list(permit_deck)
        game.final_round_triggered_by = final_round_triggered_by
        game.turns_remaining_in_final_round = turns_remaining_in_final_round
        game._log = deque(log, maxlen=MAX_LOG_ENTRIES)
        game.status = status
        return game

    def _snapshot(self) -> Dict[str, object]:
        """Every piece of game state, keyed like the arguments of ``restore``."""
        return {
            "game_id": self.id,
            "started": self.started,
            "ended": self.ended,
            "status": self.status,
            "cards": dict(self._supply.registry),
            "draw_pile": tuple(self._supply.draw_pile),
            "discard_pile": tuple(self._supply.discard_pile),
            "face_up": tuple(self._supply.face_up),
            "hands": tuple(self._hands),
            "routes": tuple(self._routes),
            "permit_deck": tuple(self._permit_deck),
            "final_round_triggered_by": self.final_round_triggered_by,
            "turns_remaining_in_final_round": self.turns_remaining_in_final_round,
            "log": tuple(self._log),
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Game):
            return NotImplemented
        return self._snapshot() == other._snapshot()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Game(id={self.id!r}, {describe(self.status)})"

    # ------------------------------------------------------------------
    # Read-only views

    @property
    def cards(self) -> Mapping[str, Card]:
        return self._supply.registry

    @property
    def draw_pile(self) -> Tuple[str, ...]:
        return tuple(self._supply.draw_pile)

    @property
    def discard_pile(self) -> Tuple[str, ...]:
        return tuple(self._supply.discard_pile)

    @property
    def face_up(self) -> Tuple[str, ...]:
        return tuple(self._supply.face_up)

    @property
    def face_up_cards(self) -> Tuple[Card, ...]:
        return tuple(self._supply.card(card_id) for card_id in self._supply.face_up)

    @property
    def hands(self) -> Tuple[PlayerHand, ...]:
        return tuple(self._hands)

    @property
    def routes(self) -> Tuple[Route, ...]:
        return tuple(self._routes)

    @property
    def permit_deck(self) -> Tuple[Permit, ...]:
        return tuple(self._permit_deck)

    @property
    def log(self) -> Tuple[LogEntry, ...]:
        return tuple(self._log)

    @property
    def player_ids(self) -> Tuple[str, ...]:
        return tuple(hand.player_id for hand in self._hands)

    @property
    def is_complete(self) -> bool:
        return isinstance(self.status, Complete)

    @property
    def is_final_round(self) -> bool:
        return self.final_round_triggered_by is not None

    @property
    def current_player_id(self) -> Optional[str]:
        if isinstance(self.status, AwaitingAction):
            return self.status.player_id
        return None

    @property
    def current_phase(self) -> Optional[TurnPhase]:
        if isinstance(self.status, AwaitingAction):
            return self.status.phase
        return None

    @property
    def winner_id(self) -> Optional[str]:
        if isinstance(self.status, Complete):
            return self.status.winner_id
        return None

    @property
    def can_draw_from_pile(self) -> bool:
        return self._supply.can_draw_from_pile

    @property
    def can_draw_any_card(self) -> bool:
        return self._supply.can_draw_from_pile or bool(self._supply.face_up)

    def card(self, card_id: str) -> Card:
        return self._supply.card(card_id)

    def hand(self, player_id: str) -> PlayerHand:
        return self._hands[self._hand_index(player_id)]

    def route(self, route_id: int) -> Route:
        return self._routes[self._route_index(route_id)]

    def claimed_routes(self, player_id: str) -> List[Route]:
        self._hand_index(player_id)
        return [route for route in self._routes if route.claimed_by == player_id]

    def double_route_partner(self, route: Route) -> Optional[Route]:
        if route.double_route_partner_id is None:
            return None
        for candidate in self._routes:
            if candidate.id == route.double_route_partner_id:
                return candidate
        return None

    # ------------------------------------------------------------------
    # Route queries

    def claimable_routes(self, player_id: str) -> List[Tuple[Route, Tuple[str, ...]]]:
        """
        Return every route the player could claim right now.

        Each route comes with one combination of held cards that pays for it.
        The player's turn is not checked.
        """
        results: List[Tuple[Route, Tuple[str, ...]]] = []
        for route in self._routes:
            status = self.claimability(route.id, player_id)
            if isinstance(status, Claimable):
                results.append((route, status.card_ids))
        return results

    def claimability(self, route_id: int, player_id: str) -> Claimability:
        """
        Classify whether the player can claim the route, and why not.

        :param route_id: The route to classify.
        :type route_id: int
        :param player_id: The player who would claim it.
        :type player_id: str
        :return: One of Claimable, AlreadyClaimed, DoubleRouteBlocked,
            NeedsMoreSegments or NeedsMoreCards.
        :rtype: Claimability
        """
        route = self.route(route_id)
        hand = self.hand(player_id)
        if route.is_claimed:
            return AlreadyClaimed()
        if double_route_conflict(route, self.double_route_partner(route), player_id, len(self._hands)) is not None:
            return DoubleRouteBlocked()
        if hand.remaining_segments < route.length:
            return NeedsMoreSegments(has=hand.remaining_segments, need=route.length)

        hand_cards = [self._supply.card(card_id) for card_id in hand.cards]
        card_ids = find_cards_for_route(route, hand_cards)
        if card_ids is not None:
            return Claimable(card_ids=tuple(card_ids))
        return NeedsMoreCards(
            route_color=route.color,
            have=count_usable_cards(route, hand_cards),
            need=route.length,
        )

    # ------------------------------------------------------------------
    # Scoring queries

    def is_permit_completed(self, permit: Permit, player_id: str) -> bool:
        return is_permit_completed(permit, self.claimed_routes(player_id))

    def longest_continuous_path(self, player_id: str) -> int:
        return calculate_longest_path(self.claimed_routes(player_id))

    def final_scores(self) -> Dict[str, ScoreBreakdown]:
        """
        Score every player as if the game ended now.

        Route points come from claimed routes, each held permit adds or
        subtracts its value, and everyone tied for the longest path (when it
        is longer than zero) gets the bonus.
        """
        path_lengths = {hand.player_id: self.longest_continuous_path(hand.player_id) for hand in self._hands}
        longest = players_with_longest_path(path_lengths)
        return {
            hand.player_id: score_player(
                self.claimed_routes(hand.player_id),
                hand.permits,
                path_lengths[hand.player_id],
                hand.player_id in longest,
            )
            for hand in self._hands
        }

    # ------------------------------------------------------------------
    # Actions

    def select_initial_permits(self, player_id: str, permit_ids: Sequence[int]) -> None:
        """
        Keep some of the permits dealt at the start; the rest go back under the deck.

        Players pick in any order. Once the last pending player has picked,
        the first player in turn order starts.

        :param player_id: The player making the selection.
        :param permit_ids: Ids of the dealt permits to keep, at least two.
        :raises GameError: If not in setup, the player has already picked or
            does not exist, or the selection is invalid.
        """
        if not isinstance(self.status, Setup):
            raise GameError(ErrorKind.NOT_IN_SETUP_PHASE)
        index = self._hand_index(player_id)
        if player_id not in self.status.pending:
            raise GameError(ErrorKind.WRONG_PLAYER, f"Player {player_id} has already selected permits")

        dealt = self._hands[index].permits
        chosen = set(permit_ids)
        if len(chosen) < min(MIN_INITIAL_PERMITS_TO_KEEP, len(dealt)):
            raise GameError(ErrorKind.MUST_KEEP_AT_LEAST_TWO_INITIAL_PERMITS)
        if not chosen <= {permit.id for permit in dealt}:
            raise GameError(ErrorKind.INVALID_PERMIT_SELECTION)

        kept = tuple(permit for permit in dealt if permit.id in chosen)
        returned = [permit for permit in dealt if permit.id not in chosen]
        self._hands[index] = replace(self._hands[index], permits=kept)
        self._permit_deck.extend(returned)

        pending = tuple(pid for pid in self.status.pending if pid != player_id)
        if pending:
            self.status = Setup(pending=pending)
        else:
            self.status = AwaitingAction(player_id=self._hands[0].player_id, phase=ChoosingAction())
            logger.info("Game %s started, %s to play", self.id, self._hands[0].player_id)

    def draw_card(self, source: DrawSource, player_id: Optional[str] = None) -> Optional[LogEntry]:
        """
        Draw a card from the draw pile or the face-up display.

        The first draw of a turn ends the turn straight away if it takes a
        face-up wild or if no second draw would be possible. A second draw
        may not take a face-up wild.

        :param source: ``DrawPile()`` or ``FaceUp(index)``.
        :param player_id: If given, must be the player whose turn it is.
        :return: The log entry when the turn ended, None while a second card is due.
        :rtype: Optional[LogEntry]
        """
        status = self._require_phase(player_id, (ChoosingAction, DrawingSecondCard), ErrorKind.NOT_WAITING_FOR_PLAYER_TO_ACT)
        current = status.player_id
        self._check_draw_source(source, second_draw=isinstance(status.phase, DrawingSecondCard))

        if isinstance(source, FaceUp):
            card_id = self._supply.take_face_up(source.index)
        else:
            card_id = self._supply.take_from_pile()
        self._add_card(current, card_id)
        self._supply.refill_face_up()
        drawn = DrawnCard(card_id=card_id, source=source)

        if isinstance(status.phase, DrawingSecondCard):
            first = DrawnCard(card_id=status.phase.first_card_id, source=status.phase.first_source)
            return self._finish_turn(current, CardsDrawn(draws=(first, drawn)))

        took_face_up_wild = isinstance(source, FaceUp) and self._supply.is_wild(card_id)
        if took_face_up_wild or not self._supply.can_draw_non_wild:
            return self._finish_turn(current, CardsDrawn(draws=(drawn,)))

        self.status = AwaitingAction(
            player_id=current,
            phase=DrawingSecondCard(first_card_id=card_id, first_source=source),
        )
        return None

    def claim_route(self, route_id: int, card_ids: Sequence[str], player_id: Optional[str] = None) -> LogEntry:
        """
        Claim a route by spending cards from the current player's hand.

        :param route_id: The route to claim.
        :param card_ids: Cards to spend, as many as the route is long, in any order.
        :param player_id: If given, must be the player whose turn it is.
        :return: The log entry for the claim.
        :rtype: LogEntry
        :raises GameError: If the route is taken or blocked, or the cards or
            segments do not pay for it.
        """
        status = self._require_phase(player_id, (ChoosingAction,), ErrorKind.NOT_IN_CHOOSING_ACTION_PHASE)
        current = status.player_id
        route_index = self._route_index(route_id)
        route = self._routes[route_index]

        if route.is_claimed:
            raise GameError(ErrorKind.ROUTE_ALREADY_CLAIMED)
        conflict = double_route_conflict(route, self.double_route_partner(route), current, len(self._hands))
        if conflict is not None:
            raise GameError(conflict)
        if len(card_ids) != route.length:
            raise GameError(
                ErrorKind.INSUFFICIENT_CARDS,
                f"Route {route_id} needs {route.length} cards, got {len(card_ids)}",
            )

        hand_index = self._hand_index(current)
        hand = self._hands[hand_index]
        spent = Counter(card_ids)
        held = Counter(hand.cards)
        if any(held[card_id] < count for card_id, count in spent.items()):
            raise GameError(ErrorKind.CARD_NOT_IN_HAND)
        if not cards_match_route([self._supply.card(card_id) for card_id in card_ids], route):
            raise GameError(ErrorKind.INVALID_CARD_COLOR)
        if hand.remaining_segments < route.length:
            raise GameError(ErrorKind.NOT_ENOUGH_SEGMENTS)

        remaining_cards = list(hand.cards)
        for card_id in card_ids:
            remaining_cards.remove(card_id)
        points = route_points(route.length)
        self._routes[route_index] = replace(route, claimed_by=current)
        self._hands[hand_index] = replace(
            hand,
            cards=tuple(remaining_cards),
            remaining_segments=hand.remaining_segments - route.length,
            score=hand.score + points,
        )
        self._supply.discard(card_ids)
        logger.debug("Player %s claimed route %d for %d points", current, route_id, points)

        self._check_final_round_trigger(current)
        return self._finish_turn(current, RouteClaimed(route_id=route_id, card_ids=tuple(card_ids), points=points))

    def draw_permits(self, player_id: Optional[str] = None) -> Tuple[Permit, ...]:
        """
        Draw up to three permits from the top of the deck.

        The player must then call ``keep_permits`` to finish the turn.

        :return: The drawn permits.
        """
        status = self._require_phase(player_id, (ChoosingAction,), ErrorKind.NOT_IN_CHOOSING_ACTION_PHASE)
        if not self._permit_deck:
            raise GameError(ErrorKind.NO_PERMITS_AVAILABLE)

        drawn = tuple(self._permit_deck[:PERMIT_DRAW_COUNT])
        del self._permit_deck[:PERMIT_DRAW_COUNT]
        self.status = AwaitingAction(player_id=status.player_id, phase=ChoosingPermits(drawn=drawn))
        return drawn

    def keep_permits(self, permit_ids: Sequence[int], player_id: Optional[str] = None) -> LogEntry:
        """
        Keep at least one of the permits just drawn; the others go under the deck.

        :param permit_ids: Ids of the drawn permits to keep.
        :param player_id: If given, must be the player whose turn it is.
        :return: The log entry for the turn.
        :rtype: LogEntry
        """
        status = self._require_phase(player_id, (ChoosingPermits,), ErrorKind.NOT_IN_CHOOSING_PERMITS_PHASE)
        drawn = status.phase.drawn
        chosen = set(permit_ids)
        if not chosen:
            raise GameError(ErrorKind.MUST_KEEP_AT_LEAST_ONE_PERMIT)
        if not chosen <= {permit.id for permit in drawn}:
            raise GameError(ErrorKind.INVALID_PERMIT_SELECTION)

        kept = tuple(permit for permit in drawn if permit.id in chosen)
        returned = [permit for permit in drawn if permit.id not in chosen]
        hand_index = self._hand_index(status.player_id)
        hand = self._hands[hand_index]
        self._hands[hand_index] = replace(hand, permits=hand.permits + kept)
        self._permit_deck.extend(returned)

        decision = PermitsKept(permit_ids=tuple(permit.id for permit in kept))
        return self._finish_turn(status.player_id, decision)

    # ------------------------------------------------------------------
    # Turn handling

    def _require_phase(
        self,
        player_id: Optional[str],
        phases: Tuple[Type, ...],
        error: ErrorKind,
    ) -> AwaitingAction:
        if self.is_complete:
            raise GameError(ErrorKind.GAME_IS_COMPLETE)
        status = self.status
        if not isinstance(status, AwaitingAction) or not isinstance(status.phase, phases):
            raise GameError(error)
        if player_id is not None and player_id != status.player_id:
            raise GameError(ErrorKind.WRONG_PLAYER, f"It is {status.player_id}'s turn, not {player_id}'s")
        return status

    def _check_draw_source(self, source: DrawSource, second_draw: bool) -> None:
        if isinstance(source, FaceUp):
            card_id = self._supply.check_face_up_index(source.index)
            if second_draw and self._supply.is_wild(card_id):
                raise GameError(ErrorKind.CANNOT_DRAW_WILD_AS_SECOND_CARD)
        elif isinstance(source, DrawPile):
            if not self._supply.can_draw_from_pile:
                raise GameError(ErrorKind.NO_CARDS_AVAILABLE)
        else:
            raise TypeError(f"Unknown draw source {source!r}")

    def _add_card(self, player_id: str, card_id: str) -> None:
        index = self._hand_index(player_id)
        hand = self._hands[index]
        self._hands[index] = replace(hand, cards=hand.cards + (card_id,))

    def _check_final_round_trigger(self, player_id: str) -> None:
        if self.final_round_triggered_by is not None:
            return
        if self.hand(player_id).remaining_segments <= FINAL_ROUND_SEGMENT_THRESHOLD:
            self.final_round_triggered_by = player_id
            # the triggering turn itself uses up one of these
            self.turns_remaining_in_final_round = len(self._hands) + 1
            logger.info("Final round triggered by %s", player_id)

    def _finish_turn(self, player_id: str, decision: Decision) -> LogEntry:
        entry = LogEntry(player_id=player_id, decision=decision, timestamp=self._clock())
        self._log.append(entry)
        self._advance_to_next_player(player_id)
        return entry

    def _advance_to_next_player(self, player_id: str) -> None:
        self._supply.refill_face_up()

        if self.turns_remaining_in_final_round is not None:
            self.turns_remaining_in_final_round -= 1
            if self.turns_remaining_in_final_round <= 0:
                self._end_game()
                return

        next_index = (self._hand_index(player_id) + 1) % len(self._hands)
        self.status = AwaitingAction(player_id=self._hands[next_index].player_id, phase=ChoosingAction())

    def _end_game(self) -> None:
        scores = self.final_scores()
        for index, hand in enumerate(self._hands):
            breakdown = scores[hand.player_id]
            delta = breakdown.permit_points_gained - breakdown.permit_points_lost + breakdown.longest_bonus
            self._hands[index] = replace(hand, score=hand.score + delta)

        # highest score, then most completed permits, then earliest seat
        winner = max(
            range(len(self._hands)),
            key=lambda i: (self._hands[i].score, scores[self._hands[i].player_id].completed_permits, -i),
        )
        self.ended = self._clock()
        self.status = Complete(winner_id=self._hands[winner].player_id)
        logger.info("Game %s complete, %s wins with %d points", self.id, self._hands[winner].player_id, self._hands[winner].score)

    # ------------------------------------------------------------------
    # Lookups

    def _hand_index(self, player_id: str) -> int:
        for index, hand in enumerate(self._hands):
            if hand.player_id == player_id:
                return index
        raise GameError(ErrorKind.PLAYER_NOT_FOUND, f"Unknown player {player_id!r}")

    def _route_index(self, route_id: int) -> int:
        for index, route in enumerate(self._routes):
            if route.id == route_id:
                return index
        raise GameError(ErrorKind.ROUTE_NOT_FOUND, f"Unknown route {route_id!r}")
