"""Heuristic computer opponents.

A policy only reads the game and returns an action; the caller submits it
through ``apply_action`` exactly like a human player's move.
"""
from __future__ import annotations

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Set, Tuple

import networkx as nx

from permit_engine.actions import (
    Action,
    ClaimRoute,
    DrawCard,
    DrawPermits,
    KeepPermits,
    SelectInitialPermits,
    apply_action,
)
from permit_engine.core.constants import MIN_INITIAL_PERMITS_TO_KEEP, SMALL_GAME_MAX_PLAYERS, route_points
from permit_engine.core.errors import ErrorKind, GameError
from permit_engine.core.graph import build_route_graph
from permit_engine.core.rng import RandomSource, choice, make_rng
from permit_engine.core.routes import cities_of
from permit_engine.core.scoring import is_permit_completed
from permit_engine.game import Game
from permit_engine.models import City, Color, Permit, Route
from permit_engine.states import (
    AwaitingAction,
    ChoosingAction,
    ChoosingPermits,
    DrawingSecondCard,
    DrawPile,
    FaceUp,
    LogEntry,
    Setup,
)

logger = logging.getLogger(__name__)

ScoredRoute = Tuple[Route, Tuple[str, ...], float]


class Difficulty(enum.Enum):
    EASY = 'easy'
    MEDIUM = 'medium'
    HARD = 'hard'


@dataclass(frozen=True)
class AIConfig:
    """Tunable weights and thresholds used by the policies."""

    easy_claim_probability: float = 0.3
    easy_permit_probability: float = 0.1
    medium_claim_threshold: float = 3.0
    medium_min_hand_size: int = 6
    target_permit_count: int = 3
    hard_claim_threshold: float = 5.0
    hard_help_weight: float = 2.0
    hard_complete_weight: float = 3.0
    short_route_length: int = 2
    short_route_bonus: float = 2.0
    double_route_bonus: float = 3.0
    hard_min_cards_for_permits: int = 4
    keep_overlap_bonus: float = 10.0
    keep_point_penalty: float = 0.3
    keep_second_threshold: float = 5.0


class AIPolicy(ABC):
    """Base class implemented by the three difficulty tiers."""

    difficulty: Difficulty

    def __init__(self, rng: RandomSource = None, config: Optional[AIConfig] = None) -> None:
        self.rng = make_rng(rng)
        self.config = config or AIConfig()

    def choose_action(self, game: Game, player_id: str) -> Action:
        """
        Return the action this player should take now.

        Outside the player's turn this falls back to a pile draw, which the
        game will reject; callers should only ask on the player's turn.
        """
        status = game.status
        if isinstance(status, Setup) and player_id in status.pending:
            return SelectInitialPermits(permit_ids=tuple(self.choose_initial_permits(game, player_id)))
        if not isinstance(status, AwaitingAction) or status.player_id != player_id:
            return DrawCard(source=DrawPile())

        phase = status.phase
        if isinstance(phase, ChoosingAction):
            action = self.choose_main_action(game, player_id)
        elif isinstance(phase, DrawingSecondCard):
            action = random_draw(game, self.rng)
        elif isinstance(phase, ChoosingPermits):
            action = KeepPermits(permit_ids=tuple(self.choose_permits_to_keep(game, player_id, phase.drawn)))
        else:
            raise TypeError(f"Unknown turn phase {phase!r}")
        logger.debug("%s AI chose %s for %s", self.difficulty.value, action, player_id)
        return action

    def make_move(self, game: Game, player_id: str) -> Optional[LogEntry]:
        return apply_action(game, player_id, self.choose_action(game, player_id))

    @abstractmethod
    def choose_main_action(self, game: Game, player_id: str) -> Action:
        """Pick between claiming, drawing cards and drawing permits."""

    @abstractmethod
    def choose_permits_to_keep(self, game: Game, player_id: str, drawn: Sequence[Permit]) -> List[int]:
        """Pick a non-empty subset of the permits just drawn."""

    @abstractmethod
    def choose_initial_permits(self, game: Game, player_id: str) -> List[int]:
        """Pick which of the permits dealt at setup to keep."""

    def _claim_or_fallback(self, game: Game, claimable: Sequence[Tuple[Route, Tuple[str, ...]]]) -> Action:
        if game.can_draw_any_card:
            return random_draw(game, self.rng)
        return _fallback_chain(game, claimable, self.rng)


class EasyPolicy(AIPolicy):
    """Mostly draws cards, claims a random route now and then."""

    difficulty = Difficulty.EASY

    def choose_main_action(self, game: Game, player_id: str) -> Action:
        claimable = game.claimable_routes(player_id)
        roll = float(self.rng.random())
        config = self.config

        if roll < config.easy_claim_probability and claimable:
            return _claim(choice(self.rng, claimable))
        if roll < config.easy_claim_probability + config.easy_permit_probability and game.permit_deck:
            return DrawPermits()
        return self._claim_or_fallback(game, claimable)

    def choose_permits_to_keep(self, game: Game, player_id: str, drawn: Sequence[Permit]) -> List[int]:
        return [choice(self.rng, list(drawn)).id]

    def choose_initial_permits(self, game: Game, player_id: str) -> List[int]:
        dealt = game.hand(player_id).permits
        return [permit.id for permit in dealt[:MIN_INITIAL_PERMITS_TO_KEEP]]


class MediumPolicy(AIPolicy):
    """Claims routes that help its permits, otherwise builds up its hand."""

    difficulty = Difficulty.MEDIUM

    def choose_main_action(self, game: Game, player_id: str) -> Action:
        claimable = game.claimable_routes(player_id)
        hand = game.hand(player_id)
        network = cities_of(game.claimed_routes(player_id))

        scored: List[ScoredRoute] = []
        for route, card_ids in claimable:
            score = float(route_points(route.length))
            for permit in hand.permits:
                if route_helps_permit(route, permit, network):
                    score += permit.points
            scored.append((route, card_ids, score))

        best = _best(scored)
        if best is not None and best[2] > self.config.medium_claim_threshold:
            return ClaimRoute(route_id=best[0].id, card_ids=best[1])
        if len(hand.cards) < self.config.medium_min_hand_size and game.can_draw_any_card:
            return random_draw(game, self.rng)
        if len(hand.permits) < self.config.target_permit_count and game.permit_deck:
            return DrawPermits()
        return self._claim_or_fallback(game, claimable)

    def choose_permits_to_keep(self, game: Game, player_id: str, drawn: Sequence[Permit]) -> List[int]:
        easiest = min(drawn, key=lambda permit: permit.points)
        return [easiest.id]

    def choose_initial_permits(self, game: Game, player_id: str) -> List[int]:
        dealt = sorted(game.hand(player_id).permits, key=lambda permit: permit.points)
        return [permit.id for permit in dealt[:MIN_INITIAL_PERMITS_TO_KEEP]]


class HardPolicy(AIPolicy):
    """
    Plans around its permits.

    Routes are scored on top of their face value: extending towards an
    uncompleted permit, finishing one outright, being short, and grabbing a
    double-route slot that closes the pair to everyone in a small game all
    add to the score. Card draws prefer colours the player's network needs.
    """

    difficulty = Difficulty.HARD

    def choose_main_action(self, game: Game, player_id: str) -> Action:
        claimable = game.claimable_routes(player_id)
        hand = game.hand(player_id)
        claimed = game.claimed_routes(player_id)
        network = cities_of(claimed)
        open_permits = [permit for permit in hand.permits if not is_permit_completed(permit, claimed)]
        config = self.config

        scored: List[ScoredRoute] = []
        for route, card_ids in claimable:
            score = float(route_points(route.length))
            for permit in open_permits:
                if route_helps_permit(route, permit, network):
                    score += permit.points * config.hard_help_weight
                if would_complete_permit(route, permit, claimed, player_id):
                    score += permit.points * config.hard_complete_weight
            if route.length <= config.short_route_length:
                score += config.short_route_bonus
            if len(game.hands) <= SMALL_GAME_MAX_PLAYERS and route.double_route_partner_id is not None:
                score += config.double_route_bonus
            scored.append((route, card_ids, score))

        best = _best(scored)
        if best is not None and best[2] > config.hard_claim_threshold:
            return ClaimRoute(route_id=best[0].id, card_ids=best[1])
        if (
            len(hand.permits) < config.target_permit_count
            and game.permit_deck
            and len(hand.cards) >= config.hard_min_cards_for_permits
        ):
            return DrawPermits()
        if game.can_draw_any_card:
            return smart_draw(game, player_id, self.rng)
        return _fallback_chain(game, claimable, self.rng)

    def choose_permits_to_keep(self, game: Game, player_id: str, drawn: Sequence[Permit]) -> List[int]:
        network = cities_of(game.claimed_routes(player_id))
        config = self.config

        def score(permit: Permit) -> float:
            value = sum(config.keep_overlap_bonus for city in permit.cities if city in network)
            return value - permit.points * config.keep_point_penalty

        ranked = sorted(drawn, key=score, reverse=True)
        if len(ranked) >= 2 and score(ranked[1]) > config.keep_second_threshold:
            return [ranked[0].id, ranked[1].id]
        return [ranked[0].id]

    def choose_initial_permits(self, game: Game, player_id: str) -> List[int]:
        """
        Keep the two permits worth the most per segment of their shortest
        map path, plus the third when its path crosses theirs.
        """
        dealt = list(game.hand(player_id).permits)
        if len(dealt) <= MIN_INITIAL_PERMITS_TO_KEEP:
            return [permit.id for permit in dealt]

        graph = build_route_graph(game.routes)
        paths: Dict[int, List[City]] = {permit.id: _shortest_path(graph, permit) for permit in dealt}

        def efficiency(permit: Permit) -> float:
            cost = _path_cost(graph, paths[permit.id])
            return permit.points / cost if cost else 0.0

        ranked = sorted(dealt, key=efficiency, reverse=True)
        kept = ranked[:MIN_INITIAL_PERMITS_TO_KEEP]
        covered: Set[City] = {city for permit in kept for city in paths[permit.id]}
        for permit in ranked[MIN_INITIAL_PERMITS_TO_KEEP:]:
            if paths[permit.id] and covered.intersection(paths[permit.id]):
                kept.append(permit)
        return [permit.id for permit in kept]


# ----------------------------------------------------------------------
# Shared helpers


def route_helps_permit(route: Route, permit: Permit, network: Set[City]) -> bool:
    """True if the route touches a permit city or the player's existing network."""
    return any(route.touches(city) for city in permit.cities) or any(route.touches(city) for city in network)


def would_complete_permit(route: Route, permit: Permit, claimed: Sequence[Route], player_id: str) -> bool:
    return is_permit_completed(permit, list(claimed) + [replace(route, claimed_by=player_id)])


def desired_colors(game: Game, player_id: str) -> Set[Color]:
    """Colours of open coloured routes touching the player's network or permit cities."""
    network = cities_of(game.claimed_routes(player_id))
    permit_cities = {city for permit in game.hand(player_id).permits for city in permit.cities}
    relevant = network | permit_cities
    colors: Set[Color] = set()
    for route in game.routes:
        if route.is_claimed or route.color is Color.ANY:
            continue
        if route.city1 in relevant or route.city2 in relevant:
            colors.add(route.color)
    return colors


def random_draw(game: Game, rng) -> DrawCard:
    """
    Draw that is legal as either card of a turn.

    Prefers a random non-wild face-up card, then the pile, then any face-up card.
    """
    non_wild = [index for index, card in enumerate(game.face_up_cards) if not card.is_wild]
    if non_wild:
        return DrawCard(source=FaceUp(index=choice(rng, non_wild)))
    return _fallback_draw(game, rng)


def smart_draw(game: Game, player_id: str, rng) -> DrawCard:
    wanted = desired_colors(game, player_id)
    face_up = game.face_up_cards
    for index, card in enumerate(face_up):
        if not card.is_wild and card.color in wanted:
            return DrawCard(source=FaceUp(index=index))
    for index, card in enumerate(face_up):
        if card.is_wild:
            return DrawCard(source=FaceUp(index=index))
    return _fallback_draw(game, rng)


def _fallback_draw(game: Game, rng) -> DrawCard:
    if game.can_draw_from_pile:
        return DrawCard(source=DrawPile())
    index = choice(rng, list(range(len(game.face_up))))
    if index is not None:
        return DrawCard(source=FaceUp(index=index))
    return DrawCard(source=DrawPile())


def _fallback_chain(game: Game, claimable: Sequence[Tuple[Route, Tuple[str, ...]]], rng) -> Action:
    if claimable:
        return _claim(choice(rng, list(claimable)))
    if game.permit_deck:
        return DrawPermits()
    return _fallback_draw(game, rng)


def _claim(entry: Tuple[Route, Tuple[str, ...]]) -> ClaimRoute:
    route, card_ids = entry
    return ClaimRoute(route_id=route.id, card_ids=card_ids)


def _best(scored: Sequence[ScoredRoute]) -> Optional[ScoredRoute]:
    if not scored:
        return None
    return max(scored, key=lambda entry: entry[2])


def _shortest_path(graph: nx.MultiGraph, permit: Permit) -> List[City]:
    try:
        return nx.shortest_path(graph, permit.city1, permit.city2, weight="weight")
    except (nx.NetworkXNoPath, nx.NodeNotFound):
        return []


def _path_cost(graph: nx.MultiGraph, path: Sequence[City]) -> int:
    return sum(
        min(data["weight"] for data in graph.get_edge_data(city, nxt).values())
        for city, nxt in zip(path, path[1:])
    )


# ----------------------------------------------------------------------
# Factory


def build_policy(
    difficulty: Difficulty | str,
    rng: RandomSource = None,
    config: Optional[AIConfig] = None,
) -> AIPolicy:
    """Factory returning a policy for a difficulty (enum or its name)."""

    difficulty = Difficulty(difficulty.lower()) if isinstance(difficulty, str) else difficulty
    if difficulty is Difficulty.EASY:
        return EasyPolicy(rng, config)
    if difficulty is Difficulty.MEDIUM:
        return MediumPolicy(rng, config)
    if difficulty is Difficulty.HARD:
        return HardPolicy(rng, config)
    raise ValueError(f"Unknown difficulty '{difficulty}'")


def make_ai_move(
    game: Game,
    difficulty: Difficulty | str | AIPolicy,
    rng: RandomSource = None,
) -> Optional[LogEntry]:
    """
    Let the AI act for whoever is due to act.

    During setup that is the first player still choosing permits.

    A difficulty builds a fresh policy for this one move; with ``rng`` left
    as None that policy draws from OS entropy, so repeated calls are not
    reproducible. Pass a seed or a shared generator, or pass a policy built
    once with ``build_policy`` to keep one random stream across moves.

    :param difficulty: A difficulty (enum or name), or a ready policy.
    :param rng: Seed or generator for a freshly built policy; must be None
        when a policy is passed.
    :raises GameError: NOT_WAITING_FOR_PLAYER_TO_ACT once the game is over.
    """
    if isinstance(difficulty, AIPolicy):
        if rng is not None:
            raise ValueError("rng cannot be combined with a ready policy")
        policy = difficulty
    else:
        policy = build_policy(difficulty, rng)

    status = game.status
    if isinstance(status, Setup):
        player_id = status.pending[0]
    elif isinstance(status, AwaitingAction):
        player_id = status.player_id
    else:
        raise GameError(ErrorKind.NOT_WAITING_FOR_PLAYER_TO_ACT)
    return policy.make_move(game, player_id)


__all__ = [
    "AIConfig",
    "AIPolicy",
    "Difficulty",
    "EasyPolicy",
    "MediumPolicy",
    "HardPolicy",
    "build_policy",
    "make_ai_move",
]
