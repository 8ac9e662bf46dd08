"""
Play full games between AI opponents and report the results.

Run ``permit-engine-simulate --help`` for the options.
"""
from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np

from permit_engine.actions import apply_action
from permit_engine.ai import AIPolicy, Difficulty, build_policy
from permit_engine.core.constants import MAX_PLAYERS, MIN_PLAYERS, TOTAL_SEGMENTS
from permit_engine.core.errors import GameError
from permit_engine.core.routes import segments_used
from permit_engine.core.scoring import ScoreBreakdown
from permit_engine.game import Game
from permit_engine.map import GameMap
from permit_engine.models import Player, PlayerColor
from permit_engine.states import AwaitingAction, Setup, describe

logger = logging.getLogger(__name__)

DEFAULT_MAX_ACTIONS = 5000


@dataclass(frozen=True)
class GameResult:
    """
    Outcome of one simulated game.

    Attributes:
        game: The finished (or stalled) game
        actions: Number of actions applied
        completed: False if the game stalled or hit the action limit
        scores: Final score breakdown per player id
    """

    game: Game
    actions: int
    completed: bool
    scores: Dict[str, ScoreBreakdown]

    @property
    def winner_id(self) -> Optional[str]:
        return self.game.winner_id


def make_players(difficulties: Sequence[Difficulty]) -> List[Player]:
    colors = list(PlayerColor)
    return [
        Player(id=f"p{seat + 1}", name=f"{difficulty.value.title()} AI {seat + 1}", color=colors[seat % len(colors)])
        for seat, difficulty in enumerate(difficulties)
    ]


def run_game(
    difficulties: Sequence[Difficulty],
    *,
    game_map: Optional[GameMap] = None,
    segments_per_player: int = TOTAL_SEGMENTS,
    rng: Optional[np.random.Generator] = None,
    max_actions: int = DEFAULT_MAX_ACTIONS,
) -> GameResult:
    """
    Play one game where every seat is an AI of the given difficulty.

    :param difficulties: One difficulty per seat, in turn order.
    :param game_map: Map to play on; the standard map by default.
    :param segments_per_player: Build budget per player.
    :param rng: Generator shared by the shuffles and every AI seat.
    :param max_actions: Give up after this many actions.
    :return: The result, with ``completed`` False if the game did not finish.
    """
    rng = rng if rng is not None else np.random.default_rng()
    players = make_players(difficulties)
    game = Game(players, game_map, segments_per_player=segments_per_player, rng=rng)
    policies: Dict[str, AIPolicy] = {
        player.id: build_policy(difficulty, rng) for player, difficulty in zip(players, difficulties)
    }

    actions = 0
    while not game.is_complete and actions < max_actions:
        status = game.status
        if isinstance(status, Setup):
            player_id = status.pending[0]
        elif isinstance(status, AwaitingAction):
            player_id = status.player_id
        else:
            raise TypeError(f"Unknown game status {status!r}")

        action = policies[player_id].choose_action(game, player_id)
        try:
            apply_action(game, player_id, action)
        except GameError as e:
            # nothing legal is left, e.g. every card is held and no route is affordable
            logger.warning("Game %s stalled: %s could not play %s (%s)", game.id, player_id, action, e.kind.value)
            break
        actions += 1

    if not game.is_complete:
        logger.warning("Game %s stopped after %d actions without finishing", game.id, actions)
    return GameResult(game=game, actions=actions, completed=game.is_complete, scores=game.final_scores())


def run_simulation(
    difficulties: Sequence[Difficulty],
    games: int,
    *,
    game_map: Optional[GameMap] = None,
    segments_per_player: int = TOTAL_SEGMENTS,
    seed: Optional[int] = None,
    max_actions: int = DEFAULT_MAX_ACTIONS,
) -> List[GameResult]:
    """Play ``games`` games in a row from one seeded generator."""
    rng = np.random.default_rng(seed)
    game_map = game_map if game_map is not None else GameMap.standard()
    results = []
    for index in range(games):
        result = run_game(
            difficulties,
            game_map=game_map,
            segments_per_player=segments_per_player,
            rng=rng,
            max_actions=max_actions,
        )
        logger.info("Game %d/%d finished after %d actions, winner %s", index + 1, games, result.actions, result.winner_id)
        results.append(result)
    return results


def print_result(result: GameResult) -> None:
    game = result.game
    print("-" * 70)
    print(f"Game {game.id} after {result.actions} actions: {describe(game.status)}")
    for hand in game.hands:
        breakdown = result.scores[hand.player_id]
        routes = game.claimed_routes(hand.player_id)
        marker = " (winner)" if hand.player_id == result.winner_id else ""
        print(
            f"  {hand.player.name:<16} score {hand.score:>4}  "
            f"routes {len(routes):>2} ({segments_used(routes):>2} segments)  "
            f"permits {breakdown.completed_permits}/{len(hand.permits)}  "
            f"longest {breakdown.longest_path_length:>2}{marker}"
        )
        for permit in hand.permits:
            done = "done" if game.is_permit_completed(permit, hand.player_id) else "open"
            print(f"      {permit.city1.display_name} - {permit.city2.display_name} ({permit.points}, {done})")


def print_summary(results: Sequence[GameResult], difficulties: Sequence[Difficulty]) -> None:
    players = make_players(difficulties)
    wins = Counter(result.winner_id for result in results if result.completed)
    print("=" * 70)
    print(f"Games played: {len(results)}  completed: {sum(result.completed for result in results)}")
    for player in players:
        scores = [result.scores[player.id].total_score for result in results]
        average = float(np.mean(scores)) if scores else 0.0
        print(f"  {player.name:<16} wins {wins[player.id]:>3}  average score {average:7.2f}")
    print("=" * 70)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play AI-only games of the route-building permit game")
    parser.add_argument(
        "--difficulty",
        type=str,
        nargs="+",
        default=["medium"],
        choices=[d.value for d in Difficulty],
        help="Difficulty per seat; a single value applies to every seat",
    )
    parser.add_argument("--players", type=int, default=None, help=f"Number of seats ({MIN_PLAYERS}-{MAX_PLAYERS})")
    parser.add_argument("--games", type=int, default=1)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--segments", type=int, default=TOTAL_SEGMENTS, help="Segments per player")
    parser.add_argument("--routes", type=Path, default=None, help="Routes CSV (defaults to the standard map)")
    parser.add_argument("--permits", type=Path, default=None, help="Permits CSV (defaults to the standard map)")
    parser.add_argument("--max-actions", type=int, default=DEFAULT_MAX_ACTIONS)
    parser.add_argument("--log-level", type=str, default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def seat_difficulties(names: Sequence[str], players: Optional[int]) -> List[Difficulty]:
    difficulties = [Difficulty(name) for name in names]
    if players is None:
        players = len(difficulties) if len(difficulties) > 1 else 2
    if len(difficulties) == 1:
        return difficulties * players
    if len(difficulties) != players:
        raise ValueError(f"Got {len(difficulties)} difficulties for {players} players")
    return difficulties


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if (args.routes is None) != (args.permits is None):
        print("ERROR: --routes and --permits must be given together")
        return 2
    try:
        difficulties = seat_difficulties(args.difficulty, args.players)
        game_map = GameMap.load(args.routes, args.permits) if args.routes is not None else GameMap.standard()
    except ValueError as e:
        print(f"ERROR: {e}")
        return 2

    print("=" * 70)
    print("Permit game - AI simulation")
    print("=" * 70)
    print(f"Seats: {', '.join(d.value for d in difficulties)}")
    print(f"Games: {args.games}  seed: {args.seed}  segments: {args.segments}")

    try:
        results = run_simulation(
            difficulties,
            args.games,
            game_map=game_map,
            segments_per_player=args.segments,
            seed=args.seed,
            max_actions=args.max_actions,
        )
    except GameError as e:
        print(f"ERROR: {e}")
        return 1

    for result in results:
        print_result(result)
    print_summary(results, difficulties)
    return 0


if __name__ == "__main__":
    sys.exit(main())
