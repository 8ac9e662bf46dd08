"""Player actions as values, so any caller can build one and submit it."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union

from permit_engine.game import Game
from permit_engine.states import DrawSource, LogEntry


@dataclass(frozen=True)
class SelectInitialPermits:
    permit_ids: Tuple[int, ...]


@dataclass(frozen=True)
class DrawCard:
    source: DrawSource


@dataclass(frozen=True)
class ClaimRoute:
    route_id: int
    card_ids: Tuple[str, ...]


@dataclass(frozen=True)
class DrawPermits:
    pass


@dataclass(frozen=True)
class KeepPermits:
    permit_ids: Tuple[int, ...]


Action = Union[SelectInitialPermits, DrawCard, ClaimRoute, DrawPermits, KeepPermits]


def apply_action(game: Game, player_id: str, action: Action) -> Optional[LogEntry]:
    """
    Submit an action on behalf of a player.

    :param game: The game to act on.
    :param player_id: The acting player; the game rejects it if it is not their move.
    :param action: What to do.
    :return: The log entry if the action finished the player's turn.
    :raises GameError: If the game rejects the action.
    """
    if isinstance(action, SelectInitialPermits):
        game.select_initial_permits(player_id, action.permit_ids)
        return None
    if isinstance(action, DrawCard):
        return game.draw_card(action.source, player_id=player_id)
    if isinstance(action, ClaimRoute):
        return game.claim_route(action.route_id, action.card_ids, player_id=player_id)
    if isinstance(action, DrawPermits):
        game.draw_permits(player_id=player_id)
        return None
    if isinstance(action, KeepPermits):
        return game.keep_permits(action.permit_ids, player_id=player_id)
    raise TypeError(f"Unknown action {action!r}")
