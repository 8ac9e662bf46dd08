"""
Tagged variants describing turns, draws, log entries and route claimability.

Each family is a closed set of frozen dataclasses; code that branches on a
family handles every member and raises ``TypeError`` on anything else.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from permit_engine.models import Color, Permit


# Draw sources

@dataclass(frozen=True)
class DrawPile:
    pass


@dataclass(frozen=True)
class FaceUp:
    index: int


DrawSource = Union[DrawPile, FaceUp]


# Turn phases

@dataclass(frozen=True)
class ChoosingAction:
    pass


@dataclass(frozen=True)
class DrawingSecondCard:
    first_card_id: str
    first_source: DrawSource


@dataclass(frozen=True)
class ChoosingPermits:
    drawn: Tuple[Permit, ...]


TurnPhase = Union[ChoosingAction, DrawingSecondCard, ChoosingPermits]


# Game states

@dataclass(frozen=True)
class Setup:
    """Players in ``pending`` still have to pick their initial permits."""
    pending: Tuple[str, ...]


@dataclass(frozen=True)
class AwaitingAction:
    player_id: str
    phase: TurnPhase


@dataclass(frozen=True)
class Complete:
    winner_id: str


GameStatus = Union[Setup, AwaitingAction, Complete]


def describe(status: GameStatus) -> str:
    if isinstance(status, Setup):
        return "Setting up game"
    if isinstance(status, AwaitingAction):
        return f"Waiting for player {status.player_id} ({type(status.phase).__name__})"
    if isinstance(status, Complete):
        return f"Player {status.winner_id} won the game"
    raise TypeError(f"Unknown game status {status!r}")


# Action log

@dataclass(frozen=True)
class DrawnCard:
    card_id: str
    source: DrawSource


@dataclass(frozen=True)
class CardsDrawn:
    draws: Tuple[DrawnCard, ...]


@dataclass(frozen=True)
class RouteClaimed:
    route_id: int
    card_ids: Tuple[str, ...]
    points: int


@dataclass(frozen=True)
class PermitsKept:
    permit_ids: Tuple[int, ...]


Decision = Union[CardsDrawn, RouteClaimed, PermitsKept]


@dataclass(frozen=True)
class LogEntry:
    player_id: str
    decision: Decision
    timestamp: float


# Route claimability

@dataclass(frozen=True)
class Claimable:
    """One valid combination of hand cards for the route."""
    card_ids: Tuple[str, ...]


@dataclass(frozen=True)
class NeedsMoreSegments:
    has: int
    need: int


@dataclass(frozen=True)
class NeedsMoreCards:
    route_color: Color
    have: int
    need: int


@dataclass(frozen=True)
class AlreadyClaimed:
    pass


@dataclass(frozen=True)
class DoubleRouteBlocked:
    pass


Claimability = Union[Claimable, NeedsMoreSegments, NeedsMoreCards, AlreadyClaimed, DoubleRouteBlocked]
