"""Rules engine and AI opponents for a route-building game with destination permits."""

from permit_engine.actions import Action, ClaimRoute, DrawCard, DrawPermits, KeepPermits, SelectInitialPermits, apply_action
from permit_engine.ai import AIConfig, AIPolicy, Difficulty, build_policy, make_ai_move
from permit_engine.core.errors import ErrorKind, GameError
from permit_engine.core.scoring import ScoreBreakdown
from permit_engine.game import Game
from permit_engine.map import GameMap
from permit_engine.models import Card, City, Color, Permit, Player, PlayerColor, PlayerHand, Route, standard_deck
from permit_engine.states import (
    AwaitingAction,
    ChoosingAction,
    ChoosingPermits,
    Complete,
    DrawingSecondCard,
    DrawPile,
    FaceUp,
    LogEntry,
    Setup,
)

__version__ = "0.1.0"

__all__ = [
    "Action",
    "ClaimRoute",
    "DrawCard",
    "DrawPermits",
    "KeepPermits",
    "SelectInitialPermits",
    "apply_action",
    "AIConfig",
    "AIPolicy",
    "Difficulty",
    "build_policy",
    "make_ai_move",
    "ErrorKind",
    "GameError",
    "ScoreBreakdown",
    "Game",
    "GameMap",
    "Card",
    "City",
    "Color",
    "Permit",
    "Player",
    "PlayerColor",
    "PlayerHand",
    "Route",
    "standard_deck",
    "AwaitingAction",
    "ChoosingAction",
    "ChoosingPermits",
    "Complete",
    "DrawingSecondCard",
    "DrawPile",
    "FaceUp",
    "LogEntry",
    "Setup",
]
