"""
JSON encoding of a game.

Every field of a ``Game`` maps onto plain JSON types. Tagged variants are
written as objects with a ``"type"`` key naming the variant. The random
source is not stored; a decoded game gets a fresh generator unless the
caller passes one.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from permit_engine.core.errors import ErrorKind, GameError
from permit_engine.core.rng import RandomSource
from permit_engine.game import Game
from permit_engine.models import Card, City, Color, Permit, Player, PlayerColor, PlayerHand, Route
from permit_engine.states import (
    AwaitingAction,
    CardsDrawn,
    ChoosingAction,
    ChoosingPermits,
    Complete,
    Decision,
    DrawingSecondCard,
    DrawnCard,
    DrawPile,
    DrawSource,
    FaceUp,
    GameStatus,
    LogEntry,
    PermitsKept,
    RouteClaimed,
    Setup,
    TurnPhase,
)

JsonDict = Dict[str, Any]


# ----------------------------------------------------------------------
# Records


def route_to_dict(route: Route) -> JsonDict:
    return {
        "id": route.id,
        "city1": route.city1.value,
        "city2": route.city2.value,
        "length": route.length,
        "color": route.color.value,
        "double_route_partner_id": route.double_route_partner_id,
        "claimed_by": route.claimed_by,
    }


def route_from_dict(data: JsonDict) -> Route:
    return Route(
        id=data["id"],
        city1=City(data["city1"]),
        city2=City(data["city2"]),
        length=data["length"],
        color=Color(data["color"]),
        double_route_partner_id=data.get("double_route_partner_id"),
        claimed_by=data.get("claimed_by"),
    )


def permit_to_dict(permit: Permit) -> JsonDict:
    return {"id": permit.id, "city1": permit.city1.value, "city2": permit.city2.value, "points": permit.points}


def permit_from_dict(data: JsonDict) -> Permit:
    return Permit(id=data["id"], city1=City(data["city1"]), city2=City(data["city2"]), points=data["points"])


def hand_to_dict(hand: PlayerHand) -> JsonDict:
    player = hand.player
    return {
        "player": {
            "id": player.id,
            "name": player.name,
            "color": player.color.value,
            "image_url": player.image_url,
        },
        "cards": list(hand.cards),
        "permits": [permit_to_dict(permit) for permit in hand.permits],
        "remaining_segments": hand.remaining_segments,
        "score": hand.score,
    }


def hand_from_dict(data: JsonDict) -> PlayerHand:
    player = data["player"]
    return PlayerHand(
        player=Player(
            id=player["id"],
            name=player["name"],
            color=PlayerColor(player["color"]),
            image_url=player.get("image_url"),
        ),
        cards=tuple(data["cards"]),
        permits=tuple(permit_from_dict(permit) for permit in data["permits"]),
        remaining_segments=data["remaining_segments"],
        score=data["score"],
    )


# ----------------------------------------------------------------------
# Tagged variants


def source_to_dict(source: DrawSource) -> JsonDict:
    if isinstance(source, DrawPile):
        return {"type": "draw_pile"}
    if isinstance(source, FaceUp):
        return {"type": "face_up", "index": source.index}
    raise TypeError(f"Unknown draw source {source!r}")


def source_from_dict(data: JsonDict) -> DrawSource:
    kind = data["type"]
    if kind == "draw_pile":
        return DrawPile()
    if kind == "face_up":
        return FaceUp(index=data["index"])
    raise ValueError(f"Unknown draw source type {kind!r}")


def phase_to_dict(phase: TurnPhase) -> JsonDict:
    if isinstance(phase, ChoosingAction):
        return {"type": "choosing_action"}
    if isinstance(phase, DrawingSecondCard):
        return {
            "type": "drawing_second_card",
            "first_card_id": phase.first_card_id,
            "first_source": source_to_dict(phase.first_source),
        }
    if isinstance(phase, ChoosingPermits):
        return {"type": "choosing_permits", "drawn": [permit_to_dict(permit) for permit in phase.drawn]}
    raise TypeError(f"Unknown turn phase {phase!r}")


def phase_from_dict(data: JsonDict) -> TurnPhase:
    kind = data["type"]
    if kind == "choosing_action":
        return ChoosingAction()
    if kind == "drawing_second_card":
        return DrawingSecondCard(first_card_id=data["first_card_id"], first_source=source_from_dict(data["first_source"]))
    if kind == "choosing_permits":
        return ChoosingPermits(drawn=tuple(permit_from_dict(permit) for permit in data["drawn"]))
    raise ValueError(f"Unknown turn phase type {kind!r}")


def status_to_dict(status: GameStatus) -> JsonDict:
    if isinstance(status, Setup):
        return {"type": "setup", "pending": list(status.pending)}
    if isinstance(status, AwaitingAction):
        return {"type": "awaiting_action", "player_id": status.player_id, "phase": phase_to_dict(status.phase)}
    if isinstance(status, Complete):
        return {"type": "complete", "winner_id": status.winner_id}
    raise TypeError(f"Unknown game status {status!r}")


def status_from_dict(data: JsonDict) -> GameStatus:
    kind = data["type"]
    if kind == "setup":
        return Setup(pending=tuple(data["pending"]))
    if kind == "awaiting_action":
        return AwaitingAction(player_id=data["player_id"], phase=phase_from_dict(data["phase"]))
    if kind == "complete":
        return Complete(winner_id=data["winner_id"])
    raise ValueError(f"Unknown game status type {kind!r}")


def decision_to_dict(decision: Decision) -> JsonDict:
    if isinstance(decision, CardsDrawn):
        return {
            "type": "cards_drawn",
            "draws": [{"card_id": d.card_id, "source": source_to_dict(d.source)} for d in decision.draws],
        }
    if isinstance(decision, RouteClaimed):
        return {
            "type": "route_claimed",
            "route_id": decision.route_id,
            "card_ids": list(decision.card_ids),
            "points": decision.points,
        }
    if isinstance(decision, PermitsKept):
        return {"type": "permits_kept", "permit_ids": list(decision.permit_ids)}
    raise TypeError(f"Unknown decision {decision!r}")


def decision_from_dict(data: JsonDict) -> Decision:
    kind = data["type"]
    if kind == "cards_drawn":
        return CardsDrawn(draws=tuple(
            DrawnCard(card_id=d["card_id"], source=source_from_dict(d["source"])) for d in data["draws"]
        ))
    if kind == "route_claimed":
        return RouteClaimed(route_id=data["route_id"], card_ids=tuple(data["card_ids"]), points=data["points"])
    if kind == "permits_kept":
        return PermitsKept(permit_ids=tuple(data["permit_ids"]))
    raise ValueError(f"Unknown decision type {kind!r}")


# ----------------------------------------------------------------------
# Game


def game_to_dict(game: Game) -> JsonDict:
    state = game._snapshot()
    return {
        "id": state["game_id"],
        "started": state["started"],
        "ended": state["ended"],
        "status": status_to_dict(state["status"]),
        "cards": [{"id": card.id, "color": card.color.value} for card in state["cards"].values()],
        "draw_pile": list(state["draw_pile"]),
        "discard_pile": list(state["discard_pile"]),
        "face_up": list(state["face_up"]),
        "hands": [hand_to_dict(hand) for hand in state["hands"]],
        "routes": [route_to_dict(route) for route in state["routes"]],
        "permit_deck": [permit_to_dict(permit) for permit in state["permit_deck"]],
        "final_round_triggered_by": state["final_round_triggered_by"],
        "turns_remaining_in_final_round": state["turns_remaining_in_final_round"],
        "log": [
            {"player_id": entry.player_id, "decision": decision_to_dict(entry.decision), "timestamp": entry.timestamp}
            for entry in state["log"]
        ],
    }


def game_from_dict(data: JsonDict, rng: RandomSource = None) -> Game:
    """
    Rebuild a game from ``game_to_dict`` output.

    :param data: The encoded game.
    :param rng: Random source for future reshuffles.
    :raises GameError: INVALID_CATALOG if a field is missing or malformed.
    """
    try:
        cards = {entry["id"]: Card(id=entry["id"], color=Color(entry["color"])) for entry in data["cards"]}
        return Game.restore(
            game_id=data["id"],
            started=data["started"],
            ended=data.get("ended"),
            status=status_from_dict(data["status"]),
            cards=cards,
            draw_pile=data["draw_pile"],
            discard_pile=data["discard_pile"],
            face_up=data["face_up"],
            hands=[hand_from_dict(hand) for hand in data["hands"]],
            routes=[route_from_dict(route) for route in data["routes"]],
            permit_deck=[permit_from_dict(permit) for permit in data["permit_deck"]],
            final_round_triggered_by=data.get("final_round_triggered_by"),
            turns_remaining_in_final_round=data.get("turns_remaining_in_final_round"),
            log=[
                LogEntry(
                    player_id=entry["player_id"],
                    decision=decision_from_dict(entry["decision"]),
                    timestamp=entry["timestamp"],
                )
                for entry in data["log"]
            ],
            rng=rng,
        )
    except (KeyError, TypeError, ValueError) as exc:
        if isinstance(exc, GameError):
            raise
        raise GameError(ErrorKind.INVALID_CATALOG, f"Malformed game data: {exc}") from exc


def dumps(game: Game, indent: Optional[int] = None) -> str:
    return json.dumps(game_to_dict(game), indent=indent)


def loads(text: str, rng: RandomSource = None) -> Game:
    return game_from_dict(json.loads(text), rng=rng)
