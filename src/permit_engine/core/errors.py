"""Error kinds reported by the engine."""
from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    NOT_ENOUGH_PLAYERS = 'not_enough_players'
    TOO_MANY_PLAYERS = 'too_many_players'
    DUPLICATE_PLAYER = 'duplicate_player'
    NOT_IN_SETUP_PHASE = 'not_in_setup_phase'
    NOT_WAITING_FOR_PLAYER_TO_ACT = 'not_waiting_for_player_to_act'
    NOT_IN_CHOOSING_ACTION_PHASE = 'not_in_choosing_action_phase'
    NOT_IN_CHOOSING_PERMITS_PHASE = 'not_in_choosing_permits_phase'
    WRONG_PLAYER = 'wrong_player'
    PLAYER_NOT_FOUND = 'player_not_found'
    ROUTE_NOT_FOUND = 'route_not_found'
    CARD_NOT_FOUND = 'card_not_found'
    ROUTE_ALREADY_CLAIMED = 'route_already_claimed'
    INSUFFICIENT_CARDS = 'insufficient_cards'
    INVALID_CARD_COLOR = 'invalid_card_color'
    CARD_NOT_IN_HAND = 'card_not_in_hand'
    INVALID_FACE_UP_INDEX = 'invalid_face_up_index'
    NO_CARDS_AVAILABLE = 'no_cards_available'
    NOT_ENOUGH_SEGMENTS = 'not_enough_segments'
    CANNOT_CLAIM_BOTH_DOUBLE_ROUTES = 'cannot_claim_both_double_routes'
    DOUBLE_ROUTE_BLOCKED_IN_SMALL_GAME = 'double_route_blocked_in_small_game'
    NO_PERMITS_AVAILABLE = 'no_permits_available'
    MUST_KEEP_AT_LEAST_ONE_PERMIT = 'must_keep_at_least_one_permit'
    MUST_KEEP_AT_LEAST_TWO_INITIAL_PERMITS = 'must_keep_at_least_two_initial_permits'
    INVALID_PERMIT_SELECTION = 'invalid_permit_selection'
    GAME_IS_COMPLETE = 'game_is_complete'
    CANNOT_DRAW_WILD_AS_SECOND_CARD = 'cannot_draw_wild_as_second_card'
    INVALID_CATALOG = 'invalid_catalog'


class GameError(ValueError):
    """
    Raised when an action or query is rejected.

    The game is left exactly as it was before the rejected call.

    :param kind: Why the call was rejected.
    :type kind: ErrorKind
    :param message: Optional human readable detail.
    :type message: str
    """

    def __init__(self, kind: ErrorKind, message: str = "") -> None:
        self.kind: ErrorKind = kind
        super().__init__(message or kind.value.replace('_', ' '))
