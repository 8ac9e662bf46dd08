"""Value records for cards, cities, routes, permits and players."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, Optional, Tuple

from permit_engine.core.constants import REGULAR_CARDS_PER_COLOR, TOTAL_SEGMENTS, WILD_CARD_COUNT


class Color(enum.Enum):
    """
    Card and route colours.

    ``WILD`` only appears on cards and substitutes for any colour.
    ``ANY`` only appears on routes and accepts any single colour.
    """
    PURPLE = 'purple'
    BLUE = 'blue'
    ORANGE = 'orange'
    WHITE = 'white'
    GREEN = 'green'
    YELLOW = 'yellow'
    BLACK = 'black'
    RED = 'red'
    WILD = 'wild'
    ANY = 'any'

    @property
    def is_wild(self) -> bool:
        return self is Color.WILD


REGULAR_COLORS: Tuple[Color, ...] = (
    Color.PURPLE,
    Color.BLUE,
    Color.ORANGE,
    Color.WHITE,
    Color.GREEN,
    Color.YELLOW,
    Color.BLACK,
    Color.RED,
)


class City(enum.Enum):
    VANCOUVER = 'vancouver'
    CALGARY = 'calgary'
    SEATTLE = 'seattle'
    PORTLAND = 'portland'
    WINNIPEG = 'winnipeg'
    HELENA = 'helena'
    DULUTH = 'duluth'
    SALT_LAKE_CITY = 'salt_lake_city'
    SAN_FRANCISCO = 'san_francisco'
    SAULT_ST_MARIE = 'sault_st_marie'
    TORONTO = 'toronto'
    MONTREAL = 'montreal'
    BOSTON = 'boston'
    NEW_YORK = 'new_york'
    PITTSBURGH = 'pittsburgh'
    CHICAGO = 'chicago'
    OMAHA = 'omaha'
    DENVER = 'denver'
    LAS_VEGAS = 'las_vegas'
    LOS_ANGELES = 'los_angeles'
    PHOENIX = 'phoenix'
    SANTA_FE = 'santa_fe'
    EL_PASO = 'el_paso'
    KANSAS_CITY = 'kansas_city'
    SAINT_LOUIS = 'saint_louis'
    OKLAHOMA_CITY = 'oklahoma_city'
    NASHVILLE = 'nashville'
    RALEIGH = 'raleigh'
    WASHINGTON = 'washington'
    CHARLESTON = 'charleston'
    ATLANTA = 'atlanta'
    MIAMI = 'miami'
    NEW_ORLEANS = 'new_orleans'
    LITTLE_ROCK = 'little_rock'
    DALLAS = 'dallas'
    HOUSTON = 'houston'

    @property
    def display_name(self) -> str:
        if self is City.SAULT_ST_MARIE:
            return 'Sault St Marie'
        return self.value.replace('_', ' ').title()


class PlayerColor(enum.Enum):
    BLUE = 'blue'
    RED = 'red'
    GREEN = 'green'
    YELLOW = 'yellow'
    BLACK = 'black'


@dataclass(frozen=True)
class Card:
    id: str
    color: Color

    @property
    def is_wild(self) -> bool:
        return self.color.is_wild


def standard_deck() -> List[Card]:
    """
    Return the standard deck, unshuffled.

    The deck contains 12 cards of each regular colour and 14 wild cards.

    :return: A list of 110 Card objects.
    :rtype: List[Card]
    """
    cards: List[Card] = []
    for color in REGULAR_COLORS:
        for i in range(1, REGULAR_CARDS_PER_COLOR + 1):
            cards.append(Card(id=f"{color.value}-{i}", color=color))
    for i in range(1, WILD_CARD_COUNT + 1):
        cards.append(Card(id=f"wild-{i}", color=Color.WILD))
    return cards


@dataclass(frozen=True)
class Route:
    id: int
    city1: City
    city2: City
    length: int
    color: Color
    double_route_partner_id: Optional[int] = None
    claimed_by: Optional[str] = None

    @property
    def cities(self) -> Tuple[City, City]:
        return (self.city1, self.city2)

    @property
    def is_claimed(self) -> bool:
        return self.claimed_by is not None

    def touches(self, city: City) -> bool:
        return city is self.city1 or city is self.city2


@dataclass(frozen=True)
class Permit:
    id: int
    city1: City
    city2: City
    points: int

    @property
    def cities(self) -> Tuple[City, City]:
        return (self.city1, self.city2)


@dataclass(frozen=True)
class Player:
    """Identity and display fields; the engine only reads ``id``."""
    id: str
    name: str
    color: PlayerColor = PlayerColor.BLUE
    image_url: Optional[str] = None


@dataclass(frozen=True)
class PlayerHand:
    """
    Everything a player holds.

    Attributes:
        player: Identity of the owner
        cards: Held card ids, in the order they were received
        permits: Held permits
        remaining_segments: Build budget left, never negative
        score: Running score; may go negative after permit penalties
    """
    player: Player
    cards: Tuple[str, ...] = ()
    permits: Tuple[Permit, ...] = ()
    remaining_segments: int = TOTAL_SEGMENTS
    score: int = 0

    @property
    def player_id(self) -> str:
        return self.player.id
