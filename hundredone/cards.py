"""Card abstractions and the rank addition table for 101."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final, Iterable, Mapping


class Suit(str, Enum):
    """Enumeration of the four suits; purely decorative in 101."""

    CLUBS = "C"
    DIAMONDS = "D"
    HEARTS = "H"
    SPADES = "S"

    @property
    def symbol(self) -> str:
        return _SUIT_SYMBOLS[self]


_SUIT_SYMBOLS: Final[Mapping[Suit, str]] = {
    Suit.CLUBS: "♣",
    Suit.DIAMONDS: "♦",
    Suit.HEARTS: "♥",
    Suit.SPADES: "♠",
}


class Rank(str, Enum):
    """Enumeration of every rank that can appear in a 101 deck."""

    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"
    JOKER = "JOKER"

    @classmethod
    def standard(cls) -> tuple["Rank", ...]:
        """Return the thirteen suited ranks in deck-building order."""

        return (
            cls.ACE,
            cls.TWO,
            cls.THREE,
            cls.FOUR,
            cls.FIVE,
            cls.SIX,
            cls.SEVEN,
            cls.EIGHT,
            cls.NINE,
            cls.TEN,
            cls.JACK,
            cls.QUEEN,
            cls.KING,
        )


ADDITIONS: Final[Mapping[Rank, tuple[int, ...]]] = {
    Rank.TWO: (2,),
    Rank.THREE: (3,),
    Rank.FOUR: (4,),
    Rank.FIVE: (5,),
    Rank.SIX: (6,),
    Rank.SEVEN: (7,),
    Rank.EIGHT: (0,),
    Rank.NINE: (0,),
    Rank.TEN: (-10, 10),
    Rank.JACK: (10,),
    Rank.QUEEN: (20,),
    Rank.KING: (30,),
    Rank.ACE: (1, 11),
    Rank.JOKER: (50,),
}

SKIP_RANKS: Final[frozenset[Rank]] = frozenset({Rank.EIGHT, Rank.NINE})
DECK_SIZE: Final[int] = 54


def possible_additions(rank: Rank) -> tuple[int, ...]:
    """Return the ordered candidate contributions offered by ``rank``."""

    return ADDITIONS[rank]


def is_skip(rank: Rank) -> bool:
    """Return ``True`` when ``rank`` always contributes zero to the total."""

    return rank in SKIP_RANKS


def is_reversing(rank: Rank) -> bool:
    return rank is Rank.NINE


def is_wild(rank: Rank) -> bool:
    return rank is Rank.JOKER


@dataclass(frozen=True, slots=True)
class Card:
    """Value object describing a physical card.

    Jokers carry no suit; ``copy`` tells the two of them apart so every card
    of a deck is a distinct value.
    """

    rank: Rank
    suit: Suit | None = None
    copy: int = 0

    @property
    def is_joker(self) -> bool:
        return is_wild(self.rank)

    def possible_additions(self, current_total: int = 0) -> tuple[int, ...]:
        """Return the legal additions; the running total never narrows them."""

        return possible_additions(self.rank)

    def label(self) -> str:
        """Create a display label suitable for CLI representations."""

        if self.is_joker:
            return "JOKER"
        symbol = self.suit.symbol if self.suit is not None else ""
        return f"{symbol}{self.rank.value}"


def iter_full_deck() -> Iterable[Card]:
    """Yield all 54 physical cards of a fresh deck in a fixed order."""

    for suit in Suit:
        for rank in Rank.standard():
            yield Card(rank=rank, suit=suit)
    yield Card(rank=Rank.JOKER, suit=None, copy=0)
    yield Card(rank=Rank.JOKER, suit=None, copy=1)


def format_addition(value: int) -> str:
    """Return ``value`` with an explicit sign, e.g. ``+10`` or ``-10``."""

    return f"+{value}" if value >= 0 else str(value)
