"""Core game state data structures for 101."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Final, List, Sequence

from .cards import Card, iter_full_deck

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from .rules import RoundOutcome

logger = logging.getLogger(__name__)


class TurnPhase(str, Enum):
    """Phases of the per-turn state machine."""

    AWAITING_ACTION = "awaiting_action"
    RESOLVING = "resolving"
    ROUND_ENDED = "round_ended"


@dataclass(frozen=True, slots=True)
class GameConfig:
    """Numeric rule constants for a match."""

    threshold: int = 101
    joker_pivot: int = 100
    floor_score: int = -5
    hand_size: int = 2

    def __post_init__(self) -> None:
        if self.hand_size <= 0:
            raise ValueError("hand_size must be positive")
        if self.joker_pivot >= self.threshold:
            raise ValueError("joker_pivot must be below the threshold")


DEFAULT_CONFIG: Final[GameConfig] = GameConfig()


@dataclass(frozen=True, slots=True)
class PlayerSeed:
    """Roster entry used to seat a player before the match starts."""

    name: str
    is_human: bool = False


@dataclass(slots=True)
class Player:
    """State tracked for each player at the table."""

    name: str
    is_human: bool = False
    hand: List[Card] = field(default_factory=list)
    score: int = 0

    @classmethod
    def from_seed(cls, seed: PlayerSeed) -> "Player":
        return cls(name=seed.name, is_human=seed.is_human)


class Deck:
    """Shuffled draw pile that recycles a caller-owned discard pile."""

    def __init__(self, cards: Sequence[Card], rng: random.Random | None = None) -> None:
        self.cards: list[Card] = list(cards)
        self.rng = rng if rng is not None else random.Random()
        self.reshuffle_count = 0

    @classmethod
    def standard_shuffled(cls, rng: random.Random | None = None) -> "Deck":
        """Return a freshly shuffled 54-card deck."""

        deck = cls(list(iter_full_deck()), rng)
        deck.shuffle()
        return deck

    def __len__(self) -> int:
        return len(self.cards)

    @property
    def is_empty(self) -> bool:
        return not self.cards

    def shuffle(self) -> None:
        self.rng.shuffle(self.cards)

    def draw(self, discard: list[Card]) -> Card | None:
        """Pop the top card, recycling ``discard`` when the pile runs dry.

        ``discard`` is cleared in place when its cards are taken over. Returns
        ``None`` only when both piles are empty.
        """

        if not self.cards:
            if not discard:
                return None
            self.cards = list(discard)
            discard.clear()
            self.shuffle()
            self.reshuffle_count += 1
            logger.debug("recycled %d discarded card(s) into the draw pile", len(self.cards))
        return self.cards.pop()


@dataclass(slots=True)
class RoundState:
    """Mutable state of a single round; discarded once an outcome fires."""

    current_index: int = 0
    total: int = 0
    direction: int = 1
    previous_index: int | None = None
    flow_count: int = 0
    phase: TurnPhase = TurnPhase.AWAITING_ACTION
    turn_index: int = 0
    discard: List[Card] = field(default_factory=list)
    outcome: "RoundOutcome | None" = None

    @property
    def is_over(self) -> bool:
        return self.phase == TurnPhase.ROUND_ENDED


def deal_new_round(
    players: Sequence[Player],
    config: GameConfig = DEFAULT_CONFIG,
    rng: random.Random | None = None,
) -> tuple[Deck, RoundState]:
    """Clear every hand, deal a fresh deck and pick a random first player."""

    if not players:
        raise ValueError("cannot deal a round without players")

    rng = rng if rng is not None else random.Random()
    deck = Deck.standard_shuffled(rng)
    round_state = RoundState()

    for player in players:
        player.hand.clear()
    for _ in range(config.hand_size):
        for player in players:
            card = deck.draw(round_state.discard)
            if card is not None:
                player.hand.append(card)

    round_state.current_index = rng.randrange(len(players))
    return deck, round_state
