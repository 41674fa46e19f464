"""Observational events narrating state transitions of a 101 match.

Events flow one way, from the engine to whatever sink the caller provides
(the CLI narrates them, tests collect them). The engine never reads a sink's
return value and never waits on it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping


class EventType(str, Enum):
    """All event types emitted during a match."""

    # Lifecycle events
    ROUND_STARTED = "round_started"
    CARDS_DEALT = "cards_dealt"
    ROUND_ENDED = "round_ended"
    MATCH_ENDED = "match_ended"

    # Gameplay events
    TURN_STARTED = "turn_started"
    CARD_DRAWN = "card_drawn"
    CARD_PLAYED = "card_played"
    TURN_SKIPPED = "turn_skipped"
    DECK_RESHUFFLED = "deck_reshuffled"
    DIRECTION_REVERSED = "direction_reversed"
    TOTAL_CHANGED = "total_changed"
    FLOW = "flow"
    BUST = "bust"
    JOKER_WIN = "joker_win"
    SCORE_CHANGED = "score_changed"


@dataclass(frozen=True)
class GameEvent:
    """Immutable record of something that happened at the table.

    Attributes:
        event_type: The type of event.
        round_number: Round the event belongs to (0 outside of rounds).
        player_index: Seat that triggered the event, if any.
        data: Event-specific payload.
    """

    event_type: EventType
    round_number: int = 0
    player_index: int | None = None
    data: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Serialize the event to a plain dictionary."""
        return {
            "event_type": self.event_type.value,
            "round_number": self.round_number,
            "player_index": self.player_index,
            "data": dict(self.data),
        }


EventSink = Callable[[GameEvent], None]


def null_sink(event: GameEvent) -> None:
    """Sink that drops every event."""


class EventRecorder:
    """Sink that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events: list[GameEvent] = []

    def __call__(self, event: GameEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: EventType) -> list[GameEvent]:
        return [event for event in self.events if event.event_type == event_type]
