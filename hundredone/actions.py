"""Player actions and legality checks for 101."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Union

from .cards import Card


class InvalidAction(RuntimeError):
    """Raised when an action source hands the engine an illegal choice."""


@dataclass(frozen=True)
class PlayFromHand:
    """Play the card at ``card_index`` using ``addition``, then draw a replacement."""

    card_index: int
    addition: int


@dataclass(frozen=True)
class DrawAndPlay:
    """Draw the top card of the deck and play it immediately."""


PlayerAction = Union[PlayFromHand, DrawAndPlay]


def legal_actions(hand: Sequence[Card], total: int) -> list[PlayerAction]:
    """Return every hand play available at ``total`` followed by ``DrawAndPlay``."""

    actions: list[PlayerAction] = []
    for index, card in enumerate(hand):
        for addition in card.possible_additions(total):
            actions.append(PlayFromHand(card_index=index, addition=addition))
    actions.append(DrawAndPlay())
    return actions


def validate_addition(card: Card, addition: int, total: int) -> None:
    if addition not in card.possible_additions(total):
        raise InvalidAction(f"{addition} is not a legal addition for {card.label()}")


def validate_action(action: object, hand: Sequence[Card], total: int) -> None:
    """Raise ``InvalidAction`` unless ``action`` is legal for ``hand`` at ``total``."""

    if isinstance(action, DrawAndPlay):
        return
    if not isinstance(action, PlayFromHand):
        raise InvalidAction(f"unknown action {action!r}")
    if action.card_index < 0 or action.card_index >= len(hand):
        raise InvalidAction(f"card index {action.card_index} is out of range")
    validate_addition(hand[action.card_index], action.addition, total)
