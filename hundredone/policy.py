"""Greedy CPU decision heuristics for 101."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from .actions import DrawAndPlay, PlayerAction, PlayFromHand
from .cards import Card, is_skip, is_wild
from .state import DEFAULT_CONFIG, GameConfig

logger = logging.getLogger(__name__)

__all__ = ["CpuPolicy", "DEFAULT_POLICY", "decide", "choose_automatic_addition"]


@dataclass(frozen=True, slots=True)
class CpuPolicy:
    """Tunable scoring constants used by CPU players.

    Higher scores are better. Busting plays land at or below ``bust_floor``,
    skip cards sit just under the current total.
    """

    flow_bonus: int = 5
    bust_floor: int = -100
    skip_discount: int = 1
    config: GameConfig = DEFAULT_CONFIG

    def score_play(self, card: Card, addition: int, total: int) -> int:
        """Return the heuristic value of playing ``card`` for ``addition``."""

        threshold = self.config.threshold
        if is_skip(card.rank):
            return total - self.skip_discount
        new_total = total + addition
        if new_total > threshold:
            return self.bust_floor - (new_total - threshold)
        if new_total == threshold:
            return new_total + self.flow_bonus
        return new_total

    def choose_automatic_addition(self, card: Card, total: int) -> int:
        """Pick the addition that keeps the total highest without busting."""

        options = card.possible_additions(total)
        if len(options) == 1:
            return options[0]

        threshold = self.config.threshold
        best_value = options[0]
        best_score: int | None = None
        for value in options:
            result = total + value
            score = result
            if result > threshold:
                score = threshold - result
            if best_score is None or score > best_score:
                best_score = score
                best_value = value
        return best_value

    def decide(self, hand: Sequence[Card], total: int, deck_non_empty: bool) -> PlayerAction:
        """Return the CPU's action for ``hand`` at ``total``."""

        best_score: int | None = None
        best_index: int | None = None
        best_addition = 0
        for index, card in enumerate(hand):
            for addition in card.possible_additions(total):
                if is_wild(card.rank) and total == self.config.joker_pivot:
                    return PlayFromHand(card_index=index, addition=addition)
                score = self.score_play(card, addition, total)
                if best_score is None or score > best_score:
                    best_score = score
                    best_index = index
                    best_addition = addition

        if best_index is not None and best_score is not None and best_score > self.bust_floor:
            return PlayFromHand(card_index=best_index, addition=best_addition)
        if deck_non_empty:
            logger.debug("every hand option busts at %d; drawing instead", total)
            return DrawAndPlay()
        if best_index is not None:
            return PlayFromHand(card_index=best_index, addition=best_addition)
        return DrawAndPlay()


DEFAULT_POLICY = CpuPolicy()


def decide(hand: Sequence[Card], total: int, deck_non_empty: bool) -> PlayerAction:
    return DEFAULT_POLICY.decide(hand, total, deck_non_empty)


def choose_automatic_addition(card: Card, total: int) -> int:
    return DEFAULT_POLICY.choose_automatic_addition(card, total)
