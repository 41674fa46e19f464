"""Turn resolution, outcome classification and scoring for 101."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Sequence, Union

from .actions import (
    InvalidAction,
    PlayerAction,
    PlayFromHand,
    validate_action,
    validate_addition,
)
from .cards import Card, is_reversing, is_skip, is_wild
from .events import EventSink, EventType, GameEvent, null_sink
from .policy import CpuPolicy
from .state import DEFAULT_CONFIG, Deck, GameConfig, Player, RoundState, TurnPhase

logger = logging.getLogger(__name__)

__all__ = [
    "OutcomeKind",
    "Bust",
    "JokerWin",
    "RoundOutcome",
    "ScoreChange",
    "TurnResult",
    "InvalidAction",
    "RoundAlreadyOver",
    "RoundInvariantError",
    "effective_addition",
    "classify",
    "next_player_index",
    "penalty_for",
    "apply_outcome",
    "play_turn",
]


class RoundAlreadyOver(RuntimeError):
    """Raised when a turn is requested after the round has ended."""


class RoundInvariantError(RuntimeError):
    """Raised when round bookkeeping reaches a state the rules rule out."""


class OutcomeKind(str, Enum):
    """Classification of a resolved turn."""

    NORMAL = "normal"
    FLOW = "flow"
    BUST = "bust"
    JOKER_WIN = "joker_win"
    SKIPPED = "skipped"

    @property
    def ends_round(self) -> bool:
        return self in (OutcomeKind.BUST, OutcomeKind.JOKER_WIN)


@dataclass(frozen=True, slots=True)
class Bust:
    """The current player pushed the total past the threshold."""

    loser: int


@dataclass(frozen=True, slots=True)
class JokerWin:
    """A joker landed on the pivot total; the previous actor pays."""

    winner: int
    loser: int


RoundOutcome = Union[Bust, JokerWin]


@dataclass(frozen=True, slots=True)
class ScoreChange:
    """Score delta applied to a single player at the end of a round."""

    player_index: int
    delta: int
    score: int


@dataclass(frozen=True, slots=True)
class TurnResult:
    """Everything that happened during one resolved turn."""

    player_index: int
    kind: OutcomeKind
    card: Card | None
    addition: int
    effective_addition: int
    drew_from_deck: bool
    total_before: int
    total_after: int
    direction: int
    outcome: RoundOutcome | None = None
    score_changes: tuple[ScoreChange, ...] = ()


AdditionChooser = Callable[[Card, int], int]


def effective_addition(card: Card, addition: int) -> int:
    """Return what ``card`` really adds to the total when played for ``addition``."""

    return 0 if is_skip(card.rank) else addition


def classify(
    card: Card,
    total: int,
    effective: int,
    config: GameConfig = DEFAULT_CONFIG,
) -> OutcomeKind:
    """Classify playing ``card`` on ``total``; joker win, bust, flow, normal in that order."""

    if is_wild(card.rank) and total == config.joker_pivot:
        return OutcomeKind.JOKER_WIN
    new_total = total + effective
    if new_total > config.threshold:
        return OutcomeKind.BUST
    if new_total == config.threshold:
        return OutcomeKind.FLOW
    return OutcomeKind.NORMAL


def next_player_index(index: int, direction: int, player_count: int) -> int:
    """Step ``direction`` seats away from ``index``, wrapping in both directions."""

    if player_count <= 0:
        raise ValueError("player_count must be positive")
    return (index + direction) % player_count


def penalty_for(flow_count: int) -> int:
    """Return the stake of a round that saw ``flow_count`` flows."""

    return flow_count + 1


def apply_outcome(
    players: Sequence[Player],
    outcome: RoundOutcome,
    flow_count: int,
) -> list[ScoreChange]:
    """Apply the round-ending ``outcome`` to player scores and return the deltas."""

    penalty = penalty_for(flow_count)
    if isinstance(outcome, Bust):
        deltas = [(outcome.loser, -penalty)]
    elif isinstance(outcome, JokerWin):
        deltas = [(outcome.winner, penalty), (outcome.loser, -penalty)]
    else:  # pragma: no cover - closed union
        raise TypeError(f"unknown outcome {outcome!r}")

    changes: list[ScoreChange] = []
    for index, delta in deltas:
        players[index].score += delta
        changes.append(ScoreChange(player_index=index, delta=delta, score=players[index].score))
    return changes


def _draw(
    deck: Deck,
    round_state: RoundState,
    emit: Callable[..., None],
) -> Card | None:
    reshuffles = deck.reshuffle_count
    card = deck.draw(round_state.discard)
    if deck.reshuffle_count != reshuffles:
        emit(EventType.DECK_RESHUFFLED, None, size=len(deck) + 1)
    return card


def _check_joker_win_has_loser(
    card: Card,
    total: int,
    round_state: RoundState,
    config: GameConfig,
) -> None:
    if is_wild(card.rank) and total == config.joker_pivot and round_state.previous_index is None:
        raise RoundInvariantError("joker win without a recorded previous actor")


def play_turn(
    round_state: RoundState,
    players: Sequence[Player],
    deck: Deck,
    action: PlayerAction,
    *,
    choose_addition: AdditionChooser | None = None,
    automatic_addition: AdditionChooser | None = None,
    config: GameConfig = DEFAULT_CONFIG,
    report_event: EventSink = null_sink,
    round_number: int = 0,
) -> TurnResult:
    """Resolve ``action`` for the active player and advance the round.

    ``choose_addition`` supplies the value for a card drawn from the deck and
    ``automatic_addition`` the value for a hand card forced out by an empty
    deck; both default to the CPU policy's automatic choice.

    Errors raised before the card is played (``InvalidAction``,
    ``RoundInvariantError`` or anything escaping ``choose_addition``) leave
    hands, deck, discard and phase as they were. A discard pile recycled by
    the failed draw is put back; only the shuffle's randomness is spent.
    """

    if round_state.is_over:
        raise RoundAlreadyOver("the round has already ended")
    if not players:
        raise ValueError("cannot play a turn without players")

    def emit(event_type: EventType, player_index: int | None, **data: Any) -> None:
        report_event(
            GameEvent(
                event_type=event_type,
                round_number=round_number,
                player_index=player_index,
                data=data,
            )
        )

    automatic = (
        automatic_addition
        if automatic_addition is not None
        else CpuPolicy(config=config).choose_automatic_addition
    )
    chooser = choose_addition if choose_addition is not None else automatic

    actor = round_state.current_index
    player = players[actor]
    total = round_state.total
    validate_action(action, player.hand, total)

    drew_from_deck = False
    if isinstance(action, PlayFromHand):
        _check_joker_win_has_loser(player.hand[action.card_index], total, round_state, config)
        card = player.hand.pop(action.card_index)
        addition = action.addition
    else:
        saved_cards = list(deck.cards)
        saved_discard = list(round_state.discard)
        saved_reshuffles = deck.reshuffle_count
        drawn = deck.draw(round_state.discard)
        if drawn is None:
            if not player.hand:
                logger.debug("%s has no card to play; skipping turn", player.name)
                round_state.turn_index += 1
                round_state.current_index = next_player_index(
                    actor, round_state.direction, len(players)
                )
                emit(EventType.TURN_SKIPPED, actor)
                return TurnResult(
                    player_index=actor,
                    kind=OutcomeKind.SKIPPED,
                    card=None,
                    addition=0,
                    effective_addition=0,
                    drew_from_deck=False,
                    total_before=total,
                    total_after=total,
                    direction=round_state.direction,
                )
            _check_joker_win_has_loser(player.hand[0], total, round_state, config)
            card = player.hand.pop(0)
            addition = automatic(card, total)
            logger.debug("deck exhausted; %s plays %s from hand", player.name, card.label())
        else:
            try:
                addition = chooser(drawn, total)
                validate_addition(drawn, addition, total)
                _check_joker_win_has_loser(drawn, total, round_state, config)
            except BaseException:
                deck.cards = saved_cards
                round_state.discard[:] = saved_discard
                deck.reshuffle_count = saved_reshuffles
                raise
            drew_from_deck = True
            card = drawn
            if deck.reshuffle_count != saved_reshuffles:
                emit(EventType.DECK_RESHUFFLED, None, size=len(deck) + 1)
            emit(EventType.CARD_DRAWN, actor, card=card.label())

    round_state.phase = TurnPhase.RESOLVING
    emit(EventType.CARD_PLAYED, actor, card=card.label(), addition=addition, drawn=drew_from_deck)

    if is_reversing(card.rank):
        round_state.direction *= -1
        emit(EventType.DIRECTION_REVERSED, actor, direction=round_state.direction)

    effective = effective_addition(card, addition)
    new_total = total + effective
    kind = classify(card, total, effective, config)
    outcome: RoundOutcome | None = None

    if kind == OutcomeKind.JOKER_WIN:
        loser = round_state.previous_index
        if loser is None:  # pragma: no cover - checked before the card left play
            raise RoundInvariantError("joker win without a recorded previous actor")
        outcome = JokerWin(winner=actor, loser=loser)
        new_total = total
        emit(EventType.JOKER_WIN, actor, winner=actor, loser=loser)
    elif kind == OutcomeKind.BUST:
        outcome = Bust(loser=actor)
        emit(EventType.BUST, actor, total=new_total)
    elif kind == OutcomeKind.FLOW:
        round_state.flow_count += 1
        round_state.total = 0
        emit(
            EventType.FLOW,
            actor,
            flow_count=round_state.flow_count,
            penalty=penalty_for(round_state.flow_count),
        )
    else:
        round_state.total = new_total
        emit(EventType.TOTAL_CHANGED, actor, total=new_total)

    round_state.discard.append(card)
    if not drew_from_deck:
        replacement = _draw(deck, round_state, emit)
        if replacement is not None:
            player.hand.append(replacement)

    round_state.turn_index += 1
    logger.debug(
        "%s played %s (%+d) on %d: %s",
        player.name,
        card.label(),
        addition,
        total,
        kind.value,
    )

    score_changes: tuple[ScoreChange, ...] = ()
    if outcome is not None:
        round_state.phase = TurnPhase.ROUND_ENDED
        round_state.outcome = outcome
        score_changes = tuple(apply_outcome(players, outcome, round_state.flow_count))
        for change in score_changes:
            emit(EventType.SCORE_CHANGED, change.player_index, delta=change.delta, score=change.score)
    else:
        round_state.previous_index = actor
        round_state.current_index = next_player_index(actor, round_state.direction, len(players))
        round_state.phase = TurnPhase.AWAITING_ACTION

    return TurnResult(
        player_index=actor,
        kind=kind,
        card=card,
        addition=addition,
        effective_addition=effective,
        drew_from_deck=drew_from_deck,
        total_before=total,
        total_after=0 if kind == OutcomeKind.FLOW else new_total,
        direction=round_state.direction,
        outcome=outcome,
        score_changes=score_changes,
    )
