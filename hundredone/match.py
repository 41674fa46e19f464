"""Round and match orchestration for 101."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol, Sequence

from . import rules
from .actions import PlayerAction
from .cards import Card
from .events import EventSink, EventType, GameEvent, null_sink
from .policy import CpuPolicy
from .scoreboard import MatchHistory, RoundSummary
from .state import DEFAULT_CONFIG, Deck, GameConfig, Player, PlayerSeed, RoundState, deal_new_round

logger = logging.getLogger(__name__)

__all__ = ["HumanInput", "RosterSource", "MatchResult", "Match"]


class HumanInput(Protocol):
    """Blocking source of human decisions.

    Implementations re-prompt until the choice is legal; the engine raises
    ``InvalidAction`` on anything else.
    """

    def request_action(self, player: Player, hand: Sequence[Card], total: int) -> PlayerAction:
        ...

    def request_addition(self, card: Card, total: int) -> int:
        ...


RosterSource = Callable[[], Sequence[PlayerSeed]]


@dataclass(frozen=True, slots=True)
class MatchResult:
    """Final standing of a match."""

    loser_index: int
    rounds: int
    scores: tuple[int, ...]
    history: MatchHistory
    completed: bool = True


class Match:
    """Owns the roster and scores, and drives rounds until someone hits the floor."""

    def __init__(
        self,
        players: Iterable[Player],
        *,
        config: GameConfig = DEFAULT_CONFIG,
        rng: random.Random | None = None,
        human_input: HumanInput | None = None,
        report_event: EventSink = null_sink,
        policy: CpuPolicy | None = None,
    ) -> None:
        self.players = list(players)
        if not self.players:
            raise ValueError("a match needs at least one player")
        if human_input is None and any(player.is_human for player in self.players):
            raise ValueError("human players require a human input source")
        self.config = config
        self.rng = rng if rng is not None else random.Random()
        self.human_input = human_input
        self.report_event = report_event
        self.policy = policy if policy is not None else CpuPolicy(config=config)
        self.history = MatchHistory(num_players=len(self.players))
        self.round_number = 0

    @classmethod
    def from_roster(cls, request_player_roster: RosterSource, **kwargs) -> "Match":
        """Seat the players returned by ``request_player_roster``."""

        seeds = request_player_roster()
        return cls([Player.from_seed(seed) for seed in seeds], **kwargs)

    def _emit(self, event_type: EventType, player_index: int | None = None, **data) -> None:
        self.report_event(
            GameEvent(
                event_type=event_type,
                round_number=self.round_number,
                player_index=player_index,
                data=data,
            )
        )

    def is_over(self) -> bool:
        floor = self.config.floor_score
        return any(player.score <= floor for player in self.players)

    def loser_index(self) -> int:
        """Return the seat with the lowest score, first found on ties."""

        return min(range(len(self.players)), key=lambda idx: self.players[idx].score)

    def _human(self) -> HumanInput:
        if self.human_input is None:  # pragma: no cover - guarded in __init__
            raise RuntimeError("no human input source configured")
        return self.human_input

    def _choose_action(self, player: Player, round_state: RoundState, deck: Deck) -> PlayerAction:
        if player.is_human:
            return self._human().request_action(player, list(player.hand), round_state.total)
        action = self.policy.decide(player.hand, round_state.total, not deck.is_empty)
        logger.debug("%s chose %r at total %d", player.name, action, round_state.total)
        return action

    def _addition_chooser(self, player: Player) -> rules.AdditionChooser:
        if not player.is_human:
            return self.policy.choose_automatic_addition
        human = self._human()

        def choose(card: Card, total: int) -> int:
            options = card.possible_additions(total)
            if len(options) == 1:
                return options[0]
            return human.request_addition(card, total)

        return choose

    def play_round(self) -> RoundSummary:
        """Deal and play one round to its outcome, then record the summary."""

        self.round_number += 1
        deck, round_state = deal_new_round(self.players, self.config, self.rng)
        self._emit(EventType.ROUND_STARTED, round_state.current_index)
        self._emit(EventType.CARDS_DEALT, None, draw_pile=len(deck))

        result: rules.TurnResult | None = None
        while not round_state.is_over:
            actor = round_state.current_index
            player = self.players[actor]
            self._emit(
                EventType.TURN_STARTED,
                actor,
                total=round_state.total,
                flow_count=round_state.flow_count,
                penalty=rules.penalty_for(round_state.flow_count),
            )
            action = self._choose_action(player, round_state, deck)
            result = rules.play_turn(
                round_state,
                self.players,
                deck,
                action,
                choose_addition=self._addition_chooser(player),
                automatic_addition=self.policy.choose_automatic_addition,
                config=self.config,
                report_event=self.report_event,
                round_number=self.round_number,
            )

        outcome = round_state.outcome
        if outcome is None:  # pragma: no cover - loop exits only on an outcome
            raise rules.RoundInvariantError("round ended without an outcome")
        changes = result.score_changes if result is not None else ()
        summary = RoundSummary(
            round_number=self.round_number,
            outcome=outcome,
            flow_count=round_state.flow_count,
            turns=round_state.turn_index,
            changes=changes,
            scores=tuple(player.score for player in self.players),
        )
        self.history.record(summary)
        self._emit(EventType.ROUND_ENDED, None, scores=summary.scores, penalty=summary.penalty)
        logger.info("round %d ended after %d turn(s): %r", self.round_number, summary.turns, outcome)
        return summary

    def run(self, max_rounds: int | None = None) -> MatchResult:
        """Play rounds until a score reaches the floor or ``max_rounds`` is hit."""

        while not self.is_over():
            if max_rounds is not None and self.round_number >= max_rounds:
                break
            self.play_round()

        loser = self.loser_index()
        completed = self.is_over()
        self._emit(EventType.MATCH_ENDED, loser, completed=completed)
        logger.info("match over after %d round(s); loser %s", self.round_number, self.players[loser].name)
        return MatchResult(
            loser_index=loser,
            rounds=self.round_number,
            scores=tuple(player.score for player in self.players),
            history=self.history,
            completed=completed,
        )
