"""Helpers for tracking multi-round 101 match results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .rules import Bust, JokerWin, RoundOutcome, ScoreChange, penalty_for

__all__ = ["RoundSummary", "PlayerMatchTotal", "MatchHistory"]


@dataclass(frozen=True, slots=True)
class RoundSummary:
    """Summary captured after a single round."""

    round_number: int
    outcome: RoundOutcome
    flow_count: int
    turns: int
    changes: Sequence[ScoreChange]
    scores: Sequence[int]

    @property
    def penalty(self) -> int:
        return penalty_for(self.flow_count)


@dataclass(frozen=True, slots=True)
class PlayerMatchTotal:
    """Aggregate totals accumulated across all recorded rounds."""

    player_index: int
    busts: int
    joker_wins: int
    joker_losses: int
    net_points: int


@dataclass(slots=True)
class MatchHistory:
    """Mutable tracker that accumulates round summaries for a match."""

    num_players: int
    rounds: list[RoundSummary] = field(default_factory=list)
    _busts: list[int] = field(init=False, repr=False)
    _joker_wins: list[int] = field(init=False, repr=False)
    _joker_losses: list[int] = field(init=False, repr=False)
    _net: list[int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if self.num_players <= 0:
            raise ValueError("num_players must be positive")
        self._busts = [0 for _ in range(self.num_players)]
        self._joker_wins = [0 for _ in range(self.num_players)]
        self._joker_losses = [0 for _ in range(self.num_players)]
        self._net = [0 for _ in range(self.num_players)]

    def _check_index(self, idx: int) -> None:
        if idx < 0 or idx >= self.num_players:
            raise ValueError("player index out of range")

    def record(self, summary: RoundSummary) -> None:
        """Record ``summary`` and update cumulative totals."""

        if len(summary.scores) != self.num_players:
            raise ValueError("score count does not match number of players")

        outcome = summary.outcome
        if isinstance(outcome, Bust):
            self._check_index(outcome.loser)
            self._busts[outcome.loser] += 1
        elif isinstance(outcome, JokerWin):
            self._check_index(outcome.winner)
            self._check_index(outcome.loser)
            self._joker_wins[outcome.winner] += 1
            self._joker_losses[outcome.loser] += 1

        for change in summary.changes:
            self._check_index(change.player_index)
            self._net[change.player_index] += change.delta
        self.rounds.append(summary)

    @property
    def total_flows(self) -> int:
        return sum(summary.flow_count for summary in self.rounds)

    def totals(self) -> list[PlayerMatchTotal]:
        """Return the cumulative totals for each player in seating order."""

        return [
            PlayerMatchTotal(
                player_index=idx,
                busts=self._busts[idx],
                joker_wins=self._joker_wins[idx],
                joker_losses=self._joker_losses[idx],
                net_points=self._net[idx],
            )
            for idx in range(self.num_players)
        ]
