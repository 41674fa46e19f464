"""Benchmark harness that plays CPU-only 101 matches and aggregates results."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

import numpy as np

from .match import Match
from .policy import CpuPolicy
from .state import DEFAULT_CONFIG, GameConfig, Player

logger = logging.getLogger(__name__)

__all__ = ["SeatBreakdown", "SimulationReport", "run_simulation"]


@dataclass(frozen=True, slots=True)
class SeatBreakdown:
    """Aggregate statistics collected for a single seat across a benchmark."""

    seat: int
    losses: int
    mean_score: float
    busts: int
    joker_wins: int


@dataclass(frozen=True, slots=True)
class SimulationReport:
    """Summary of a batch of simulated matches."""

    matches: int
    seats: tuple[SeatBreakdown, ...]
    mean_rounds: float
    mean_flows_per_round: float
    incomplete: int


def run_simulation(
    matches: int,
    num_players: int,
    *,
    seed: int = 123,
    config: GameConfig = DEFAULT_CONFIG,
    policy: CpuPolicy | None = None,
    max_rounds: int | None = 500,
) -> SimulationReport:
    """Play ``matches`` CPU-only matches and return per-seat statistics."""

    if matches <= 0:
        raise ValueError("matches must be positive")
    if num_players <= 0:
        raise ValueError("num_players must be positive")

    rng = random.Random(seed)
    final_scores = np.zeros((matches, num_players), dtype=np.int64)
    losses = np.zeros(num_players, dtype=np.int64)
    busts = np.zeros(num_players, dtype=np.int64)
    joker_wins = np.zeros(num_players, dtype=np.int64)
    rounds = np.zeros(matches, dtype=np.int64)
    flows = np.zeros(matches, dtype=np.int64)
    incomplete = 0

    for match_index in range(matches):
        players = [Player(name=f"CPU{seat + 1}") for seat in range(num_players)]
        match = Match(players, config=config, rng=rng, policy=policy)
        result = match.run(max_rounds=max_rounds)

        final_scores[match_index] = result.scores
        rounds[match_index] = result.rounds
        flows[match_index] = result.history.total_flows
        if result.completed:
            losses[result.loser_index] += 1
        else:
            incomplete += 1
        for total in result.history.totals():
            busts[total.player_index] += total.busts
            joker_wins[total.player_index] += total.joker_wins

    logger.info("simulated %d match(es) with %d player(s)", matches, num_players)
    mean_scores = final_scores.mean(axis=0)
    total_rounds = int(rounds.sum())
    seats = tuple(
        SeatBreakdown(
            seat=seat,
            losses=int(losses[seat]),
            mean_score=float(mean_scores[seat]),
            busts=int(busts[seat]),
            joker_wins=int(joker_wins[seat]),
        )
        for seat in range(num_players)
    )
    return SimulationReport(
        matches=matches,
        seats=seats,
        mean_rounds=float(rounds.mean()),
        mean_flows_per_round=float(flows.sum() / total_rounds) if total_rounds else 0.0,
        incomplete=incomplete,
    )
