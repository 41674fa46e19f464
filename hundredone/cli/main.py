"""Typer entry-point wiring for the 101 CLI."""

from __future__ import annotations

import logging
import random
from typing import Sequence

import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.prompt import IntPrompt, Prompt
from rich.table import Table

from ..actions import DrawAndPlay, PlayerAction, PlayFromHand
from ..benchmark import run_simulation
from ..cards import Card
from ..events import EventType, GameEvent
from ..match import Match
from ..state import DEFAULT_CONFIG, Player, PlayerSeed
from .render import describe_event, format_card, render_match_summary, render_scoreboard
from .views import HandView

app = typer.Typer(add_completion=False, rich_markup_mode="rich")
console = Console()

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def configure_logging(level: str) -> None:
    """Route library logging through a Rich handler on stderr."""

    level = level.upper()
    if level not in LOG_LEVELS:
        raise typer.BadParameter(f"log level must be one of {', '.join(LOG_LEVELS)}")
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def build_roster(cpus: int, humans: int) -> list[PlayerSeed]:
    """Seat humans first, then CPU players."""

    seeds: list[PlayerSeed] = []
    for idx in range(humans):
        name = "You" if humans == 1 else f"Player {idx + 1}"
        seeds.append(PlayerSeed(name=name, is_human=True))
    for idx in range(cpus):
        seeds.append(PlayerSeed(name=f"CPU{idx + 1}", is_human=False))
    return seeds


class ConsoleHumanInput:
    """Prompts a human at the console, re-prompting until the choice is legal."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def request_action(self, player: Player, hand: Sequence[Card], total: int) -> PlayerAction:
        while True:
            self.console.print(HandView(hand, total, format_card, title=f"{player.name}'s hand").render())
            choice = Prompt.ask(
                "Choose: [bold]1[/bold] play from hand and draw, [bold]2[/bold] draw and play",
                choices=["1", "2"],
                console=self.console,
            )
            if choice == "2":
                return DrawAndPlay()
            if not hand:
                self.console.print("[red]Your hand is empty; draw instead.[/red]")
                continue
            index = IntPrompt.ask("Card number", console=self.console)
            if index < 0 or index >= len(hand):
                self.console.print("[red]Invalid card number.[/red]")
                continue
            addition = self.request_addition(hand[index], total)
            return PlayFromHand(card_index=index, addition=addition)

    def request_addition(self, card: Card, total: int) -> int:
        options = card.possible_additions(total)
        if len(options) == 1:
            return options[0]
        answer = Prompt.ask(
            f"Value for {format_card(card)}",
            choices=[str(value) for value in options],
            console=self.console,
        )
        return int(answer)


class EventNarrator:
    """Event sink printing a line per event and the scores after every round."""

    def __init__(self, console: Console, players: Sequence[Player]) -> None:
        self.console = console
        self.players = players

    def __call__(self, event: GameEvent) -> None:
        if event.event_type == EventType.ROUND_ENDED:
            self.console.print(render_scoreboard(self.players, title=f"After round {event.round_number}"))
            return
        line = describe_event(event, [player.name for player in self.players], DEFAULT_CONFIG)
        if line is not None:
            self.console.print(line)


@app.command()
def play(
    cpus: int = typer.Option(2, min=0, help="Number of CPU players."),
    humans: int = typer.Option(1, min=0, help="Human-controlled seats, seated before the CPUs."),
    seed: int | None = typer.Option(None, help="Random seed for reproducible games (omit for randomness)."),
    log_level: str = typer.Option("WARNING", help="Log level for engine diagnostics."),
) -> None:
    """Play a match of 101 at the console."""

    if cpus + humans == 0:
        raise typer.BadParameter("At least one player is required.")
    configure_logging(log_level)

    roster = build_roster(cpus, humans)
    match = Match.from_roster(
        lambda: roster,
        rng=random.Random(seed),
        human_input=ConsoleHumanInput(console) if humans else None,
    )
    match.report_event = EventNarrator(console, match.players)

    console.print("[bold cyan]=== Welcome to 101 ===[/bold cyan]")
    console.print(f"Push the total over {DEFAULT_CONFIG.threshold} and you lose the round.")
    console.print(f"Land a JOKER on exactly {DEFAULT_CONFIG.joker_pivot} to win outright!")

    result = match.run()

    loser = match.players[result.loser_index]
    console.print(f"\n[bold]*** Game over ***[/bold] {loser.name} loses with {loser.score} point(s).")
    console.print(render_scoreboard(match.players, title="Final Scores"))
    console.print(render_match_summary(result.history, match.players))


@app.command()
def simulate(
    matches: int = typer.Option(100, min=1, help="Number of CPU-only matches."),
    players: int = typer.Option(3, min=1, help="Seats per match."),
    seed: int = typer.Option(123, help="Random seed for the simulation."),
    log_level: str = typer.Option("WARNING", help="Log level for engine diagnostics."),
) -> None:
    """Run CPU-only matches and report per-seat statistics."""

    configure_logging(log_level)
    report = run_simulation(matches, players, seed=seed)

    table = Table(title="Simulation", box=box.SIMPLE_HEAVY)
    table.add_column("Seat", justify="center")
    table.add_column("Losses", justify="right")
    table.add_column("Mean score", justify="right")
    table.add_column("Busts", justify="right")
    table.add_column("Joker wins", justify="right")
    for seat in report.seats:
        table.add_row(
            f"CPU{seat.seat + 1}",
            str(seat.losses),
            f"{seat.mean_score:.2f}",
            str(seat.busts),
            str(seat.joker_wins),
        )
    console.print(table)
    console.print(
        f"[cyan]{report.matches} match(es); {report.mean_rounds:.2f} round(s) per match, "
        f"{report.mean_flows_per_round:.2f} flow(s) per round.[/cyan]"
    )
    if report.incomplete:
        console.print(f"[yellow]{report.incomplete} match(es) hit the round cap.[/yellow]")


def main() -> None:
    """Entry-point for the ``hundredone`` console script."""

    app()


if __name__ == "__main__":  # pragma: no cover - CLI invocation
    main()
