"""Rendering helpers dedicated to the CLI experience."""

from __future__ import annotations

from typing import Sequence

from rich import box
from rich.table import Table

from ..cards import Card, Suit, format_addition
from ..events import EventType, GameEvent
from ..scoreboard import MatchHistory
from ..state import DEFAULT_CONFIG, GameConfig, Player

_SUIT_COLORS = {
    Suit.SPADES: "cyan",
    Suit.HEARTS: "red",
    Suit.DIAMONDS: "magenta",
    Suit.CLUBS: "green",
}


def format_card(card: Card) -> str:
    """Return a Rich-rendered label for ``card``."""

    if card.is_joker:
        return "[bold magenta]JOKER[/bold magenta]"
    color = _SUIT_COLORS.get(card.suit, "white") if card.suit is not None else "white"
    return f"[{color}]{card.label()}[/{color}]"


def _name(names: Sequence[str], index: object) -> str:
    if isinstance(index, int) and 0 <= index < len(names):
        return f"[cyan]{names[index]}[/cyan]"
    return "[dim]?[/dim]"


def describe_event(
    event: GameEvent,
    names: Sequence[str],
    config: GameConfig = DEFAULT_CONFIG,
) -> str | None:
    """Return a markup line narrating ``event``, or ``None`` for silent events."""

    data = event.data
    who = _name(names, event.player_index)
    kind = event.event_type

    if kind == EventType.ROUND_STARTED:
        return f"\n[bold]--- Round {event.round_number} ---[/bold] {who} starts."
    if kind == EventType.TURN_STARTED:
        line = f"\nTotal: [bold]{data['total']}[/bold] • Turn: {who}"
        if data.get("flow_count"):
            line += f" • losing now costs [red]-{data['penalty']}[/red]"
        return line
    if kind == EventType.CARD_DRAWN:
        return f"{who} draws {data['card']} from the deck."
    if kind == EventType.CARD_PLAYED:
        source = "the drawn" if data.get("drawn") else "hand card"
        return f"{who} plays {source} {data['card']} ({format_addition(data['addition'])})."
    if kind == EventType.TURN_SKIPPED:
        return f"{who} has no card to play and skips the turn."
    if kind == EventType.DECK_RESHUFFLED:
        return "[yellow]The deck ran out; the discard pile was shuffled back in.[/yellow]"
    if kind == EventType.DIRECTION_REVERSED:
        arrow = "clockwise" if data.get("direction", 1) > 0 else "counter-clockwise"
        return f"[yellow]A 9 reverses play; now {arrow}.[/yellow]"
    if kind == EventType.TOTAL_CHANGED:
        return f"Total is now [bold]{data['total']}[/bold]."
    if kind == EventType.FLOW:
        return (
            f"[green]The total hits exactly {config.threshold} and flows![/green] "
            f"Losing now costs [red]-{data['penalty']}[/red]."
        )
    if kind == EventType.BUST:
        return f"[bold red]Total {data['total']} is over {config.threshold}![/bold red] {who} loses the round."
    if kind == EventType.JOKER_WIN:
        loser = _name(names, data.get("loser"))
        return f"[bold magenta]JOKER on {config.joker_pivot}![/bold magenta] {who} wins outright; {loser} pays."
    if kind == EventType.SCORE_CHANGED:
        return f"{who} {format_addition(data['delta'])} point(s), now {data['score']}."
    return None


def render_scoreboard(players: Sequence[Player], *, title: str = "Scores") -> Table:
    """Return a Rich table with every player's current score."""

    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("Player", justify="left")
    table.add_column("Role", justify="center")
    table.add_column("Score", justify="right")

    lowest = min((player.score for player in players), default=0)
    for player in players:
        role = "Human" if player.is_human else "CPU"
        score = str(player.score)
        if player.score == lowest and lowest < 0:
            score = f"[bold red]{score}[/bold red]"
        table.add_row(player.name, role, score)
    return table


def render_match_summary(history: MatchHistory, players: Sequence[Player]) -> Table:
    """Return the aggregated match summary table."""

    table = Table(title="Match Summary", box=box.DOUBLE_EDGE)
    table.add_column("Player", justify="center")
    table.add_column("Busts", justify="right")
    table.add_column("Joker wins", justify="right")
    table.add_column("Joker losses", justify="right")
    table.add_column("Net", justify="right")

    for total in history.totals():
        table.add_row(
            players[total.player_index].name,
            str(total.busts),
            str(total.joker_wins),
            str(total.joker_losses),
            str(total.net_points),
        )
    return table
