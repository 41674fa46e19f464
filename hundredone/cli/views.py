"""Composable view primitives for the 101 CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from rich import box
from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table

from ..cards import Card, format_addition


@dataclass(slots=True)
class HandView:
    """Renderable listing a hand with the additions each card offers."""

    hand: Sequence[Card]
    total: int
    card_formatter: Callable[[Card], str]
    title: str = "Your hand"

    def _status_panel(self) -> Panel:
        grid = Table.grid(expand=True)
        grid.add_column(justify="left")
        grid.add_row(f"[cyan]Total[/cyan]: {self.total}")
        grid.add_row(f"[cyan]Cards[/cyan]: {len(self.hand)}")
        return Panel(grid, title="Table", box=box.SQUARE, border_style="blue")

    def render(self) -> RenderableType:
        table = Table(box=box.ROUNDED, expand=True)
        table.add_column("#", justify="right", style="bold")
        table.add_column("Card", justify="left")
        table.add_column("Additions", justify="left")

        if not self.hand:
            table.add_row("-", "[dim]empty[/dim]", "")
        for idx, card in enumerate(self.hand):
            options = ", ".join(format_addition(value) for value in card.possible_additions(self.total))
            table.add_row(str(idx), self.card_formatter(card), options)

        return Group(Panel(table, title=self.title, border_style="cyan"), self._status_panel())
