"""Terminal battle UI built on rich.

Draws the field before each turn (names, gender, level, coloured type badges,
HP bars, status badges and weather), prints notifications as they arrive and
lets a human pick actions through numbered menus.
"""
from __future__ import annotations
from typing import Callable, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.box import ROUNDED

from battlesim.battle.decisions import Action, MoveChoice
from battlesim.battle.engine import Battle, Outcome
from battlesim.battle.models import Combatant, Status, Team, Weather
from battlesim.battle.moves import MoveInstance
from battlesim.core.types import colorize_type_text, format_types, type_abbreviation
from battlesim.ui.input import choose_from_menu

console = Console()

_STATUS_STYLES = {
    Status.BURNED: "bold white on #EE8130",
    Status.POISONED: "bold white on #A33EA1",
    Status.TOXIC: "bold white on #7B2D7A",
    Status.FROZEN: "bold black on #96D9D6",
    Status.PARALYZED: "bold black on #F7D02C",
    Status.ASLEEP: "bold white on #6E6E6E",
    Status.FAINTED: "bold white on red",
}

_OUTCOME_TEXT = {
    Outcome.WIN: ("[bold green]You won the battle![/]", "green"),
    Outcome.LOSS: ("[bold red]You lost the battle...[/]", "red"),
    Outcome.ESCAPED: ("[bold yellow]The battle ended without a winner.[/]", "yellow"),
}


def hp_bar(cur: int, max_hp: int, width: int = 20) -> Text:
    """Block bar coloured green above half, yellow above a fifth, red below."""
    max_hp = max(1, max_hp)
    cur = max(0, min(cur, max_hp))
    ratio = cur / max_hp
    filled = max(0, min(width, int(round(ratio * width))))
    if ratio > 0.5:
        style = "green"
    elif ratio > 0.2:
        style = "yellow"
    else:
        style = "red"
    bar = Text("█" * filled, style=style)
    bar.append("░" * (width - filled), style="grey37")
    return bar


def status_badge(status: Status) -> Text:
    if status is Status.NONE:
        return Text("")
    return Text(f" {status.value} ", style=_STATUS_STYLES.get(status, "bold"))


def combatant_row(c: Combatant) -> List[object]:
    name = Text.from_markup(f"[bold]{c.label}[/bold] Lv{c.level}")
    types = Text.from_markup(format_types(c.types))
    hp = hp_bar(c.current_health, c.max_health)
    hp.append(f" {c.current_health}/{c.max_health}")
    return [name, types, hp, status_badge(c.status)]


def render_field(battle: Battle, out: Optional[Console] = None):
    out = out or console
    for team, title in ((Team.ENEMY, "Foes"), (Team.ALLY, "Your team")):
        table = Table(box=ROUNDED, show_header=False, expand=False)
        for _ in range(4):
            table.add_column()
        side = battle.side(team)
        for c in side.active:
            table.add_row(*combatant_row(c))
        bench = sum(1 for c in side.reserve if c.current_health > 0)
        out.print(Panel(table, title=f"{title} ({bench} in reserve)", expand=False))
    if battle.weather is not Weather.NONE:
        out.print(f"[italic cyan]It is {battle.weather.value}.[/]")
    out.print(f"[dim]Turn {battle.turn + 1}[/dim]")


def render_outcome(outcome: Outcome, out: Optional[Console] = None):
    out = out or console
    text, style = _OUTCOME_TEXT.get(outcome, _OUTCOME_TEXT[Outcome.ESCAPED])
    out.print(Panel(Text.from_markup(text), border_style=style, expand=False))


def console_sink(out: Optional[Console] = None) -> Callable[[str], None]:
    """Notification callback that prints each battle message."""
    target = out or console

    def _print(text: str):
        target.print(text, markup=False, highlight=False)
    return _print


def move_label(move: MoveInstance) -> str:
    points = "--" if move.points is None else f"{move.points}/{move.max_points}"
    badge = colorize_type_text(move.type, type_abbreviation(move.type))
    return f"{move.name} ({badge}) {move.category.value} PP {points}"


class HumanDecisions:
    """Decision provider backed by console menus.

    An interrupt or end of input at the action menu chooses Run; elsewhere it
    propagates and the session reports an escape.
    """

    def __init__(self, out: Optional[Console] = None, read: Callable[[str], str] = input):
        self.out = out or console
        self.read = read

    def _menu(self, options: List[str], prompt: str) -> int:
        return choose_from_menu(options, prompt, console=self.out, read=self.read)

    def choose_action(self, combatant: Combatant, battle: Battle) -> Action:
        actions = list(Action)
        try:
            idx = self._menu([a.value for a in actions], f"What will {combatant.label} do?")
        except (KeyboardInterrupt, EOFError):
            return Action.RUN
        return actions[idx]

    def choose_move(self, combatant: Combatant, battle: Battle) -> MoveChoice:
        moves = battle.usable_moves(combatant)
        move = moves[self._menu([move_label(m) for m in moves], f"Which move should {combatant.label} use?")]
        targets = battle.target_candidates(combatant, move)
        if len(targets) > 1:
            labels = [f"{t.label} ({t.current_health}/{t.max_health})" for t in targets]
            return MoveChoice(move, targets[self._menu(labels, "Target which foe?")])
        return MoveChoice(move, targets[0] if targets else None)

    def choose_switch(self, combatant: Combatant, battle: Battle) -> Optional[Combatant]:
        candidates = battle.switch_candidates(combatant)
        if not candidates:
            return None
        labels = [f"{c.label} Lv{c.level} ({c.current_health}/{c.max_health})" for c in candidates]
        forced = combatant.current_health <= 0
        if not forced:
            labels.append("Cancel")
        idx = self._menu(labels, "Send out which creature?")
        if idx >= len(candidates):
            return None
        return candidates[idx]


__all__ = [
    "HumanDecisions", "render_field", "render_outcome", "console_sink", "hp_bar", "status_badge", "move_label",
]
