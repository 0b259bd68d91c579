"""
Menu choice helpers for the interactive session.
"""
from __future__ import annotations
from typing import Callable, List, Optional

from rich.console import Console

_default_console = Console()


def choose_from_menu(options: List[str], prompt: str = "Choose an option:", *,
                     console: Optional[Console] = None, read: Callable[[str], str] = input) -> int:
    """
    Display a numbered menu and keep asking until the answer is valid.

    Args:
        options: Menu options (rich markup allowed)
        prompt: Heading shown above the options
        console: Where to draw the menu
        read: Line reader; KeyboardInterrupt / EOFError propagate to the caller

    Returns:
        Index of chosen option (0-based)
    """
    out = console or _default_console
    while True:
        out.print(f"\n[bold]{prompt}[/bold]")
        for i, option in enumerate(options, 1):
            out.print(f"  {i}. {option}")
        choice = read("\nEnter choice: ").strip()
        try:
            choice_num = int(choice)
        except ValueError:
            out.print("[red]Please enter a valid number[/red]")
            continue
        if 1 <= choice_num <= len(options):
            return choice_num - 1
        out.print(f"[red]Please enter a number between 1 and {len(options)}[/red]")


__all__ = ["choose_from_menu"]
