"""
Shared console helpers for the Cedar CLI.
"""

from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from cedar.core.steps import StepType

CEDAR_THEME = Theme({
    "h1": "bold bright_blue",
    "h2": "bold cyan",
    "h3": "bold",
    "success": "green",
    "warning": "yellow",
    "error": "bold red",
    "muted": "dim",
    "info": "cyan",
})

console = Console(theme=CEDAR_THEME)

STEP_COLORS = {
    StepType.GOAL: "bright_blue",
    StepType.TITLE: "bright_blue",
    StepType.REFERENCES: "magenta",
    StepType.ABSTRACT: "magenta",
    StepType.PLAN: "cyan",
    StepType.DATA: "cyan",
    StepType.CODE: "green",
    StepType.RESULTS: "green",
    StepType.EVALUATION: "yellow",
    StepType.WRITEUP: "bright_white",
}

ICONS = {
    "rocket": "🚀",
    "check": "✓",
    "cross": "✗",
    "warning": "⚠",
    "info": "ℹ",
    "book": "📚",
}


def get_icon(name: str) -> str:
    return ICONS.get(name, "")


def get_step_color(step_type: StepType) -> str:
    return STEP_COLORS.get(StepType(step_type), "white")


def print_info(message: str, title: Optional[str] = None):
    if title:
        console.print(Panel(message, title=f"[info]{title}[/info]", border_style="cyan"))
    else:
        console.print(f"[info]{get_icon('info')} {message}[/info]")


def print_success(message: str, title: Optional[str] = None):
    if title:
        console.print(Panel(message, title=f"[success]{title}[/success]", border_style="green"))
    else:
        console.print(f"[success]{get_icon('check')} {message}[/success]")


def print_error(message: str, title: Optional[str] = None):
    if title:
        console.print(Panel(message, title=f"[error]{title}[/error]", border_style="red"))
    else:
        console.print(f"[error]{get_icon('cross')} {message}[/error]")


def create_table(
    title: Optional[str] = None,
    columns: Optional[List[str]] = None,
    show_lines: bool = False,
) -> Table:
    """Create a table with the Cedar look."""
    table = Table(title=title, show_lines=show_lines, header_style="bold cyan")
    for column in columns or []:
        table.add_column(column)
    return table
