"""Rich Console factory and theme for invitectl output.

Consoles render to a StringIO buffer so renderers keep a plain
``render_result() -> str`` contract. Outside a terminal (tests, pipes)
Rich drops color codes on its own.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

INVITE_THEME = Theme(
    {
        "inv.ok": "bold green",
        "inv.error": "bold red",
        "inv.warning": "bold yellow",
        "inv.op": "bold cyan",
        "inv.key": "dim",
        "inv.id": "bold blue",
        "inv.name": "bold",
        "inv.total": "bold magenta",
        "inv.positive": "green",
        "inv.negative": "red",
        "inv.blocked": "yellow",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=INVITE_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()


def style_for_amount(amount: int) -> str:
    """Green for credit, red for debit, nothing for zero."""
    if amount > 0:
        return "inv.positive"
    if amount < 0:
        return "inv.negative"
    return ""
