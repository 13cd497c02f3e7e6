"""Command: project initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from invitectl.commands._base import InviteCommand
from invitectl.domain.types import AssignmentStyle

if TYPE_CHECKING:
    from invitectl.commands._context import AppContext

_INIT_EXAMPLES = """\
  invitectl init
  invitectl init /srv/bot --bot-member 1029384756
  invitectl init . --bot-member 1029384756 --style highest"""


@click.command("init", cls=InviteCommand, examples=_INIT_EXAMPLES)
@click.argument("path", required=False, default=".")
@click.option("--bot-member", default=None, help="Member id the bot acts as.")
@click.option(
    "--style",
    type=click.Choice([s.value for s in AssignmentStyle], case_sensitive=False),
    default=None,
    help="Default rank assignment style.",
)
@click.pass_obj
def init_cmd(app: AppContext, path: str, bot_member: str | None, style: str | None) -> None:
    """Create invitectl.toml and the invite database."""
    from invitectl.services.init import InitService

    app.emit(
        InitService.init_project(
            Path(path).resolve(),
            bot_member_id=bot_member,
            assignment_style=style.lower() if style else None,
        )
    )
