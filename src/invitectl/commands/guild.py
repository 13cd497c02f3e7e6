"""Command group: per-guild settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from invitectl.commands._base import InviteGroup
from invitectl.infrastructure.repositories.guild import SETTING_KEYS

if TYPE_CHECKING:
    from invitectl.commands._context import AppContext

_GUILD_EXAMPLES = """\
  invitectl guild show 4100
  invitectl guild set 4100 rank_assignment_style highest
  invitectl guild set 4100 rank_announcement_channel 7700
  invitectl guild set 4100 rank_announcement_message "{memberMention} is now {rankName}!"
  invitectl guild set 4100 rank_announcement_channel --reset"""


@click.group(cls=InviteGroup, examples=_GUILD_EXAMPLES)
def guild() -> None:
    """Show and change guild settings."""


@guild.command(examples="  invitectl guild show 4100")
@click.argument("guild_id")
@click.pass_obj
def show(app: AppContext, guild_id: str) -> None:
    """Show the guild's effective settings."""
    from invitectl.services.guild import GuildService

    app.emit(GuildService(app.tracker).get_settings(guild_id))


@guild.command(
    "set",
    examples="""\
  invitectl guild set 4100 rank_assignment_style highest
  invitectl guild set 4100 rank_announcement_channel --reset""",
)
@click.argument("guild_id")
@click.argument("key", metavar=f"{{{'|'.join(sorted(SETTING_KEYS))}}}")
@click.argument("value", required=False, default=None)
@click.option("--reset", is_flag=True, help="Remove the override and use the default.")
@click.pass_obj
def set_cmd(app: AppContext, guild_id: str, key: str, value: str | None, reset: bool) -> None:
    """Change one setting."""
    from invitectl.services.guild import GuildService

    if value is None and not reset:
        raise click.UsageError("Give a VALUE or pass --reset.")
    app.emit(GuildService(app.tracker).set_setting(guild_id, key, None if reset else value))
