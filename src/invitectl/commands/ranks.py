"""Command group: rank thresholds and promotion checks."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from invitectl.commands._base import InviteGroup

if TYPE_CHECKING:
    from invitectl.commands._context import AppContext

_RANKS_EXAMPLES = """\
  invitectl ranks add 4100 9001 5 --description "Recruiter"
  invitectl ranks list 4100
  invitectl ranks check 4100 2200
  invitectl ranks check 4100 2200 --total 12 --dry-run
  invitectl ranks remove 4100 9001"""


@click.group(cls=InviteGroup, examples=_RANKS_EXAMPLES)
def ranks() -> None:
    """Manage ranks unlocked by invite totals."""


@ranks.command(
    examples="""\
  invitectl ranks add 4100 9001 5
  invitectl ranks add 4100 9002 10 --description 'Ambassador'"""
)
@click.argument("guild_id")
@click.argument("role_id")
@click.argument("num_invites", type=int)
@click.option("--description", default=None, help="Shown next to the rank.")
@click.pass_obj
def add(
    app: AppContext, guild_id: str, role_id: str, num_invites: int, description: str | None
) -> None:
    """Add a rank, or change the threshold of an existing one."""
    from invitectl.services.ranks import RankService

    app.emit(
        RankService(app.tracker).add_rank(guild_id, role_id, num_invites, description=description)
    )


@ranks.command(examples="  invitectl ranks remove 4100 9001")
@click.argument("guild_id")
@click.argument("role_id")
@click.pass_obj
def remove(app: AppContext, guild_id: str, role_id: str) -> None:
    """Remove a rank."""
    from invitectl.services.ranks import RankService

    app.emit(RankService(app.tracker).remove_rank(guild_id, role_id))


@ranks.command("list", examples="  invitectl ranks list 4100")
@click.argument("guild_id")
@click.pass_obj
def list_cmd(app: AppContext, guild_id: str) -> None:
    """List ranks by ascending threshold."""
    from invitectl.services.ranks import RankService

    app.emit(RankService(app.tracker).list_ranks(guild_id))


@ranks.command(
    examples="""\
  invitectl ranks check 4100 2200
  invitectl ranks check 4100 2200 --dry-run
  invitectl --json ranks check 4100 2200 --total 12"""
)
@click.argument("guild_id")
@click.argument("member_id")
@click.option("--total", type=int, default=None, help="Evaluate against this total.")
@click.option("--dry-run", is_flag=True, help="Show the plan without changing roles.")
@click.pass_obj
def check(
    app: AppContext, guild_id: str, member_id: str, total: int | None, dry_run: bool
) -> None:
    """Grant or revoke rank roles so the member matches their invites."""
    from invitectl.services.promotion import PromotionService

    app.emit(
        PromotionService(app.tracker).promote_if_qualified(
            guild_id, member_id, total, dry_run=dry_run
        )
    )
