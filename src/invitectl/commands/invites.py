"""Command group: invite counts, leaderboard, bonuses, clearing."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from invitectl.commands._base import InviteGroup

if TYPE_CHECKING:
    from invitectl.commands._context import AppContext

_INVITES_EXAMPLES = """\
  invitectl invites show 4100 2200
  invitectl invites leaderboard 4100 --limit 10
  invitectl invites bonus 4100 2200 5 --reason "event winner"
  invitectl invites bonus 4100 2200 -- -2
  invitectl invites clear 4100 --member 2200
  invitectl invites restore 4100"""


@click.group(cls=InviteGroup, examples=_INVITES_EXAMPLES)
def invites() -> None:
    """Inspect and adjust invite credit."""


@invites.command(
    examples="""\
  invitectl invites show 4100 2200
  invitectl --json invites show 4100 2200 --fresh"""
)
@click.argument("guild_id")
@click.argument("member_id")
@click.option("--fresh", is_flag=True, help="Recompute instead of using the cache.")
@click.pass_obj
def show(app: AppContext, guild_id: str, member_id: str, fresh: bool) -> None:
    """Show a member's invite breakdown."""
    from invitectl.services.invites import InviteService

    app.emit(InviteService(app.tracker).get_counts(guild_id, member_id, fresh=fresh))


@invites.command(
    examples="""\
  invitectl invites leaderboard 4100
  invitectl -q invites leaderboard 4100 --limit 3"""
)
@click.argument("guild_id")
@click.option("--limit", type=int, default=None, help="Show at most this many members.")
@click.pass_obj
def leaderboard(app: AppContext, guild_id: str, limit: int | None) -> None:
    """Rank the guild's members by total invites."""
    from invitectl.services.invites import InviteService

    app.emit(InviteService(app.tracker).leaderboard(guild_id, limit=limit))


@invites.command(
    examples="""\
  invitectl invites bonus 4100 2200 5 --reason "event winner"
  invitectl invites bonus 4100 2200 -- -2
  invitectl invites bonus 4100 2200 3 --promote"""
)
@click.argument("guild_id")
@click.argument("member_id")
@click.argument("amount", type=int)
@click.option("--reason", default=None, help="Why the adjustment was made.")
@click.option("--by", "creator_id", default=None, help="Member id of whoever made it.")
@click.option("--promote", is_flag=True, help="Re-evaluate the member's ranks afterwards.")
@click.pass_obj
def bonus(
    app: AppContext,
    guild_id: str,
    member_id: str,
    amount: int,
    reason: str | None,
    creator_id: str | None,
    promote: bool,
) -> None:
    """Add (or with a negative AMOUNT, remove) custom invites."""
    from invitectl.services.invites import InviteService

    result = InviteService(app.tracker).add_bonus(
        guild_id, member_id, amount, reason=reason, creator_id=creator_id
    )
    app.emit(result)
    if promote:
        from invitectl.services.promotion import PromotionService

        app.emit(PromotionService(app.tracker).promote_if_qualified(guild_id, member_id))


@invites.command(
    examples="""\
  invitectl invites clear 4100
  invitectl invites clear 4100 --member 2200"""
)
@click.argument("guild_id")
@click.option("--member", "member_id", default=None, help="Only clear this member.")
@click.pass_obj
def clear(app: AppContext, guild_id: str, member_id: str | None) -> None:
    """Clear invite credit for a member or the whole guild."""
    from invitectl.services.invites import InviteService

    app.emit(InviteService(app.tracker).clear_invites(guild_id, member_id))


@invites.command(
    examples="""\
  invitectl invites restore 4100
  invitectl invites restore 4100 --member 2200"""
)
@click.argument("guild_id")
@click.option("--member", "member_id", default=None, help="Only restore this member.")
@click.pass_obj
def restore(app: AppContext, guild_id: str, member_id: str | None) -> None:
    """Restore previously cleared invite credit."""
    from invitectl.services.invites import InviteService

    app.emit(InviteService(app.tracker).restore_invites(guild_id, member_id))
