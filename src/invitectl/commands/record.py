"""Command group: record guild snapshot data into the local store."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from invitectl.commands._base import InviteGroup
from invitectl.domain.types import InvalidationReason

if TYPE_CHECKING:
    from invitectl.commands._context import AppContext

_RECORD_EXAMPLES = """\
  invitectl record member 4100 2200 --name alice
  invitectl record role 4100 9001 Recruiter --position 3
  invitectl record channel 4100 7700 --name ranks
  invitectl record code 4100 abc123 --inviter 2200 --uses 5
  invitectl record join 4100 3300 --code abc123
  invitectl record invalidate 4100 3300 --reason fake
  invitectl record grant 4100 1029384756 9100"""

_REASONS = [r.value for r in InvalidationReason]


@click.group(cls=InviteGroup, examples=_RECORD_EXAMPLES)
def record() -> None:
    """Record members, roles, channels, invite codes, and joins."""


@record.command(examples="  invitectl record member 4100 2200 --name alice --discriminator 0042")
@click.argument("guild_id")
@click.argument("member_id")
@click.option("--name", default=None, help="Username.")
@click.option("--discriminator", default=None, help="Legacy four-digit tag.")
@click.pass_obj
def member(
    app: AppContext,
    guild_id: str,
    member_id: str,
    name: str | None,
    discriminator: str | None,
) -> None:
    """Record or rename a member."""
    from invitectl.services.guild import GuildService

    app.emit(
        GuildService(app.tracker).record_member(
            guild_id, member_id, name=name, discriminator=discriminator
        )
    )


@record.command(
    examples="""\
  invitectl record role 4100 9001 Recruiter --position 3
  invitectl record role 4100 9100 Bot --position 10 --permissions 268435456"""
)
@click.argument("guild_id")
@click.argument("role_id")
@click.argument("name")
@click.option("--position", type=int, default=0, help="Hierarchy position (higher is stronger).")
@click.option("--permissions", type=int, default=0, help="Permission bitfield.")
@click.pass_obj
def role(
    app: AppContext, guild_id: str, role_id: str, name: str, position: int, permissions: int
) -> None:
    """Record or update a guild role."""
    from invitectl.services.guild import GuildService

    app.emit(
        GuildService(app.tracker).record_role(
            guild_id, role_id, name, position=position, permissions=permissions
        )
    )


@record.command(examples="  invitectl record channel 4100 7700 --name ranks")
@click.argument("guild_id")
@click.argument("channel_id")
@click.option("--name", default=None, help="Channel name.")
@click.pass_obj
def channel(app: AppContext, guild_id: str, channel_id: str, name: str | None) -> None:
    """Record a text channel."""
    from invitectl.services.guild import GuildService

    app.emit(GuildService(app.tracker).record_channel(guild_id, channel_id, name=name))


@record.command(examples="  invitectl record code 4100 abc123 --inviter 2200 --uses 5")
@click.argument("guild_id")
@click.argument("code")
@click.option("--inviter", "inviter_id", default=None, help="Member who created the code.")
@click.option("--uses", type=int, default=0, help="Current use count.")
@click.option("--channel", "channel_id", default=None, help="Channel the code points at.")
@click.pass_obj
def code(
    app: AppContext,
    guild_id: str,
    code: str,
    inviter_id: str | None,
    uses: int,
    channel_id: str | None,
) -> None:
    """Record an invite code or refresh its use count."""
    from invitectl.services.guild import GuildService

    app.emit(
        GuildService(app.tracker).record_invite_code(
            guild_id, code, inviter_id, uses=uses, channel_id=channel_id
        )
    )


@record.command(
    examples="""\
  invitectl record join 4100 3300 --code abc123
  invitectl record join 4100 3300 --code abc123 --invalidated fake"""
)
@click.argument("guild_id")
@click.argument("member_id")
@click.option("--code", default=None, help="Invite code the member joined through.")
@click.option(
    "--invalidated",
    type=click.Choice(_REASONS),
    default=None,
    help="Record the join as already invalidated.",
)
@click.pass_obj
def join(
    app: AppContext, guild_id: str, member_id: str, code: str | None, invalidated: str | None
) -> None:
    """Record a member joining the guild."""
    from invitectl.services.guild import GuildService

    reason = InvalidationReason(invalidated) if invalidated else None
    app.emit(
        GuildService(app.tracker).record_join(
            guild_id, member_id, code=code, invalidated_reason=reason
        )
    )


@record.command(examples="  invitectl record invalidate 4100 3300 --reason leave")
@click.argument("guild_id")
@click.argument("member_id")
@click.option("--reason", type=click.Choice(_REASONS), required=True, help="Fake or leave.")
@click.pass_obj
def invalidate(app: AppContext, guild_id: str, member_id: str, reason: str) -> None:
    """Invalidate a member's joins so they stop crediting the inviter."""
    from invitectl.services.guild import GuildService

    app.emit(
        GuildService(app.tracker).invalidate_joins(
            guild_id, member_id, InvalidationReason(reason)
        )
    )


@record.command(examples="  invitectl record grant 4100 1029384756 9100")
@click.argument("guild_id")
@click.argument("member_id")
@click.argument("role_id")
@click.pass_obj
def grant(app: AppContext, guild_id: str, member_id: str, role_id: str) -> None:
    """Record that a member holds a role."""
    from invitectl.services.guild import GuildService

    app.emit(GuildService(app.tracker).assign_role(guild_id, member_id, role_id))
