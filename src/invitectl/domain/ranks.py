"""Rank promotion decision engine.

Maps a member's total invites onto the guild's rank thresholds and
computes the role mutations needed, respecting the role hierarchy: the
bot can never grant or revoke a role positioned above its own highest
role. Permission problems are reported as data on the plan, never raised.

The engine is pure; applying the plan is the caller's job.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Mapping, Sequence

from invitectl.domain.models import (
    AnnouncementIntent,
    GuildRole,
    RankThreshold,
    RoleChangePlan,
)
from invitectl.domain.types import ELEVATED_PERMISSIONS, AssignmentStyle

logger = logging.getLogger(__name__)

# Position of @everyone; used when the bot holds no resolvable role.
BASE_POSITION = 0


def highest_role(roles: Sequence[GuildRole]) -> GuildRole | None:
    """Return the role with the greatest position (first wins on ties)."""
    best: GuildRole | None = None
    for role in roles:
        if best is None or best.position < role.position:
            best = role
    return best


def roles_above(guild_roles: Mapping[str, GuildRole], position: int) -> frozenset[str]:
    """Ids of every guild role positioned strictly above *position*."""
    return frozenset(r.id for r in guild_roles.values() if r.position > position)


def evaluate(
    ranks: Sequence[RankThreshold],
    total_invites: int,
    *,
    guild_roles: Mapping[str, GuildRole],
    member_role_ids: Collection[str],
    bot_role_ids: Collection[str],
    bot_can_manage_roles: bool,
    style: AssignmentStyle = AssignmentStyle.ALL,
) -> RoleChangePlan:
    """Compute the role change plan for one member.

    Args:
        ranks: Configured thresholds for the guild.
        total_invites: The member's credited total (may be zero or negative).
        guild_roles: Every role currently existing in the guild, by id.
        member_role_ids: Roles the member currently holds.
        bot_role_ids: Roles the acting bot holds.
        bot_can_manage_roles: Whether the bot has the manage-roles permission.
        style: ``all`` grants every reached rank; ``highest`` keeps one.

    Returns:
        A :class:`RoleChangePlan`. With no ranks configured the plan is
        empty and no role data is inspected.

    The announcement names the highest rank *reached*, not the role that
    ends up granted. Under ``highest`` a dangerous top role falls back to
    the highest safe role for the grant, but the milestone announced is
    still the top one.
    """
    if not ranks:
        return RoleChangePlan()

    held = frozenset(member_role_ids)

    reached: list[GuildRole] = []
    not_reached: list[GuildRole] = []
    skipped: set[str] = set()
    next_rank: RankThreshold | None = None
    next_rank_name = ""

    for rank in ranks:
        role = guild_roles.get(rank.role_id)
        if role is None:
            logger.warning("Rank role %s no longer exists; skipping", rank.role_id)
            skipped.add(rank.role_id)
            continue
        if rank.num_invites_required <= total_invites:
            reached.append(role)
        else:
            not_reached.append(role)
            if next_rank is None or rank.num_invites_required < next_rank.num_invites_required:
                next_rank = rank
                next_rank_name = role.name

    highest = highest_role(reached)

    bot_roles = [guild_roles[r] for r in bot_role_ids if r in guild_roles]
    my_role = highest_role(bot_roles)
    too_high = roles_above(guild_roles, my_role.position if my_role else BASE_POSITION)

    revoke_blocked = {r.id for r in not_reached if r.id in too_high and r.id in held}

    announcement: AnnouncementIntent | None = None
    if highest is not None and highest.id not in held:
        announcement = AnnouncementIntent(
            role_id=highest.id,
            role_name=highest.name,
            total_invites=total_invites,
        )

    common = {
        "skipped_rank_roles": frozenset(skipped),
        "next_threshold_role_name": next_rank_name,
        "next_rank": next_rank,
        "highest_role_id": highest.id if highest else None,
        "num_ranks": len(ranks),
        "announcement": announcement,
    }

    if not bot_can_manage_roles:
        return RoleChangePlan(
            revocations_blocked_by_hierarchy=frozenset(revoke_blocked),
            manage_roles_available=False,
            **common,
        )

    # Lost ranks are always removed, whatever the assignment style.
    to_revoke = {r.id for r in not_reached if r.id not in too_high and r.id in held}

    dangerous = {r.id for r in reached if r.perms & ELEVATED_PERMISSIONS}
    safe = [r for r in reached if r.id not in dangerous]

    to_grant: set[str] = set()
    grant_blocked: set[str] = set()

    if style == AssignmentStyle.ALL:
        for role in safe:
            if role.id in held:
                continue
            if role.id in too_high:
                grant_blocked.add(role.id)
            else:
                to_grant.add(role.id)
    else:
        if highest is not None and highest.id not in dangerous:
            target: GuildRole | None = highest
        else:
            target = highest_role(safe)
        for role in safe:
            if (target is not None and role.id == target.id) or role.id not in held:
                continue
            if role.id in too_high:
                revoke_blocked.add(role.id)
            else:
                to_revoke.add(role.id)
        if target is not None and target.id not in held:
            if target.id in too_high:
                grant_blocked.add(target.id)
            else:
                to_grant.add(target.id)

    return RoleChangePlan(
        roles_to_grant=frozenset(to_grant),
        roles_to_revoke=frozenset(to_revoke),
        roles_blocked_by_hierarchy=frozenset(grant_blocked),
        revocations_blocked_by_hierarchy=frozenset(revoke_blocked),
        dangerous_roles=frozenset(dangerous),
        manage_roles_available=True,
        **common,
    )
