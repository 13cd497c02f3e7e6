"""PromotionService — apply rank role changes for one member.

Pipeline: LOAD → EVALUATE → MUTATE → ANNOUNCE → NOTIFY

The decision itself is the pure :func:`invitectl.domain.ranks.evaluate`.
This service feeds it from the caches and the role provider, then issues
every grant and revoke, collecting one :class:`MutationOutcome` per
intent. A failed mutation is logged and reported; it never aborts its
siblings and is never retried.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from invitectl.domain.models import (
    AnnouncementIntent,
    GuildRole,
    GuildSettings,
    MutationOutcome,
    RoleChangePlan,
)
from invitectl.domain.models import full_name as render_full_name
from invitectl.domain.ranks import evaluate
from invitectl.domain.types import MutationAction
from invitectl.infrastructure.errors import StoreError
from invitectl.services._helpers import mention_member, mention_role
from invitectl.services.base import BaseService
from invitectl.services.result import ServiceResult
from invitectl.services.telemetry import get_current_span, trace_span, traced

logger = logging.getLogger(__name__)

GRANT_REASON = "Reached a new rank by invites"
REVOKE_REASON = "Not enough invites for rank"


class PromotionService(BaseService):
    """Brings a member's rank roles in line with their invite total."""

    @traced
    def promote_if_qualified(
        self,
        guild_id: str,
        member_id: str,
        total: int | None = None,
        *,
        dry_run: bool = False,
    ) -> ServiceResult:
        """Evaluate and apply the member's rank roles.

        Args:
            guild_id: Guild to evaluate in.
            member_id: Member whose roles are adjusted.
            total: Invite total to evaluate against. Read from the counts
                cache when omitted.
            dry_run: Compute the plan without mutating roles or announcing.
        """
        op = "promote_if_qualified"
        warnings: list[str] = []
        tracker = self._tracker
        provider = tracker.roles

        # ── LOAD ─────────────────────────────────────────────────
        guild_roles: Mapping[str, GuildRole] = {}
        member_role_ids: frozenset[str] = frozenset()
        bot_role_ids: frozenset[str] = frozenset()
        can_manage = False
        try:
            with trace_span("load"):
                if total is None:
                    total = tracker.counts_cache.get(guild_id, member_id).total
                ranks = tracker.ranks_cache.get(guild_id)
                settings = tracker.settings_cache.get(guild_id)
                # No ranks means no role probing at all.
                if ranks:
                    guild_roles = provider.get_roles(guild_id)
                    member_role_ids = provider.get_member_role_ids(guild_id, member_id)
                    bot_role_ids = provider.get_bot_role_ids(guild_id)
                    can_manage = provider.bot_can_manage_roles(guild_id)
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))

        # ── EVALUATE ─────────────────────────────────────────────
        plan = evaluate(
            ranks,
            total,
            guild_roles=guild_roles,
            member_role_ids=member_role_ids,
            bot_role_ids=bot_role_ids,
            bot_can_manage_roles=can_manage,
            style=settings.rank_assignment_style,
        )
        if plan.num_ranks and not plan.manage_roles_available:
            warnings.append("Bot lacks the manage-roles permission; roles were not changed")
        for role_id in sorted(plan.skipped_rank_roles):
            warnings.append(f"Rank role {role_id} no longer exists")

        outcomes: list[MutationOutcome] = []
        announced = False
        if not dry_run:
            # ── MUTATE ───────────────────────────────────────────
            with trace_span("mutate"):
                outcomes = self._apply(guild_id, member_id, plan)
            for outcome in outcomes:
                if not outcome.ok:
                    warnings.append(
                        f"Failed to {outcome.action.value} role {outcome.role_id}: {outcome.error}"
                    )

            # ── ANNOUNCE ─────────────────────────────────────────
            if plan.announcement is not None:
                with trace_span("announce"):
                    announced = self._announce(
                        guild_id, member_id, plan.announcement, settings, warnings
                    )

            # ── NOTIFY ───────────────────────────────────────────
            applied = [o for o in outcomes if o.ok]
            self._dispatch_event(
                "post_promotion",
                {
                    "guild_id": guild_id,
                    "member_id": member_id,
                    "granted": [o.role_id for o in applied if o.action is MutationAction.GRANT],
                    "revoked": [o.role_id for o in applied if o.action is MutationAction.REVOKE],
                    "blocked": sorted(plan.roles_blocked_by_hierarchy),
                },
                warnings,
            )

        span = get_current_span()
        if span is not None:
            span.annotate("mutations", len(outcomes))

        return ServiceResult(
            ok=True,
            op=op,
            data=_plan_payload(guild_id, member_id, total, plan, outcomes, announced, dry_run),
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _apply(self, guild_id: str, member_id: str, plan: RoleChangePlan) -> list[MutationOutcome]:
        """Issue every revoke then every grant, one outcome per intent."""
        mutator = self._tracker.roles
        intents = [(MutationAction.REVOKE, r) for r in sorted(plan.roles_to_revoke)]
        intents += [(MutationAction.GRANT, r) for r in sorted(plan.roles_to_grant)]

        outcomes: list[MutationOutcome] = []
        for action, role_id in intents:
            try:
                if action is MutationAction.GRANT:
                    mutator.grant_role(guild_id, member_id, role_id, GRANT_REASON)
                else:
                    mutator.revoke_role(guild_id, member_id, role_id, REVOKE_REASON)
            except Exception as exc:
                logger.warning(
                    "Failed to %s role %s for member %s in guild %s",
                    action.value,
                    role_id,
                    member_id,
                    guild_id,
                    exc_info=True,
                )
                outcomes.append(
                    MutationOutcome(action=action, role_id=role_id, ok=False, error=str(exc))
                )
            else:
                outcomes.append(MutationOutcome(action=action, role_id=role_id, ok=True))
        return outcomes

    def _announce(
        self,
        guild_id: str,
        member_id: str,
        intent: AnnouncementIntent,
        settings: GuildSettings,
        warnings: list[str],
    ) -> bool:
        """Send the rank announcement. Returns True when a message was delivered."""
        channel_id = settings.rank_announcement_channel
        template = settings.rank_announcement_message
        if not channel_id or not template:
            return False

        messenger = self._tracker.messenger
        tracker = self._tracker
        try:
            if not messenger.channel_exists(guild_id, channel_id):
                logger.warning(
                    "Guild %s has invalid rank announcement channel %s; clearing it",
                    guild_id,
                    channel_id,
                )
                tracker.guild_settings.set(guild_id, "rank_announcement_channel", None)
                tracker.invalidate_settings(guild_id)
                warnings.append(f"Announcement channel {channel_id} is invalid and was cleared")
                return False

            member = tracker.invites.get_member(guild_id, member_id) or {}
            name = member.get("name") or member_id
            variables: dict[str, Any] = {
                "memberId": member_id,
                "memberName": name,
                "memberFullName": render_full_name(name, member.get("discriminator")),
                "memberMention": mention_member(member_id),
                "rankMention": mention_role(intent.role_id),
                "rankName": intent.role_name,
                "totalInvites": str(intent.total_invites),
            }
            content = messenger.render(guild_id, template, variables)
            messenger.send(guild_id, channel_id, content)
        except Exception as exc:
            logger.warning("Rank announcement failed in guild %s", guild_id, exc_info=True)
            warnings.append(f"Rank announcement failed: {exc}")
            return False
        return True


def _plan_payload(
    guild_id: str,
    member_id: str,
    total: int,
    plan: RoleChangePlan,
    outcomes: list[MutationOutcome],
    announced: bool,
    dry_run: bool,
) -> dict[str, Any]:
    next_rank = plan.next_rank
    return {
        "guild_id": guild_id,
        "member_id": member_id,
        "total_invites": total,
        "num_ranks": plan.num_ranks,
        "highest_role_id": plan.highest_role_id,
        "next_rank": (
            {
                "role_id": next_rank.role_id,
                "role_name": plan.next_threshold_role_name,
                "num_invites_required": next_rank.num_invites_required,
            }
            if next_rank is not None
            else None
        ),
        "manage_roles_available": plan.manage_roles_available,
        "roles_to_grant": sorted(plan.roles_to_grant),
        "roles_to_revoke": sorted(plan.roles_to_revoke),
        "roles_blocked_by_hierarchy": sorted(plan.roles_blocked_by_hierarchy),
        "revocations_blocked_by_hierarchy": sorted(plan.revocations_blocked_by_hierarchy),
        "dangerous_roles": sorted(plan.dangerous_roles),
        "skipped_rank_roles": sorted(plan.skipped_rank_roles),
        "mutations": [o.model_dump(mode="json") for o in outcomes],
        "announced": announced,
        "dry_run": dry_run,
    }
