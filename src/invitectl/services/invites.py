"""InviteService — counts, leaderboard, bonuses, clearing and restoring.

Every mutation drops the affected counts from the cache before the
result is returned, so the next read reflects the store.
"""

from __future__ import annotations

from typing import Any

from invitectl.infrastructure.errors import StoreError
from invitectl.services.base import BaseService
from invitectl.services.result import ServiceResult
from invitectl.services.telemetry import trace_span, traced


class InviteService(BaseService):
    """Invite accounting operations exposed to the command layer."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @traced
    def get_counts(self, guild_id: str, member_id: str, *, fresh: bool = False) -> ServiceResult:
        """Return a member's invite breakdown, computing it on a cache miss."""
        op = "get_counts"
        cache = self._tracker.counts_cache
        if fresh:
            cache.invalidate(guild_id, member_id)
        cached = cache.contains(guild_id, member_id)

        try:
            with trace_span("compute_counts"):
                counts = cache.get(guild_id, member_id)
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "guild_id": guild_id,
                "member_id": member_id,
                **counts.model_dump(),
            },
            meta={"cached": cached},
        )

    @traced
    def leaderboard(self, guild_id: str, *, limit: int | None = None) -> ServiceResult:
        """Rank every member of *guild_id* with a positive total."""
        op = "leaderboard"
        if limit is not None and limit < 1:
            return ServiceResult.failure(
                op, "INVALID_LIMIT", f"Limit must be positive, got {limit}"
            )

        try:
            with trace_span("build_leaderboard"):
                entries = self._tracker.leaderboard.build(guild_id, limit=limit)
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))

        items: list[dict[str, Any]] = []
        for position, entry in enumerate(entries, start=1):
            item = entry.model_dump()
            item["position"] = position
            item["display_name"] = entry.display_name
            items.append(item)

        return ServiceResult(
            ok=True,
            op=op,
            data={"guild_id": guild_id, "entries": items, "count": len(items)},
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @traced
    def add_bonus(
        self,
        guild_id: str,
        member_id: str,
        amount: int,
        *,
        reason: str | None = None,
        creator_id: str | None = None,
    ) -> ServiceResult:
        """Record a manual adjustment. Negative amounts act as corrections."""
        op = "add_bonus"
        warnings: list[str] = []
        if amount == 0:
            return ServiceResult.failure(
                op, "INVALID_AMOUNT", "Bonus amount must be non-zero", amount=amount
            )

        try:
            adjustment_id = self._tracker.invites.add_custom_invite(
                guild_id, member_id, amount, reason=reason, creator_id=creator_id
            )
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))

        self._counts_invalidated(guild_id, member_id, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": adjustment_id,
                "guild_id": guild_id,
                "member_id": member_id,
                "amount": amount,
                "reason": reason,
            },
            warnings=warnings,
        )

    @traced
    def clear_invites(self, guild_id: str, member_id: str | None = None) -> ServiceResult:
        """Zero out credit for one member, or the whole guild when *member_id* is None."""
        op = "clear_invites"
        warnings: list[str] = []
        invites = self._tracker.invites

        try:
            codes = invites.clear_invite_codes(guild_id, member_id)
            joined = invites.mark_joins_cleared(guild_id, member_id)
            custom = invites.mark_custom_invites_cleared(guild_id, member_id)
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))

        self._counts_invalidated(guild_id, member_id, warnings)
        self._dispatch_event("post_clear", {"guild_id": guild_id, "member_id": member_id}, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "guild_id": guild_id,
                "member_id": member_id,
                "invite_codes": codes,
                "joins": joined,
                "custom_invites": custom,
            },
            warnings=warnings,
        )

    @traced
    def restore_invites(self, guild_id: str, member_id: str | None = None) -> ServiceResult:
        """Undo clearing for one member, or the whole guild when *member_id* is None."""
        op = "restore_invites"
        warnings: list[str] = []
        invites = self._tracker.invites

        try:
            codes = invites.restore_invite_codes(guild_id, member_id)
            joined = invites.restore_joins(guild_id, member_id)
            custom = invites.restore_custom_invites(guild_id, member_id)
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))

        self._counts_invalidated(guild_id, member_id, warnings)
        self._dispatch_event(
            "post_restore", {"guild_id": guild_id, "member_id": member_id}, warnings
        )
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "guild_id": guild_id,
                "member_id": member_id,
                "invite_codes": codes,
                "joins": joined,
                "custom_invites": custom,
            },
            warnings=warnings,
        )
