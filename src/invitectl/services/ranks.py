"""RankService — manage a guild's rank thresholds."""

from __future__ import annotations

from invitectl.infrastructure.errors import StoreError
from invitectl.services.base import BaseService
from invitectl.services.result import ServiceResult
from invitectl.services.telemetry import traced


class RankService(BaseService):
    """Add, remove, and list ranks. Writes drop the guild's ranks cache."""

    @traced
    def add_rank(
        self,
        guild_id: str,
        role_id: str,
        num_invites: int,
        *,
        description: str | None = None,
    ) -> ServiceResult:
        """Create a rank, or update the threshold of an existing one."""
        op = "add_rank"
        if num_invites < 0:
            return ServiceResult.failure(
                op,
                "INVALID_THRESHOLD",
                f"Invite threshold must be zero or more, got {num_invites}",
                num_invites=num_invites,
            )

        try:
            if not self._tracker.roles.role_exists(guild_id, role_id):
                return ServiceResult.failure(
                    op, "ROLE_NOT_FOUND", f"No role {role_id} in guild {guild_id}", role_id=role_id
                )
            created = self._tracker.ranks.upsert_rank(
                guild_id, role_id, num_invites, description=description
            )
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))

        self._tracker.invalidate_ranks(guild_id)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "guild_id": guild_id,
                "role_id": role_id,
                "num_invites": num_invites,
                "description": description,
                "created": created,
            },
        )

    @traced
    def remove_rank(self, guild_id: str, role_id: str) -> ServiceResult:
        op = "remove_rank"
        try:
            removed = self._tracker.ranks.remove_rank(guild_id, role_id)
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))

        if not removed:
            return ServiceResult.failure(
                op, "NOT_FOUND", f"No rank for role {role_id} in guild {guild_id}", role_id=role_id
            )

        self._tracker.invalidate_ranks(guild_id)
        return ServiceResult(ok=True, op=op, data={"guild_id": guild_id, "role_id": role_id})

    @traced
    def list_ranks(self, guild_id: str) -> ServiceResult:
        """List ranks by ascending threshold, with role names where known."""
        op = "list_ranks"
        try:
            ranks = self._tracker.ranks_cache.get(guild_id)
            roles = self._tracker.roles.get_roles(guild_id)
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))

        items = []
        for rank in ranks:
            role = roles.get(rank.role_id)
            items.append(
                {
                    **rank.model_dump(),
                    "role_name": role.name if role else None,
                    "role_exists": role is not None,
                }
            )
        return ServiceResult(
            ok=True,
            op=op,
            data={"guild_id": guild_id, "ranks": items, "count": len(items)},
        )
