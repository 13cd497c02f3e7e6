"""GuildService — guild settings and the local guild snapshot.

The snapshot (members, roles, channels, invite codes, joins, role
assignments) is what the accounting and promotion flows read. Recording
operations keep it current and drop the caches the change affects.
"""

from __future__ import annotations

from invitectl.domain.types import AssignmentStyle, InvalidationReason
from invitectl.infrastructure.errors import StoreError
from invitectl.infrastructure.repositories.guild import SETTING_KEYS
from invitectl.services.base import BaseService
from invitectl.services.result import ServiceResult
from invitectl.services.telemetry import traced


class GuildService(BaseService):
    """Guild settings plus snapshot recording."""

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    @traced
    def get_settings(self, guild_id: str) -> ServiceResult:
        op = "get_settings"
        try:
            settings = self._tracker.settings_cache.get(guild_id)
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))
        return ServiceResult(
            ok=True,
            op=op,
            data={"guild_id": guild_id, **settings.model_dump(mode="json")},
        )

    @traced
    def set_setting(self, guild_id: str, key: str, value: str | None) -> ServiceResult:
        """Store one setting. A ``None`` value resets it to the default."""
        op = "set_setting"
        if key not in SETTING_KEYS:
            return ServiceResult.failure(
                op,
                "INVALID_SETTING",
                f"Unknown setting {key!r}",
                key=key,
                allowed=sorted(SETTING_KEYS),
            )
        if key == "rank_assignment_style" and value is not None:
            allowed = [s.value for s in AssignmentStyle]
            if value not in allowed:
                return ServiceResult.failure(
                    op,
                    "INVALID_SETTING",
                    f"Invalid assignment style {value!r}",
                    key=key,
                    allowed=allowed,
                )

        try:
            if key == "rank_announcement_channel" and value is not None:
                if not self._tracker.channels.channel_exists(guild_id, value):
                    return ServiceResult.failure(
                        op,
                        "INVALID_SETTING",
                        f"Unknown channel {value} in guild {guild_id}",
                        key=key,
                    )
            self._tracker.guild_settings.set(guild_id, key, value)
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))

        self._tracker.invalidate_settings(guild_id)
        return ServiceResult(
            ok=True, op=op, data={"guild_id": guild_id, "key": key, "value": value}
        )

    # ------------------------------------------------------------------
    # Snapshot recording
    # ------------------------------------------------------------------

    @traced
    def record_member(
        self,
        guild_id: str,
        member_id: str,
        *,
        name: str | None = None,
        discriminator: str | None = None,
    ) -> ServiceResult:
        op = "record_member"
        try:
            self._tracker.invites.upsert_member(
                guild_id, member_id, name=name, discriminator=discriminator
            )
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "guild_id": guild_id,
                "member_id": member_id,
                "name": name,
                "discriminator": discriminator,
            },
        )

    @traced
    def record_role(
        self,
        guild_id: str,
        role_id: str,
        name: str,
        *,
        position: int = 0,
        permissions: int = 0,
    ) -> ServiceResult:
        op = "record_role"
        try:
            self._tracker.roles.upsert_role(
                guild_id, role_id, name, position=position, permissions=permissions
            )
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "guild_id": guild_id,
                "role_id": role_id,
                "name": name,
                "position": position,
                "permissions": permissions,
            },
        )

    @traced
    def record_channel(
        self, guild_id: str, channel_id: str, *, name: str | None = None
    ) -> ServiceResult:
        op = "record_channel"
        try:
            self._tracker.channels.upsert_channel(guild_id, channel_id, name)
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))
        return ServiceResult(
            ok=True, op=op, data={"guild_id": guild_id, "channel_id": channel_id, "name": name}
        )

    @traced
    def record_invite_code(
        self,
        guild_id: str,
        code: str,
        inviter_id: str | None,
        *,
        uses: int = 0,
        channel_id: str | None = None,
    ) -> ServiceResult:
        """Insert or refresh an invite code and its use count."""
        op = "record_invite_code"
        warnings: list[str] = []
        if uses < 0:
            return ServiceResult.failure(
                op, "INVALID_AMOUNT", f"Uses must be zero or more, got {uses}"
            )
        try:
            self._tracker.invites.record_invite_code(
                guild_id, code, inviter_id, uses=uses, channel_id=channel_id
            )
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))

        # The code may have changed hands; drop the guild rather than one member.
        self._counts_invalidated(guild_id, None, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={"guild_id": guild_id, "code": code, "inviter_id": inviter_id, "uses": uses},
            warnings=warnings,
        )

    @traced
    def record_join(
        self,
        guild_id: str,
        member_id: str,
        *,
        code: str | None = None,
        invalidated_reason: InvalidationReason | None = None,
    ) -> ServiceResult:
        """Record a member joining, optionally through a known invite code."""
        op = "record_join"
        warnings: list[str] = []
        try:
            join_id = self._tracker.invites.record_join(
                guild_id, member_id, code=code, invalidated_reason=invalidated_reason
            )
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))

        # An invalidated join debits whoever owns the code.
        if invalidated_reason is not None:
            self._counts_invalidated(guild_id, None, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "id": join_id,
                "guild_id": guild_id,
                "member_id": member_id,
                "code": code,
                "invalidated_reason": invalidated_reason.value if invalidated_reason else None,
            },
            warnings=warnings,
        )

    @traced
    def invalidate_joins(
        self, guild_id: str, member_id: str, reason: InvalidationReason
    ) -> ServiceResult:
        """Mark every valid join by *member_id* as fake or left."""
        op = "invalidate_joins"
        warnings: list[str] = []
        try:
            count = self._tracker.invites.invalidate_joins(guild_id, member_id, reason)
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))

        if count:
            self._counts_invalidated(guild_id, None, warnings)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "guild_id": guild_id,
                "member_id": member_id,
                "reason": reason.value,
                "count": count,
            },
            warnings=warnings,
        )

    @traced
    def assign_role(self, guild_id: str, member_id: str, role_id: str) -> ServiceResult:
        """Record that a member holds a role (e.g. the bot's own roles)."""
        op = "assign_role"
        try:
            if not self._tracker.roles.role_exists(guild_id, role_id):
                return ServiceResult.failure(
                    op, "ROLE_NOT_FOUND", f"No role {role_id} in guild {guild_id}", role_id=role_id
                )
            self._tracker.roles.grant_role(guild_id, member_id, role_id, "Recorded assignment")
        except StoreError as exc:
            return ServiceResult.failure(op, "STORE_ERROR", str(exc))
        return ServiceResult(
            ok=True,
            op=op,
            data={"guild_id": guild_id, "member_id": member_id, "role_id": role_id},
        )
