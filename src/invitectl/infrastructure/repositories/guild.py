"""Guild-scoped repositories: ranks, settings, roles, and channels.

:class:`RoleRepository` doubles as the role provider and role mutator for
the promotion flow, working against the local snapshot of guild roles
and member role assignments.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from invitectl.domain.models import GuildRole, GuildSettings, RankThreshold
from invitectl.domain.types import AssignmentStyle, Permission
from invitectl.infrastructure.database.schema import (
    channels,
    guild_settings,
    member_roles,
    ranks,
    roles,
)
from invitectl.infrastructure.errors import RoleMutationError, store_errors

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Setting keys stored in the ``guild_settings`` table.
SETTING_KEYS = frozenset(
    {"rank_assignment_style", "rank_announcement_channel", "rank_announcement_message"}
)


class RankRepository:
    """CRUD for rank thresholds."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def list_ranks(self, guild_id: str) -> list[RankThreshold]:
        """Return the guild's ranks ordered by threshold."""
        stmt = (
            select(ranks)
            .where(ranks.c.guild_id == guild_id)
            .order_by(ranks.c.num_invites, ranks.c.role_id)
        )
        with store_errors("list_ranks"), self._engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return [
            RankThreshold(
                role_id=r.role_id,
                num_invites_required=r.num_invites,
                description=r.description,
            )
            for r in rows
        ]

    def upsert_rank(
        self,
        guild_id: str,
        role_id: str,
        num_invites: int,
        *,
        description: str | None = None,
    ) -> bool:
        """Insert or update a rank. Returns True when a new rank was created."""
        with store_errors("upsert_rank"), self._engine.begin() as conn:
            existing = conn.execute(
                select(ranks.c.role_id).where(
                    ranks.c.guild_id == guild_id, ranks.c.role_id == role_id
                )
            ).first()
            if existing is None:
                conn.execute(
                    insert(ranks).values(
                        guild_id=guild_id,
                        role_id=role_id,
                        num_invites=num_invites,
                        description=description,
                    )
                )
                return True
            conn.execute(
                update(ranks)
                .where(ranks.c.guild_id == guild_id, ranks.c.role_id == role_id)
                .values(num_invites=num_invites, description=description)
            )
            return False

    def remove_rank(self, guild_id: str, role_id: str) -> bool:
        stmt = delete(ranks).where(ranks.c.guild_id == guild_id, ranks.c.role_id == role_id)
        with store_errors("remove_rank"), self._engine.begin() as conn:
            return bool(conn.execute(stmt).rowcount)


class SettingsRepository:
    """Key/value guild settings with code-baked defaults."""

    def __init__(self, engine: Engine, *, defaults: GuildSettings | None = None) -> None:
        self._engine = engine
        self._defaults = defaults or GuildSettings()

    def get(self, guild_id: str) -> GuildSettings:
        """Return the guild's settings, falling back to defaults per key."""
        stmt = select(guild_settings.c.key, guild_settings.c.value).where(
            guild_settings.c.guild_id == guild_id
        )
        with store_errors("get_settings"), self._engine.connect() as conn:
            stored = {r.key: r.value for r in conn.execute(stmt)}

        values: dict[str, Any] = self._defaults.model_dump()
        for key, value in stored.items():
            if key in SETTING_KEYS:
                values[key] = value
        if values.get("rank_assignment_style") is None:
            values["rank_assignment_style"] = AssignmentStyle.ALL
        return GuildSettings.model_validate(values)

    def set(self, guild_id: str, key: str, value: str | None) -> None:
        """Store one setting. ``None`` removes the override."""
        if key not in SETTING_KEYS:
            msg = f"Unknown setting {key!r}. Expected one of {sorted(SETTING_KEYS)}"
            raise ValueError(msg)

        with store_errors("set_setting"), self._engine.begin() as conn:
            conn.execute(
                delete(guild_settings).where(
                    guild_settings.c.guild_id == guild_id, guild_settings.c.key == key
                )
            )
            if value is not None:
                conn.execute(insert(guild_settings).values(guild_id=guild_id, key=key, value=value))


class RoleRepository:
    """Guild role snapshot plus member role assignments.

    Parameters:
        engine: SQLAlchemy engine with the ``roles`` and ``member_roles`` tables.
        bot_member_id: Member id the acting bot holds roles under. Without it
            the bot is treated as holding no roles at all.
    """

    def __init__(self, engine: Engine, *, bot_member_id: str | None = None) -> None:
        self._engine = engine
        self._bot_member_id = bot_member_id

    # ------------------------------------------------------------------
    # GuildRoleProvider
    # ------------------------------------------------------------------

    def get_roles(self, guild_id: str) -> dict[str, GuildRole]:
        stmt = select(roles).where(roles.c.guild_id == guild_id)
        with store_errors("get_roles"), self._engine.connect() as conn:
            rows = conn.execute(stmt).fetchall()
        return {
            r.id: GuildRole(id=r.id, name=r.name, position=r.position, permissions=r.permissions)
            for r in rows
        }

    def get_member_role_ids(self, guild_id: str, member_id: str) -> frozenset[str]:
        stmt = select(member_roles.c.role_id).where(
            member_roles.c.guild_id == guild_id, member_roles.c.member_id == member_id
        )
        with store_errors("get_member_roles"), self._engine.connect() as conn:
            return frozenset(str(r.role_id) for r in conn.execute(stmt))

    def get_bot_role_ids(self, guild_id: str) -> frozenset[str]:
        if self._bot_member_id is None:
            return frozenset()
        return self.get_member_role_ids(guild_id, self._bot_member_id)

    def bot_can_manage_roles(self, guild_id: str) -> bool:
        """Whether any of the bot's roles carries manage-roles or administrator."""
        bot_roles = self.get_bot_role_ids(guild_id)
        if not bot_roles:
            return False
        guild_roles = self.get_roles(guild_id)
        allowed = Permission.MANAGE_ROLES | Permission.ADMINISTRATOR
        return any(
            guild_roles[r].perms & allowed for r in bot_roles if r in guild_roles
        )

    # ------------------------------------------------------------------
    # RoleMutator
    # ------------------------------------------------------------------

    def grant_role(self, guild_id: str, member_id: str, role_id: str, reason: str) -> None:
        """Assign *role_id* to the member. Raises :class:`RoleMutationError` on failure."""
        with store_errors("grant_role"), self._engine.begin() as conn:
            role = conn.execute(
                select(roles.c.id).where(roles.c.guild_id == guild_id, roles.c.id == role_id)
            ).first()
            if role is None:
                msg = f"Unknown role {role_id} in guild {guild_id}"
                raise RoleMutationError(msg)
            held = conn.execute(
                select(member_roles.c.role_id).where(
                    member_roles.c.guild_id == guild_id,
                    member_roles.c.member_id == member_id,
                    member_roles.c.role_id == role_id,
                )
            ).first()
            if held is None:
                conn.execute(
                    insert(member_roles).values(
                        guild_id=guild_id, member_id=member_id, role_id=role_id
                    )
                )
        logger.info("Granted role %s to %s in %s (%s)", role_id, member_id, guild_id, reason)

    def revoke_role(self, guild_id: str, member_id: str, role_id: str, reason: str) -> None:
        """Remove *role_id* from the member. Raises when the member does not hold it."""
        stmt = delete(member_roles).where(
            member_roles.c.guild_id == guild_id,
            member_roles.c.member_id == member_id,
            member_roles.c.role_id == role_id,
        )
        with store_errors("revoke_role"), self._engine.begin() as conn:
            removed = conn.execute(stmt).rowcount
        if not removed:
            msg = f"Member {member_id} does not hold role {role_id}"
            raise RoleMutationError(msg)
        logger.info("Revoked role %s from %s in %s (%s)", role_id, member_id, guild_id, reason)

    # ------------------------------------------------------------------
    # Snapshot maintenance
    # ------------------------------------------------------------------

    def upsert_role(
        self,
        guild_id: str,
        role_id: str,
        name: str,
        *,
        position: int = 0,
        permissions: int = 0,
    ) -> None:
        with store_errors("upsert_role"), self._engine.begin() as conn:
            conn.execute(delete(roles).where(roles.c.guild_id == guild_id, roles.c.id == role_id))
            conn.execute(
                insert(roles).values(
                    guild_id=guild_id,
                    id=role_id,
                    name=name,
                    position=position,
                    permissions=permissions,
                )
            )

    def role_exists(self, guild_id: str, role_id: str) -> bool:
        return role_id in self.get_roles(guild_id)


class ChannelRepository:
    """Known text channels per guild."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def upsert_channel(self, guild_id: str, channel_id: str, name: str | None = None) -> None:
        with store_errors("upsert_channel"), self._engine.begin() as conn:
            conn.execute(
                delete(channels).where(channels.c.guild_id == guild_id, channels.c.id == channel_id)
            )
            conn.execute(insert(channels).values(guild_id=guild_id, id=channel_id, name=name))

    def channel_exists(self, guild_id: str, channel_id: str) -> bool:
        stmt = select(channels.c.id).where(
            channels.c.guild_id == guild_id, channels.c.id == channel_id
        )
        with store_errors("channel_exists"), self._engine.connect() as conn:
            return conn.execute(stmt).first() is not None
