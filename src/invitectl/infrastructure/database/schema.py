"""SQLAlchemy Core table definitions for the invitectl store.

The store holds normalized records only: invite codes with their use
counts, joins (optionally invalidated), manual adjustments, and a
snapshot of guild roles and channels used by the promotion flow.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    PrimaryKeyConstraint,
    Table,
    Text,
)

metadata = MetaData()

members = Table(
    "members",
    metadata,
    Column("guild_id", Text, nullable=False),
    Column("id", Text, nullable=False),
    Column("name", Text),
    Column("discriminator", Text),
    PrimaryKeyConstraint("guild_id", "id"),
)

invite_codes = Table(
    "invite_codes",
    metadata,
    Column("code", Text, primary_key=True),
    Column("guild_id", Text, nullable=False),
    Column("inviter_id", Text),
    Column("channel_id", Text),
    Column("uses", Integer, nullable=False, default=0, server_default="0"),
    Column("cleared_amount", Integer, nullable=False, default=0, server_default="0"),
    Column("created", Text, nullable=False),
)

joins = Table(
    "joins",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("guild_id", Text, nullable=False),
    Column("member_id", Text, nullable=False),
    Column("exact_match_code", Text, ForeignKey("invite_codes.code")),
    Column("invalidated_reason", Text),  # fake | leave | NULL
    Column("cleared", Integer, nullable=False, default=0, server_default="0"),
    Column("created", Text, nullable=False),
)

custom_invites = Table(
    "custom_invites",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("guild_id", Text, nullable=False),
    Column("member_id", Text, nullable=False),
    Column("creator_id", Text),
    Column("amount", Integer, nullable=False),
    Column("reason", Text),
    Column("cleared", Integer, nullable=False, default=0, server_default="0"),
    Column("created", Text, nullable=False),
)

ranks = Table(
    "ranks",
    metadata,
    Column("guild_id", Text, nullable=False),
    Column("role_id", Text, nullable=False),
    Column("num_invites", Integer, nullable=False),
    Column("description", Text),
    PrimaryKeyConstraint("guild_id", "role_id"),
)

guild_settings = Table(
    "guild_settings",
    metadata,
    Column("guild_id", Text, nullable=False),
    Column("key", Text, nullable=False),
    Column("value", Text),
    PrimaryKeyConstraint("guild_id", "key"),
)

# ---------------------------------------------------------------------------
# Guild snapshot: roles, channels, role assignments
# ---------------------------------------------------------------------------

roles = Table(
    "roles",
    metadata,
    Column("guild_id", Text, nullable=False),
    Column("id", Text, nullable=False),
    Column("name", Text, nullable=False),
    Column("position", Integer, nullable=False, default=0, server_default="0"),
    Column("permissions", Integer, nullable=False, default=0, server_default="0"),
    PrimaryKeyConstraint("guild_id", "id"),
)

member_roles = Table(
    "member_roles",
    metadata,
    Column("guild_id", Text, nullable=False),
    Column("member_id", Text, nullable=False),
    Column("role_id", Text, nullable=False),
    PrimaryKeyConstraint("guild_id", "member_id", "role_id"),
)

channels = Table(
    "channels",
    metadata,
    Column("guild_id", Text, nullable=False),
    Column("id", Text, nullable=False),
    Column("name", Text),
    PrimaryKeyConstraint("guild_id", "id"),
)

announcements = Table(
    "announcements",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("guild_id", Text, nullable=False),
    Column("channel_id", Text, nullable=False),
    Column("content", Text, nullable=False),
    Column("created", Text, nullable=False),
)

# ---------------------------------------------------------------------------
# Indexes for the aggregate queries
# ---------------------------------------------------------------------------

Index("ix_invite_codes_guild_inviter", invite_codes.c.guild_id, invite_codes.c.inviter_id)
Index("ix_joins_guild_reason", joins.c.guild_id, joins.c.invalidated_reason)
Index("ix_joins_code", joins.c.exact_match_code)
Index("ix_custom_invites_guild_member", custom_invites.c.guild_id, custom_invites.c.member_id)


def now_iso() -> str:
    """Current UTC time as ISO 8601, for ``created`` columns."""
    return datetime.now(UTC).isoformat()
