"""SQLite store engine and schema via SQLAlchemy Core."""

from invitectl.infrastructure.database.engine import create_db_engine, init_database
from invitectl.infrastructure.database.schema import (
    announcements,
    channels,
    custom_invites,
    guild_settings,
    invite_codes,
    joins,
    member_roles,
    members,
    metadata,
    ranks,
    roles,
)

__all__ = [
    "announcements",
    "channels",
    "create_db_engine",
    "custom_invites",
    "guild_settings",
    "init_database",
    "invite_codes",
    "joins",
    "member_roles",
    "members",
    "metadata",
    "ranks",
    "roles",
]
