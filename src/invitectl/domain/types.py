"""Classification enums and permission bits.

Permission values mirror Discord's guild permission bitfield so role
snapshots can be stored and compared without translation.
"""

from __future__ import annotations

from enum import IntFlag, StrEnum


class InvalidationReason(StrEnum):
    """Why a join stopped crediting its inviter."""

    FAKE = "fake"
    LEAVE = "leave"


class AssignmentStyle(StrEnum):
    """How reached rank roles are handed out."""

    ALL = "all"
    HIGHEST = "highest"


class MutationAction(StrEnum):
    """Kind of role mutation issued against a member."""

    GRANT = "grant"
    REVOKE = "revoke"


class Permission(IntFlag):
    """Subset of guild permission bits relevant to rank promotion."""

    NONE = 0
    KICK_MEMBERS = 0x2
    BAN_MEMBERS = 0x4
    ADMINISTRATOR = 0x8
    MANAGE_CHANNELS = 0x10
    MANAGE_GUILD = 0x20
    MANAGE_ROLES = 0x10000000


# Roles carrying any of these bits are never granted automatically.
ELEVATED_PERMISSIONS = Permission.ADMINISTRATOR | Permission.MANAGE_GUILD
