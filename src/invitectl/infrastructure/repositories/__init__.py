"""Repositories encapsulating SQL for the store and guild snapshot."""

from invitectl.infrastructure.repositories.guild import (
    ChannelRepository,
    RankRepository,
    RoleRepository,
    SettingsRepository,
)
from invitectl.infrastructure.repositories.invites import InviteRepository

__all__ = [
    "ChannelRepository",
    "InviteRepository",
    "RankRepository",
    "RoleRepository",
    "SettingsRepository",
]
