"""Collaborator interfaces consumed by the core.

The core never talks to a database, a gateway, or a chat client directly.
It reads through these protocols; infrastructure provides the concrete
implementations and tests provide fakes.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from invitectl.domain.leaderboard import CustomAdjustment, InvalidatedJoins, RegularCredit
from invitectl.domain.models import GuildRole


class InviteStore(Protocol):
    """Queryable store of normalized invite records.

    Every query is guild-scoped. Passing *member_id* restricts the rows to
    that member (as inviter for codes and joins, as owner for adjustments).
    Queries raise on failure; callers never see partial results.
    """

    def query_regular_credit(
        self, guild_id: str, member_id: str | None = None
    ) -> list[RegularCredit]: ...

    def query_invalidated_joins(
        self, guild_id: str, member_id: str | None = None
    ) -> list[InvalidatedJoins]: ...

    def query_custom_adjustments(
        self, guild_id: str, member_id: str | None = None
    ) -> list[CustomAdjustment]: ...


class GuildRoleProvider(Protocol):
    """Resolves guild roles and the acting bot's standing."""

    def get_roles(self, guild_id: str) -> Mapping[str, GuildRole]: ...

    def get_member_role_ids(self, guild_id: str, member_id: str) -> frozenset[str]: ...

    def get_bot_role_ids(self, guild_id: str) -> frozenset[str]: ...

    def bot_can_manage_roles(self, guild_id: str) -> bool: ...


class RoleMutator(Protocol):
    """Grants and revokes roles. Each call may fail independently by raising."""

    def grant_role(self, guild_id: str, member_id: str, role_id: str, reason: str) -> None: ...

    def revoke_role(self, guild_id: str, member_id: str, role_id: str, reason: str) -> None: ...


class Messenger(Protocol):
    """Renders and delivers promotion announcements."""

    def channel_exists(self, guild_id: str, channel_id: str) -> bool: ...

    def render(self, guild_id: str, template: str, variables: Mapping[str, Any]) -> str: ...

    def send(self, guild_id: str, channel_id: str, content: str) -> None: ...
