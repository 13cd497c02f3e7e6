"""Frozen value models shared across layers.

All models are immutable. Totals are computed fields so the
``total == regular + custom + fake + leave`` invariant cannot drift.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, computed_field

from invitectl.domain.types import AssignmentStyle, MutationAction, Permission


def full_name(name: str | None, discriminator: str | None) -> str:
    """Render ``name#discriminator``, dropping the legacy zero discriminator.

    Examples:
        >>> full_name("alice", "0042")
        'alice#0042'
        >>> full_name("bob", "0")
        'bob'
        >>> full_name(None, None)
        ''
    """
    if not name:
        return ""
    if discriminator and discriminator != "0":
        return f"{name}#{discriminator}"
    return name


class InviteCountBreakdown(BaseModel):
    """Credited invites for one member, split by source.

    ``fake`` and ``leave`` are subtractive and therefore never positive.
    """

    model_config = {"frozen": True}

    regular: int = Field(default=0, ge=0)
    custom: int = 0
    fake: int = Field(default=0, le=0)
    leave: int = Field(default=0, le=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return self.regular + self.custom + self.fake + self.leave


class LeaderboardEntry(BaseModel):
    """One ranked member on a guild leaderboard."""

    model_config = {"frozen": True}

    member_id: str
    name: str | None = None
    discriminator: str | None = None
    regular: int = 0
    custom: int = 0
    fakes: int = 0
    leaves: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return self.regular + self.custom + self.fakes + self.leaves

    @property
    def display_name(self) -> str:
        return full_name(self.name, self.discriminator) or self.member_id


class RankThreshold(BaseModel):
    """A role unlocked once a member reaches ``num_invites_required``."""

    model_config = {"frozen": True}

    role_id: str
    num_invites_required: int
    description: str | None = None


class GuildRole(BaseModel):
    """Snapshot of a guild role as seen by the role provider."""

    model_config = {"frozen": True}

    id: str
    name: str
    position: int = 0
    permissions: int = 0

    @property
    def perms(self) -> Permission:
        return Permission(self.permissions)

    def has_permission(self, flag: Permission) -> bool:
        return bool(self.perms & flag)


class GuildSettings(BaseModel):
    """Per-guild rank settings."""

    model_config = {"frozen": True}

    rank_assignment_style: AssignmentStyle = AssignmentStyle.ALL
    rank_announcement_channel: str | None = None
    rank_announcement_message: str | None = None


class AnnouncementIntent(BaseModel):
    """Request to announce a member reaching a new highest rank."""

    model_config = {"frozen": True}

    role_id: str
    role_name: str
    total_invites: int


class RoleChangePlan(BaseModel):
    """Role mutations needed to bring a member in line with their rank.

    ``roles_blocked_by_hierarchy`` holds roles the member qualifies for but
    that sit above the bot's highest role. ``revocations_blocked_by_hierarchy``
    is the revoke-side counterpart. ``dangerous_roles`` were reached but carry
    elevated permissions and are never granted automatically.
    """

    model_config = {"frozen": True}

    roles_to_grant: frozenset[str] = frozenset()
    roles_to_revoke: frozenset[str] = frozenset()
    roles_blocked_by_hierarchy: frozenset[str] = frozenset()
    revocations_blocked_by_hierarchy: frozenset[str] = frozenset()
    dangerous_roles: frozenset[str] = frozenset()
    skipped_rank_roles: frozenset[str] = frozenset()
    next_threshold_role_name: str = ""
    next_rank: RankThreshold | None = None
    highest_role_id: str | None = None
    num_ranks: int = 0
    manage_roles_available: bool = True
    announcement: AnnouncementIntent | None = None

    @property
    def is_noop(self) -> bool:
        return not (self.roles_to_grant or self.roles_to_revoke)


class MutationOutcome(BaseModel):
    """Result of one grant or revoke issued while applying a plan."""

    model_config = {"frozen": True}

    action: MutationAction
    role_id: str
    ok: bool
    error: str | None = None
