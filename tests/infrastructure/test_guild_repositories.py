"""Tests for rank, settings, role, and channel repositories."""

from __future__ import annotations

import pytest
from sqlalchemy.engine import Engine

from invitectl.domain.models import GuildSettings
from invitectl.domain.types import AssignmentStyle, Permission
from invitectl.infrastructure.errors import RoleMutationError
from invitectl.infrastructure.repositories.guild import (
    ChannelRepository,
    RankRepository,
    RoleRepository,
    SettingsRepository,
)

G = "g1"


class TestRankRepository:
    def test_upsert_then_list_ordered_by_threshold(self, db_engine: Engine) -> None:
        repo = RankRepository(db_engine)
        assert repo.upsert_rank(G, "B", 10) is True
        assert repo.upsert_rank(G, "A", 5, description="first") is True
        ranks = repo.list_ranks(G)
        assert [(r.role_id, r.num_invites_required) for r in ranks] == [("A", 5), ("B", 10)]
        assert ranks[0].description == "first"

    def test_upsert_existing_updates(self, db_engine: Engine) -> None:
        repo = RankRepository(db_engine)
        repo.upsert_rank(G, "A", 5)
        assert repo.upsert_rank(G, "A", 7) is False
        assert repo.list_ranks(G)[0].num_invites_required == 7

    def test_remove(self, db_engine: Engine) -> None:
        repo = RankRepository(db_engine)
        repo.upsert_rank(G, "A", 5)
        assert repo.remove_rank(G, "A") is True
        assert repo.remove_rank(G, "A") is False
        assert repo.list_ranks(G) == []

    def test_guild_isolation(self, db_engine: Engine) -> None:
        repo = RankRepository(db_engine)
        repo.upsert_rank(G, "A", 5)
        assert repo.list_ranks("g2") == []


class TestSettingsRepository:
    def test_defaults_when_nothing_stored(self, db_engine: Engine) -> None:
        repo = SettingsRepository(db_engine)
        assert repo.get(G) == GuildSettings()

    def test_configured_defaults(self, db_engine: Engine) -> None:
        defaults = GuildSettings(
            rank_assignment_style=AssignmentStyle.HIGHEST, rank_announcement_message="hi"
        )
        repo = SettingsRepository(db_engine, defaults=defaults)
        settings = repo.get(G)
        assert settings.rank_assignment_style is AssignmentStyle.HIGHEST
        assert settings.rank_announcement_message == "hi"

    def test_stored_values_override(self, db_engine: Engine) -> None:
        repo = SettingsRepository(db_engine)
        repo.set(G, "rank_assignment_style", "highest")
        repo.set(G, "rank_announcement_channel", "c1")
        settings = repo.get(G)
        assert settings.rank_assignment_style is AssignmentStyle.HIGHEST
        assert settings.rank_announcement_channel == "c1"

    def test_set_none_removes_override(self, db_engine: Engine) -> None:
        repo = SettingsRepository(db_engine)
        repo.set(G, "rank_announcement_channel", "c1")
        repo.set(G, "rank_announcement_channel", None)
        assert repo.get(G).rank_announcement_channel is None

    def test_unknown_key_rejected(self, db_engine: Engine) -> None:
        with pytest.raises(ValueError, match="Unknown setting"):
            SettingsRepository(db_engine).set(G, "prefix", "!")


class TestRoleRepository:
    def test_get_roles(self, db_engine: Engine) -> None:
        repo = RoleRepository(db_engine)
        repo.upsert_role(G, "r1", "Admin", position=9, permissions=int(Permission.ADMINISTRATOR))
        roles = repo.get_roles(G)
        assert roles["r1"].name == "Admin"
        assert roles["r1"].position == 9
        assert roles["r1"].has_permission(Permission.ADMINISTRATOR)

    def test_upsert_role_replaces(self, db_engine: Engine) -> None:
        repo = RoleRepository(db_engine)
        repo.upsert_role(G, "r1", "Old")
        repo.upsert_role(G, "r1", "New", position=3)
        assert repo.get_roles(G)["r1"].name == "New"
        assert repo.role_exists(G, "r1")
        assert not repo.role_exists(G, "r2")

    def test_grant_and_revoke(self, db_engine: Engine) -> None:
        repo = RoleRepository(db_engine)
        repo.upsert_role(G, "r1", "Role")
        repo.grant_role(G, "m1", "r1", "test")
        repo.grant_role(G, "m1", "r1", "test")
        assert repo.get_member_role_ids(G, "m1") == frozenset({"r1"})
        repo.revoke_role(G, "m1", "r1", "test")
        assert repo.get_member_role_ids(G, "m1") == frozenset()

    def test_grant_unknown_role_raises(self, db_engine: Engine) -> None:
        with pytest.raises(RoleMutationError, match="Unknown role"):
            RoleRepository(db_engine).grant_role(G, "m1", "ghost", "test")

    def test_revoke_unheld_role_raises(self, db_engine: Engine) -> None:
        repo = RoleRepository(db_engine)
        repo.upsert_role(G, "r1", "Role")
        with pytest.raises(RoleMutationError, match="does not hold"):
            repo.revoke_role(G, "m1", "r1", "test")

    def test_bot_roles_without_member_id(self, db_engine: Engine) -> None:
        repo = RoleRepository(db_engine)
        assert repo.get_bot_role_ids(G) == frozenset()
        assert repo.bot_can_manage_roles(G) is False

    @pytest.mark.parametrize(
        ("permissions", "expected"),
        [
            (0, False),
            (int(Permission.MANAGE_ROLES), True),
            (int(Permission.ADMINISTRATOR), True),
            (int(Permission.MANAGE_GUILD), False),
        ],
    )
    def test_bot_can_manage_roles(
        self, db_engine: Engine, permissions: int, expected: bool
    ) -> None:
        repo = RoleRepository(db_engine, bot_member_id="bot")
        repo.upsert_role(G, "bot-role", "Bot", position=5, permissions=permissions)
        repo.grant_role(G, "bot", "bot-role", "setup")
        assert repo.get_bot_role_ids(G) == frozenset({"bot-role"})
        assert repo.bot_can_manage_roles(G) is expected


class TestChannelRepository:
    def test_exists_per_guild(self, db_engine: Engine) -> None:
        repo = ChannelRepository(db_engine)
        repo.upsert_channel(G, "c1", "general")
        repo.upsert_channel(G, "c1", "renamed")
        assert repo.channel_exists(G, "c1")
        assert not repo.channel_exists("g2", "c1")
        assert not repo.channel_exists(G, "c2")
