"""Tests for PromotionService — load, evaluate, mutate, announce, notify."""

from __future__ import annotations

from typing import Any

import pytest
from sqlalchemy import text

from invitectl.infrastructure.errors import RoleMutationError
from invitectl.infrastructure.tracker import Tracker
from invitectl.plugins.hookspecs import hookimpl
from invitectl.services.promotion import PromotionService
from tests.conftest import GUILD, seed_member_credit, seed_roles


@pytest.fixture
def ranked(tracker: Tracker) -> Tracker:
    """Tracker with roles, ranks A=5 and B=10, and an announcement channel."""
    seed_roles(tracker)
    tracker.ranks.upsert_rank(GUILD, "A", 5)
    tracker.ranks.upsert_rank(GUILD, "B", 10)
    tracker.channels.upsert_channel(GUILD, "c1", "ranks")
    tracker.invites.upsert_member(GUILD, "m1", name="alice", discriminator="0042")
    return tracker


def _announce_in(tracker: Tracker, channel_id: str) -> None:
    tracker.guild_settings.set(GUILD, "rank_announcement_channel", channel_id)
    tracker.invalidate_settings(GUILD)


class PromotionRecorder:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    @hookimpl
    def post_promotion(
        self,
        guild_id: str,
        member_id: str,
        granted: list[str],
        revoked: list[str],
        blocked: list[str],
    ) -> None:
        self.calls.append(
            {
                "guild_id": guild_id,
                "member_id": member_id,
                "granted": granted,
                "revoked": revoked,
                "blocked": blocked,
            }
        )


class ExplodingPlugin:
    @hookimpl
    def post_promotion(self, guild_id: str, member_id: str) -> None:
        raise RuntimeError("plugin bug")


class TestLoad:
    def test_no_ranks_never_reads_roles(
        self, tracker: Tracker, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def boom(*args: object) -> None:
            raise AssertionError("role provider must not be consulted")

        monkeypatch.setattr(tracker.roles, "get_roles", boom)
        monkeypatch.setattr(tracker.roles, "bot_can_manage_roles", boom)
        result = PromotionService(tracker).promote_if_qualified(GUILD, "m1")
        assert result.ok
        assert result.data["num_ranks"] == 0
        assert result.data["mutations"] == []
        assert result.warnings == []

    def test_total_read_from_counts(self, ranked: Tracker) -> None:
        seed_member_credit(ranked, "m1", uses=7)
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1")
        assert result.data["total_invites"] == 7
        assert result.data["roles_to_grant"] == ["A"]

    def test_explicit_total_wins(self, ranked: Tracker) -> None:
        seed_member_credit(ranked, "m1", uses=1)
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=12)
        assert result.data["total_invites"] == 12
        assert result.data["roles_to_grant"] == ["A", "B"]

    def test_store_error(self, ranked: Tracker) -> None:
        with ranked.engine.begin() as conn:
            conn.execute(text("DROP TABLE ranks"))
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=5)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "STORE_ERROR"


class TestMutate:
    def test_grant_applied(self, ranked: Tracker) -> None:
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        assert result.ok
        assert result.data["mutations"] == [
            {"action": "grant", "role_id": "A", "ok": True, "error": None}
        ]
        assert ranked.roles.get_member_role_ids(GUILD, "m1") == frozenset({"A"})
        assert result.data["next_rank"] == {
            "role_id": "B",
            "role_name": "Ambassador",
            "num_invites_required": 10,
        }

    def test_second_run_is_noop(self, ranked: Tracker) -> None:
        svc = PromotionService(ranked)
        svc.promote_if_qualified(GUILD, "m1", total=7)
        result = svc.promote_if_qualified(GUILD, "m1", total=7)
        assert result.data["mutations"] == []

    def test_lost_rank_revoked_before_grants(self, ranked: Tracker) -> None:
        ranked.roles.grant_role(GUILD, "m1", "B", "setup")
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        actions = [(m["action"], m["role_id"]) for m in result.data["mutations"]]
        assert actions == [("revoke", "B"), ("grant", "A")]
        assert ranked.roles.get_member_role_ids(GUILD, "m1") == frozenset({"A"})

    def test_failed_mutation_does_not_stop_others(
        self, ranked: Tracker, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        real_grant = ranked.roles.grant_role

        def flaky_grant(guild_id: str, member_id: str, role_id: str, reason: str) -> None:
            if role_id == "A":
                raise RoleMutationError("gateway down")
            real_grant(guild_id, member_id, role_id, reason)

        monkeypatch.setattr(ranked.roles, "grant_role", flaky_grant)
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=12)
        assert result.ok
        assert result.data["mutations"] == [
            {"action": "grant", "role_id": "A", "ok": False, "error": "gateway down"},
            {"action": "grant", "role_id": "B", "ok": True, "error": None},
        ]
        assert "Failed to grant role A: gateway down" in result.warnings
        assert ranked.roles.get_member_role_ids(GUILD, "m1") == frozenset({"B"})

    def test_role_above_bot_is_blocked(self, ranked: Tracker) -> None:
        ranked.roles.upsert_role(GUILD, "C", "Legend", position=20)
        ranked.ranks.upsert_rank(GUILD, "C", 3)
        ranked.invalidate_ranks(GUILD)
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        assert result.data["roles_blocked_by_hierarchy"] == ["C"]
        assert result.data["roles_to_grant"] == ["A"]

    def test_missing_rank_role_warns(self, ranked: Tracker) -> None:
        ranked.ranks.upsert_rank(GUILD, "ghost", 1)
        ranked.invalidate_ranks(GUILD)
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        assert result.data["skipped_rank_roles"] == ["ghost"]
        assert "Rank role ghost no longer exists" in result.warnings

    def test_without_manage_roles(self, ranked: Tracker) -> None:
        ranked.roles.upsert_role(GUILD, "bot-role", "Bot", position=10, permissions=0)
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        assert result.data["manage_roles_available"] is False
        assert result.data["mutations"] == []
        assert any("manage-roles" in w for w in result.warnings)

    def test_highest_style_swaps_roles(self, ranked: Tracker) -> None:
        ranked.guild_settings.set(GUILD, "rank_assignment_style", "highest")
        ranked.roles.grant_role(GUILD, "m1", "A", "setup")
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=12)
        assert result.data["roles_to_grant"] == ["B"]
        assert result.data["roles_to_revoke"] == ["A"]
        assert ranked.roles.get_member_role_ids(GUILD, "m1") == frozenset({"B"})


class TestAnnounce:
    def test_announces_new_highest_rank(self, ranked: Tracker) -> None:
        _announce_in(ranked, "c1")
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        assert result.data["announced"] is True
        sent = ranked.messenger.sent(GUILD)
        assert [m["channel_id"] for m in sent] == ["c1"]
        assert sent[0]["content"] == "<@m1> reached the rank **Recruiter** with 7 invites!"

    def test_no_channel_no_announcement(self, ranked: Tracker) -> None:
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        assert result.data["announced"] is False
        assert ranked.messenger.sent(GUILD) == []

    def test_highest_already_held_not_announced(self, ranked: Tracker) -> None:
        _announce_in(ranked, "c1")
        ranked.roles.grant_role(GUILD, "m1", "A", "setup")
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        assert result.data["announced"] is False

    def test_custom_template(self, ranked: Tracker) -> None:
        _announce_in(ranked, "c1")
        ranked.guild_settings.set(
            GUILD, "rank_announcement_message", "{memberFullName} is {rankMention} {unknown}"
        )
        PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        assert ranked.messenger.sent(GUILD)[0]["content"] == "alice#0042 is <@&A> {unknown}"

    def test_invalid_channel_is_cleared(self, ranked: Tracker) -> None:
        _announce_in(ranked, "deleted-channel")
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        assert result.ok
        assert result.data["announced"] is False
        assert any("invalid and was cleared" in w for w in result.warnings)
        assert ranked.settings_cache.get(GUILD).rank_announcement_channel is None

    def test_announced_even_without_manage_roles(self, ranked: Tracker) -> None:
        _announce_in(ranked, "c1")
        ranked.roles.upsert_role(GUILD, "bot-role", "Bot", position=10, permissions=0)
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        assert result.data["announced"] is True

    def test_delivery_failure_is_warning(
        self, ranked: Tracker, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _announce_in(ranked, "c1")

        def broken_send(guild_id: str, channel_id: str, content: str) -> None:
            raise RuntimeError("rate limited")

        monkeypatch.setattr(ranked.messenger, "send", broken_send)
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        assert result.ok
        assert result.data["announced"] is False
        assert "Rank announcement failed: rate limited" in result.warnings
        assert result.data["mutations"][0]["ok"] is True


class TestDryRun:
    def test_plans_without_side_effects(self, ranked: Tracker) -> None:
        _announce_in(ranked, "c1")
        recorder = PromotionRecorder()
        assert ranked.plugin_manager is not None
        ranked.plugin_manager.register_plugin(recorder)

        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7, dry_run=True)
        assert result.data["dry_run"] is True
        assert result.data["roles_to_grant"] == ["A"]
        assert result.data["mutations"] == []
        assert result.data["announced"] is False
        assert ranked.roles.get_member_role_ids(GUILD, "m1") == frozenset()
        assert ranked.messenger.sent(GUILD) == []
        assert recorder.calls == []


class TestNotify:
    def test_post_promotion_payload(self, ranked: Tracker) -> None:
        recorder = PromotionRecorder()
        assert ranked.plugin_manager is not None
        ranked.plugin_manager.register_plugin(recorder)
        ranked.roles.grant_role(GUILD, "m1", "B", "setup")
        PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        assert recorder.calls == [
            {
                "guild_id": GUILD,
                "member_id": "m1",
                "granted": ["A"],
                "revoked": ["B"],
                "blocked": [],
            }
        ]

    def test_plugin_failure_is_warning(self, ranked: Tracker) -> None:
        assert ranked.plugin_manager is not None
        ranked.plugin_manager.register_plugin(ExplodingPlugin())
        result = PromotionService(ranked).promote_if_qualified(GUILD, "m1", total=7)
        assert result.ok
        assert "Plugin hook post_promotion failed" in result.warnings
        assert ranked.roles.get_member_role_ids(GUILD, "m1") == frozenset({"A"})
