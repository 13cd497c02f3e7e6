"""Tests for the Tracker: wiring, caches, and invalidation."""

from __future__ import annotations

from invitectl.config.settings import InviteSettings
from invitectl.domain.types import AssignmentStyle
from invitectl.infrastructure.tracker import Tracker
from invitectl.plugins.manager import PluginManager
from tests.conftest import GUILD, seed_member_credit


class TestTrackerWiring:
    def test_creates_database_under_project_root(
        self, tracker: Tracker, settings: InviteSettings
    ) -> None:
        assert settings.db_path.is_file()
        assert tracker.settings is settings

    def test_init_plugins_without_discovery(self, tracker: Tracker) -> None:
        pm = tracker.init_plugins(discover=False)
        assert isinstance(pm, PluginManager)
        assert tracker.plugin_manager is pm
        assert not pm.is_loaded

    def test_settings_defaults_flow_from_config(self, tracker: Tracker) -> None:
        guild_settings = tracker.settings_cache.get(GUILD)
        assert guild_settings.rank_assignment_style is AssignmentStyle.ALL
        assert guild_settings.rank_announcement_message == (
            tracker.settings.ranks.announcement_message
        )


class TestCountsCache:
    def test_counts_loaded_from_store(self, tracker: Tracker) -> None:
        seed_member_credit(tracker, "m1", uses=5, custom=2, fakes=1)
        counts = tracker.counts_cache.get(GUILD, "m1")
        assert (counts.regular, counts.custom, counts.fake, counts.total) == (5, 2, -1, 6)

    def test_stale_until_invalidated(self, tracker: Tracker) -> None:
        seed_member_credit(tracker, "m1", uses=5)
        assert tracker.counts_cache.get(GUILD, "m1").total == 5

        tracker.invites.add_custom_invite(GUILD, "m1", 3)
        assert tracker.counts_cache.get(GUILD, "m1").total == 5

        tracker.invalidate_counts(GUILD, "m1")
        assert tracker.counts_cache.get(GUILD, "m1").total == 8

    def test_guild_invalidation_drops_every_member(self, tracker: Tracker) -> None:
        seed_member_credit(tracker, "m1", uses=1)
        seed_member_credit(tracker, "m2", uses=2)
        tracker.counts_cache.get(GUILD, "m1")
        tracker.counts_cache.get(GUILD, "m2")
        tracker.invalidate_counts(GUILD)
        assert not tracker.counts_cache.contains(GUILD, "m1")
        assert not tracker.counts_cache.contains(GUILD, "m2")


class TestOtherCaches:
    def test_ranks_cache_invalidation(self, tracker: Tracker) -> None:
        assert tracker.ranks_cache.get(GUILD) == []
        tracker.ranks.upsert_rank(GUILD, "A", 5)
        assert tracker.ranks_cache.get(GUILD) == []
        tracker.invalidate_ranks(GUILD)
        assert [r.role_id for r in tracker.ranks_cache.get(GUILD)] == ["A"]

    def test_settings_cache_invalidation(self, tracker: Tracker) -> None:
        tracker.settings_cache.get(GUILD)
        tracker.guild_settings.set(GUILD, "rank_assignment_style", "highest")
        tracker.invalidate_settings(GUILD)
        assert tracker.settings_cache.get(GUILD).rank_assignment_style is AssignmentStyle.HIGHEST

    def test_invalidate_all(self, tracker: Tracker) -> None:
        tracker.counts_cache.get(GUILD, "m1")
        tracker.ranks_cache.get(GUILD)
        tracker.settings_cache.get(GUILD)
        tracker.invalidate_all()
        assert not tracker.counts_cache.contains(GUILD, "m1")
        assert GUILD not in tracker.ranks_cache
        assert GUILD not in tracker.settings_cache
