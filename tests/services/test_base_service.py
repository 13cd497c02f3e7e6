"""Tests for BaseService event dispatch."""

from __future__ import annotations

from typing import Any

from invitectl.config.settings import InviteSettings
from invitectl.infrastructure.tracker import Tracker
from invitectl.plugins.hookspecs import hookimpl
from invitectl.services.base import BaseService
from tests.conftest import GUILD


class ClearRecorder:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    @hookimpl
    def post_clear(self, guild_id: str, member_id: str | None) -> None:
        self.calls.append({"guild_id": guild_id, "member_id": member_id})


class BrokenPlugin:
    @hookimpl
    def post_clear(self, guild_id: str, member_id: str | None) -> None:
        raise RuntimeError("plugin bug")


class TestDispatchEvent:
    def test_no_plugin_manager_is_noop(self, settings: InviteSettings) -> None:
        tracker = Tracker(settings)
        try:
            warnings: list[str] = []
            BaseService(tracker)._dispatch_event("post_clear", {"guild_id": GUILD}, warnings)
            assert warnings == []
        finally:
            tracker.close()

    def test_dispatches_payload(self, tracker: Tracker) -> None:
        plugin = ClearRecorder()
        assert tracker.plugin_manager is not None
        tracker.plugin_manager.register_plugin(plugin)
        warnings: list[str] = []
        BaseService(tracker)._dispatch_event(
            "post_clear", {"guild_id": GUILD, "member_id": None}, warnings
        )
        assert plugin.calls == [{"guild_id": GUILD, "member_id": None}]
        assert warnings == []

    def test_failure_becomes_warning(self, tracker: Tracker) -> None:
        assert tracker.plugin_manager is not None
        tracker.plugin_manager.register_plugin(BrokenPlugin())
        warnings: list[str] = []
        BaseService(tracker)._dispatch_event(
            "post_clear", {"guild_id": GUILD, "member_id": None}, warnings
        )
        assert warnings == ["Plugin hook post_clear failed"]


class TestCountsInvalidated:
    def test_drops_member_entry(self, tracker: Tracker) -> None:
        tracker.counts_cache.get(GUILD, "m1")
        tracker.counts_cache.get(GUILD, "m2")
        BaseService(tracker)._counts_invalidated(GUILD, "m1", [])
        assert not tracker.counts_cache.contains(GUILD, "m1")
        assert tracker.counts_cache.contains(GUILD, "m2")
