"""Tests for the pluggy-backed PluginManager."""

from __future__ import annotations

from typing import Any

import pytest

from invitectl.plugins import PluginManager, hookimpl


class RestoreRecorder:
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []

    @hookimpl
    def post_restore(self, guild_id: str, member_id: str | None) -> None:
        self.calls.append({"guild_id": guild_id, "member_id": member_id})


class FailingPlugin:
    @hookimpl
    def post_restore(self, guild_id: str) -> None:
        raise RuntimeError("nope")


class TestPluginManager:
    def test_starts_empty(self) -> None:
        pm = PluginManager()
        assert pm.list_plugin_names() == []
        assert not pm.is_loaded

    def test_register_and_dispatch(self) -> None:
        pm = PluginManager()
        plugin = RestoreRecorder()
        pm.register_plugin(plugin)
        assert pm.list_plugin_names() == ["RestoreRecorder"]
        pm.dispatch("post_restore", {"guild_id": "g1", "member_id": None})
        assert plugin.calls == [{"guild_id": "g1", "member_id": None}]

    def test_register_with_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(RestoreRecorder(), name="audit")
        assert pm.list_plugin_names() == ["audit"]

    def test_unregister(self) -> None:
        pm = PluginManager()
        plugin = RestoreRecorder()
        pm.register_plugin(plugin)
        pm.unregister(plugin)
        pm.dispatch("post_restore", {"guild_id": "g1", "member_id": None})
        assert plugin.calls == []

    def test_dispatch_propagates_plugin_errors(self) -> None:
        pm = PluginManager()
        pm.register_plugin(FailingPlugin())
        with pytest.raises(RuntimeError, match="nope"):
            pm.dispatch("post_restore", {"guild_id": "g1", "member_id": None})

    def test_unknown_hook(self) -> None:
        with pytest.raises(AttributeError):
            PluginManager().dispatch("post_nothing", {})

    def test_discover_marks_loaded(self) -> None:
        pm = PluginManager()
        pm.discover_and_load()
        assert pm.is_loaded

    def test_entry_point_classes_are_instantiated(self) -> None:
        pm = PluginManager()
        pm._pm.register(RestoreRecorder, name="cls-plugin")
        pm._normalize_plugin_instances()
        plugins = pm._pm.get_plugins()
        assert len(plugins) == 1
        assert isinstance(next(iter(plugins)), RestoreRecorder)
        assert pm.list_plugin_names() == ["cls-plugin"]
