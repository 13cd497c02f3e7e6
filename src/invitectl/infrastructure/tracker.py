"""Tracker — the single dependency injected into every service.

The Tracker owns the database engine, the repositories, the query worker
pool, and the per-guild caches:

- **counts**: per guild, per member :class:`InviteCountBreakdown`.
- **ranks**: per guild rank thresholds.
- **settings**: per guild :class:`GuildSettings`.

Caches never expire on their own. Every service that mutates the store
calls the matching ``invalidate_*`` method before returning, so the next
read recomputes from the store.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from invitectl.domain.accounting import InviteAccountingEngine
from invitectl.domain.leaderboard import LeaderboardBuilder
from invitectl.domain.models import GuildSettings, InviteCountBreakdown, RankThreshold
from invitectl.infrastructure.cache import GuildCache, KeyedCache
from invitectl.infrastructure.database.engine import init_database
from invitectl.infrastructure.messenger import ChannelMessenger
from invitectl.infrastructure.repositories.guild import (
    ChannelRepository,
    RankRepository,
    RoleRepository,
    SettingsRepository,
)
from invitectl.infrastructure.repositories.invites import InviteRepository

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

    from invitectl.config.settings import InviteSettings
    from invitectl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class Tracker:
    """Store, caches, and collaborators for one process."""

    def __init__(self, settings: InviteSettings, *, engine: Engine | None = None) -> None:
        self._settings = settings
        self._engine = engine if engine is not None else init_database(settings.db_path)
        self._executor = ThreadPoolExecutor(
            max_workers=settings.workers.query_threads,
            thread_name_prefix="invitectl-query",
        )
        self._plugin_manager: PluginManager | None = None

        self.invites = InviteRepository(self._engine)
        self.ranks = RankRepository(self._engine)
        self.guild_settings = SettingsRepository(
            self._engine,
            defaults=GuildSettings(
                rank_assignment_style=settings.ranks.default_assignment_style,
                rank_announcement_message=settings.ranks.announcement_message,
            ),
        )
        self.roles = RoleRepository(self._engine, bot_member_id=settings.bot.member_id)
        self.channels = ChannelRepository(self._engine)
        self.messenger = ChannelMessenger(self._engine)

        self.accounting = InviteAccountingEngine(self.invites, executor=self._executor)
        self.leaderboard = LeaderboardBuilder(self.invites, executor=self._executor)

        self.counts_cache: GuildCache[InviteCountBreakdown] = GuildCache(
            self.accounting.compute_counts, name="counts"
        )
        self.ranks_cache: KeyedCache[str, list[RankThreshold]] = KeyedCache(
            self.ranks.list_ranks, name="ranks"
        )
        self.settings_cache: KeyedCache[str, GuildSettings] = KeyedCache(
            self.guild_settings.get, name="settings"
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def settings(self) -> InviteSettings:
        return self._settings

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def plugin_manager(self) -> PluginManager | None:
        """Loaded plugin manager, or None when plugins were never initialized."""
        return self._plugin_manager

    def init_plugins(self, *, discover: bool = True) -> PluginManager:
        """Create the plugin manager and optionally load entry-point plugins."""
        from invitectl.plugins.manager import PluginManager

        pm = PluginManager()
        if discover:
            names = pm.discover_and_load()
            if names:
                logger.debug("Loaded plugins: %s", ", ".join(names))
        self._plugin_manager = pm
        return pm

    # ------------------------------------------------------------------
    # Cache invalidation
    # ------------------------------------------------------------------

    def invalidate_counts(self, guild_id: str, member_id: str | None = None) -> None:
        """Drop one member's cached counts, or the whole guild's when *member_id* is None."""
        if member_id is None:
            self.counts_cache.invalidate_guild(guild_id)
        else:
            self.counts_cache.invalidate(guild_id, member_id)

    def invalidate_ranks(self, guild_id: str) -> None:
        self.ranks_cache.invalidate(guild_id)

    def invalidate_settings(self, guild_id: str) -> None:
        self.settings_cache.invalidate(guild_id)

    def invalidate_all(self) -> None:
        self.counts_cache.invalidate_all()
        self.ranks_cache.invalidate_all()
        self.settings_cache.invalidate_all()

    def close(self) -> None:
        """Shut down the worker pool and dispose of the engine."""
        self._executor.shutdown(wait=True)
        self._engine.dispose()
