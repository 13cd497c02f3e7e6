"""BaseService — shared foundation for invitectl services.

Every service receives the :class:`Tracker` at construction time. The
Tracker provides the repositories, the engines, and the caches; services
own the decision of which caches to drop after a mutation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from invitectl.infrastructure.tracker import Tracker

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class InviteService(BaseService):
            def get_counts(self, guild_id: str, member_id: str) -> ServiceResult:
                counts = self._tracker.counts_cache.get(guild_id, member_id)
                ...
    """

    def __init__(self, tracker: Tracker) -> None:
        self._tracker = tracker

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Call a plugin hook. No-op if plugins were never initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        pm = self._tracker.plugin_manager
        if pm is None:
            return
        try:
            pm.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Plugin hook %s failed", hook_name, exc_info=True)
            warnings.append(f"Plugin hook {hook_name} failed")

    def _counts_invalidated(
        self, guild_id: str, member_id: str | None, warnings: list[str]
    ) -> None:
        """Drop cached counts and tell plugins about it."""
        self._tracker.invalidate_counts(guild_id, member_id)
        self._dispatch_event(
            "post_counts_invalidated",
            {"guild_id": guild_id, "member_id": member_id},
            warnings,
        )
