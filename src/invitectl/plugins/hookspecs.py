"""Pluggy hook specifications for invitectl lifecycle events.

Hooks are dispatched synchronously after the corresponding store
mutation has committed and the affected caches have been invalidated.
"""

from __future__ import annotations

import pluggy

PROJECT_NAME = "invitectl"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class InvitectlHookSpec:
    """Hook specifications for the invitectl plugin system."""

    @hookspec
    def post_counts_invalidated(self, guild_id: str, member_id: str | None) -> None:
        """Called after cached counts were dropped (``member_id`` None = whole guild)."""

    @hookspec
    def post_clear(self, guild_id: str, member_id: str | None) -> None:
        """Called after invite credit was cleared."""

    @hookspec
    def post_restore(self, guild_id: str, member_id: str | None) -> None:
        """Called after cleared invite credit was restored."""

    @hookspec
    def post_promotion(
        self,
        guild_id: str,
        member_id: str,
        granted: list[str],
        revoked: list[str],
        blocked: list[str],
    ) -> None:
        """Called after a role change plan was applied to a member."""
