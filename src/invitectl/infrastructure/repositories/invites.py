"""InviteRepository — SQL for the invite store.

Read side: the three guild-scoped aggregate queries consumed by the
accounting engine and the leaderboard builder. Each returns display-name
metadata alongside the aggregate so no second identity lookup is needed.

Write side: clearing and restoring credit, plus recording entry points
used to populate the store. Writers are responsible for invalidating any
cached counts afterwards; this repository knows nothing about caches.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, func, insert, select, update

from invitectl.domain.leaderboard import CustomAdjustment, InvalidatedJoins, RegularCredit
from invitectl.domain.types import InvalidationReason
from invitectl.infrastructure.database.schema import (
    custom_invites,
    invite_codes,
    joins,
    members,
    now_iso,
)
from invitectl.infrastructure.errors import store_errors

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


def _member_join(id_column: Any) -> Any:
    return and_(members.c.guild_id == invite_codes.c.guild_id, members.c.id == id_column)


class InviteRepository:
    """Encapsulates SQL for invite credit records."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    # ------------------------------------------------------------------
    # Aggregate queries
    # ------------------------------------------------------------------

    def query_regular_credit(
        self, guild_id: str, member_id: str | None = None
    ) -> list[RegularCredit]:
        """Sum ``uses - cleared_amount`` per inviter where uses exceed the cleared amount."""
        credit = func.sum(invite_codes.c.uses - invite_codes.c.cleared_amount)
        stmt = (
            select(
                invite_codes.c.inviter_id,
                credit.label("total"),
                members.c.name,
                members.c.discriminator,
            )
            .select_from(invite_codes.outerjoin(members, _member_join(invite_codes.c.inviter_id)))
            .where(
                invite_codes.c.guild_id == guild_id,
                invite_codes.c.inviter_id.is_not(None),
                invite_codes.c.uses > invite_codes.c.cleared_amount,
            )
            .group_by(invite_codes.c.inviter_id, members.c.name, members.c.discriminator)
        )
        if member_id is not None:
            stmt = stmt.where(invite_codes.c.inviter_id == member_id)

        rows = self._fetch("query_regular_credit", stmt)
        return [
            RegularCredit(
                member_id=str(r.inviter_id),
                amount=int(r.total or 0),
                name=r.name,
                discriminator=r.discriminator,
            )
            for r in rows
        ]

    def query_invalidated_joins(
        self, guild_id: str, member_id: str | None = None
    ) -> list[InvalidatedJoins]:
        """Count uncleared invalidated joins per inviter and reason.

        Joins are attributed to an inviter through their exact-match code.
        """
        inviter = invite_codes.c.inviter_id
        stmt = (
            select(
                inviter,
                joins.c.invalidated_reason,
                func.count(joins.c.id).label("total"),
                members.c.name,
                members.c.discriminator,
            )
            .select_from(
                joins.join(invite_codes, invite_codes.c.code == joins.c.exact_match_code).outerjoin(
                    members, _member_join(inviter)
                )
            )
            .where(
                joins.c.guild_id == guild_id,
                joins.c.invalidated_reason.is_not(None),
                joins.c.cleared == 0,
                inviter.is_not(None),
            )
            .group_by(inviter, joins.c.invalidated_reason, members.c.name, members.c.discriminator)
        )
        if member_id is not None:
            stmt = stmt.where(inviter == member_id)

        result: list[InvalidatedJoins] = []
        for r in self._fetch("query_invalidated_joins", stmt):
            try:
                reason = InvalidationReason(r.invalidated_reason)
            except ValueError:
                logger.warning(
                    "Ignoring joins with unknown invalidation reason %r in guild %s",
                    r.invalidated_reason,
                    guild_id,
                )
                continue
            result.append(
                InvalidatedJoins(
                    member_id=str(r.inviter_id),
                    reason=reason,
                    count=int(r.total),
                    name=r.name,
                    discriminator=r.discriminator,
                )
            )
        return result

    def query_custom_adjustments(
        self, guild_id: str, member_id: str | None = None
    ) -> list[CustomAdjustment]:
        """Sum uncleared manual adjustments per member."""
        stmt = (
            select(
                custom_invites.c.member_id,
                func.sum(custom_invites.c.amount).label("total"),
                members.c.name,
                members.c.discriminator,
            )
            .select_from(
                custom_invites.outerjoin(
                    members,
                    and_(
                        members.c.guild_id == custom_invites.c.guild_id,
                        members.c.id == custom_invites.c.member_id,
                    ),
                )
            )
            .where(custom_invites.c.guild_id == guild_id, custom_invites.c.cleared == 0)
            .group_by(custom_invites.c.member_id, members.c.name, members.c.discriminator)
        )
        if member_id is not None:
            stmt = stmt.where(custom_invites.c.member_id == member_id)

        rows = self._fetch("query_custom_adjustments", stmt)
        return [
            CustomAdjustment(
                member_id=str(r.member_id),
                amount=int(r.total or 0),
                name=r.name,
                discriminator=r.discriminator,
            )
            for r in rows
        ]

    # ------------------------------------------------------------------
    # Clearing and restoring
    # ------------------------------------------------------------------

    def clear_invite_codes(self, guild_id: str, member_id: str | None = None) -> int:
        """Set ``cleared_amount = uses`` so the codes stop crediting. Returns rows touched."""
        stmt = (
            update(invite_codes)
            .where(*self._code_scope(guild_id, member_id))
            .values(cleared_amount=invite_codes.c.uses)
        )
        return self._execute("clear_invite_codes", stmt)

    def restore_invite_codes(self, guild_id: str, member_id: str | None = None) -> int:
        """Reset ``cleared_amount`` to zero. Returns rows touched."""
        stmt = (
            update(invite_codes)
            .where(*self._code_scope(guild_id, member_id))
            .values(cleared_amount=0)
        )
        return self._execute("restore_invite_codes", stmt)

    def mark_joins_cleared(self, guild_id: str, member_id: str | None = None) -> int:
        """Mark invalidated joins as cleared so they stop debiting the inviter."""
        return self._set_joins_cleared(guild_id, member_id, cleared=True)

    def restore_joins(self, guild_id: str, member_id: str | None = None) -> int:
        return self._set_joins_cleared(guild_id, member_id, cleared=False)

    def mark_custom_invites_cleared(self, guild_id: str, member_id: str | None = None) -> int:
        return self._set_custom_cleared(guild_id, member_id, cleared=True)

    def restore_custom_invites(self, guild_id: str, member_id: str | None = None) -> int:
        return self._set_custom_cleared(guild_id, member_id, cleared=False)

    def _set_joins_cleared(self, guild_id: str, member_id: str | None, *, cleared: bool) -> int:
        conditions: list[ColumnElement[bool]] = [joins.c.guild_id == guild_id]
        if member_id is not None:
            member_codes = select(invite_codes.c.code).where(*self._code_scope(guild_id, member_id))
            conditions.append(joins.c.exact_match_code.in_(member_codes))
        stmt = update(joins).where(*conditions).values(cleared=int(cleared))
        return self._execute("set_joins_cleared", stmt)

    def _set_custom_cleared(self, guild_id: str, member_id: str | None, *, cleared: bool) -> int:
        conditions: list[ColumnElement[bool]] = [custom_invites.c.guild_id == guild_id]
        if member_id is not None:
            conditions.append(custom_invites.c.member_id == member_id)
        stmt = update(custom_invites).where(*conditions).values(cleared=int(cleared))
        return self._execute("set_custom_cleared", stmt)

    @staticmethod
    def _code_scope(guild_id: str, member_id: str | None) -> list[ColumnElement[bool]]:
        scope: list[ColumnElement[bool]] = [invite_codes.c.guild_id == guild_id]
        if member_id is not None:
            scope.append(invite_codes.c.inviter_id == member_id)
        else:
            scope.append(invite_codes.c.inviter_id.is_not(None))
        return scope

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def upsert_member(
        self,
        guild_id: str,
        member_id: str,
        *,
        name: str | None = None,
        discriminator: str | None = None,
    ) -> None:
        """Insert or update a member's display metadata."""
        with store_errors("upsert_member"), self._engine.begin() as conn:
            existing = conn.execute(
                select(members.c.id).where(
                    members.c.guild_id == guild_id, members.c.id == member_id
                )
            ).first()
            if existing is None:
                conn.execute(
                    insert(members).values(
                        guild_id=guild_id, id=member_id, name=name, discriminator=discriminator
                    )
                )
            else:
                conn.execute(
                    update(members)
                    .where(members.c.guild_id == guild_id, members.c.id == member_id)
                    .values(name=name, discriminator=discriminator)
                )

    def record_invite_code(
        self,
        guild_id: str,
        code: str,
        inviter_id: str | None,
        *,
        uses: int = 0,
        channel_id: str | None = None,
    ) -> None:
        """Insert a code or refresh its use count and inviter."""
        with store_errors("record_invite_code"), self._engine.begin() as conn:
            existing = conn.execute(
                select(invite_codes.c.code).where(invite_codes.c.code == code)
            ).first()
            if existing is None:
                conn.execute(
                    insert(invite_codes).values(
                        code=code,
                        guild_id=guild_id,
                        inviter_id=inviter_id,
                        channel_id=channel_id,
                        uses=uses,
                        created=now_iso(),
                    )
                )
            else:
                conn.execute(
                    update(invite_codes)
                    .where(invite_codes.c.code == code)
                    .values(uses=uses, inviter_id=inviter_id)
                )

    def record_join(
        self,
        guild_id: str,
        member_id: str,
        *,
        code: str | None = None,
        invalidated_reason: InvalidationReason | None = None,
    ) -> int:
        """Record a join, optionally linked to the exact invite code used. Returns its id."""
        with store_errors("record_join"), self._engine.begin() as conn:
            result = conn.execute(
                insert(joins).values(
                    guild_id=guild_id,
                    member_id=member_id,
                    exact_match_code=code,
                    invalidated_reason=invalidated_reason.value if invalidated_reason else None,
                    created=now_iso(),
                )
            )
            return int(result.inserted_primary_key[0])

    def invalidate_joins(
        self, guild_id: str, member_id: str, reason: InvalidationReason
    ) -> int:
        """Invalidate every still-valid join made by *member_id*. Returns rows touched."""
        stmt = (
            update(joins)
            .where(
                joins.c.guild_id == guild_id,
                joins.c.member_id == member_id,
                joins.c.invalidated_reason.is_(None),
            )
            .values(invalidated_reason=reason.value)
        )
        return self._execute("invalidate_joins", stmt)

    def add_custom_invite(
        self,
        guild_id: str,
        member_id: str,
        amount: int,
        *,
        reason: str | None = None,
        creator_id: str | None = None,
    ) -> int:
        """Record a manual adjustment (bonus or correction). Returns its id."""
        with store_errors("add_custom_invite"), self._engine.begin() as conn:
            result = conn.execute(
                insert(custom_invites).values(
                    guild_id=guild_id,
                    member_id=member_id,
                    creator_id=creator_id,
                    amount=amount,
                    reason=reason,
                    created=now_iso(),
                )
            )
            return int(result.inserted_primary_key[0])

    def get_member(self, guild_id: str, member_id: str) -> dict[str, Any] | None:
        stmt = select(members).where(members.c.guild_id == guild_id, members.c.id == member_id)
        with store_errors("get_member"), self._engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        return dict(row) if row is not None else None

    # ------------------------------------------------------------------
    # Execution helpers
    # ------------------------------------------------------------------

    def _fetch(self, operation: str, stmt: Select[Any]) -> list[Any]:
        with store_errors(operation), self._engine.connect() as conn:
            return list(conn.execute(stmt).fetchall())

    def _execute(self, operation: str, stmt: Any) -> int:
        with store_errors(operation), self._engine.begin() as conn:
            return int(conn.execute(stmt).rowcount or 0)
