"""Pure leaderboard merge over three tagged credit sources.

Each aggregate row is tagged with the source it came from. Merging folds
every row into a per-member tally; because each source only ever adds to
its own field, the fold is commutative and the input order is irrelevant.
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import TYPE_CHECKING

from invitectl.domain.accounting import run_concurrently
from invitectl.domain.models import LeaderboardEntry
from invitectl.domain.types import InvalidationReason

if TYPE_CHECKING:
    from invitectl.domain.ports import InviteStore


@dataclass(frozen=True, slots=True)
class RegularCredit:
    """Summed ``uses - cleared_amount`` over one inviter's codes."""

    member_id: str
    amount: int
    name: str | None = None
    discriminator: str | None = None


@dataclass(frozen=True, slots=True)
class InvalidatedJoins:
    """Count of uncleared invalidated joins for one inviter and reason."""

    member_id: str
    reason: InvalidationReason
    count: int
    name: str | None = None
    discriminator: str | None = None


@dataclass(frozen=True, slots=True)
class CustomAdjustment:
    """Summed uncleared manual adjustments for one member."""

    member_id: str
    amount: int
    name: str | None = None
    discriminator: str | None = None


type LeaderboardSource = RegularCredit | InvalidatedJoins | CustomAdjustment


@dataclass(slots=True)
class _Tally:
    member_id: str
    name: str | None = None
    discriminator: str | None = None
    regular: int = 0
    custom: int = 0
    fakes: int = 0
    leaves: int = 0

    @property
    def total(self) -> int:
        return self.regular + self.custom + self.fakes + self.leaves

    def absorb(self, row: LeaderboardSource) -> None:
        if self.name is None and row.name:
            self.name = row.name
        if self.discriminator is None and row.discriminator:
            self.discriminator = row.discriminator

        match row:
            case RegularCredit(amount=amount):
                self.regular += amount
            case InvalidatedJoins(reason=InvalidationReason.FAKE, count=count):
                self.fakes -= count
            case InvalidatedJoins(count=count):
                self.leaves -= count
            case CustomAdjustment(amount=amount):
                self.custom += amount


def _sort_key(entry: LeaderboardEntry) -> tuple[int, bool, str, str]:
    # Nameless entries sort after named ones within the same total.
    return (-entry.total, entry.name is None, entry.name or "", entry.member_id)


def merge_leaderboard(*sources: Iterable[LeaderboardSource]) -> list[LeaderboardEntry]:
    """Merge tagged source rows into a ranked leaderboard.

    Members whose merged total is zero or negative are dropped. Members can
    appear with only invalidated joins (negative total) and are filtered
    out here rather than clamped during aggregation.

    Returns entries sorted by total descending, then name ascending.
    """
    tallies: dict[str, _Tally] = {}
    for source in sources:
        for row in source:
            tally = tallies.get(row.member_id)
            if tally is None:
                tally = tallies[row.member_id] = _Tally(member_id=row.member_id)
            tally.absorb(row)

    entries = [
        LeaderboardEntry(
            member_id=t.member_id,
            name=t.name,
            discriminator=t.discriminator,
            regular=t.regular,
            custom=t.custom,
            fakes=t.fakes,
            leaves=t.leaves,
        )
        for t in tallies.values()
        if t.total > 0
    ]
    entries.sort(key=_sort_key)
    return entries


class LeaderboardBuilder:
    """Builds a guild leaderboard from the three aggregate store queries."""

    def __init__(self, store: InviteStore, *, executor: Executor | None = None) -> None:
        self._store = store
        self._executor = executor

    def build(self, guild_id: str, *, limit: int | None = None) -> list[LeaderboardEntry]:
        """Return the ranked leaderboard, optionally truncated to *limit*."""
        regular, invalidated, custom = run_concurrently(
            self._executor,
            lambda: self._store.query_regular_credit(guild_id),
            lambda: self._store.query_invalidated_joins(guild_id),
            lambda: self._store.query_custom_adjustments(guild_id),
        )
        entries = merge_leaderboard(regular, invalidated, custom)
        if limit is not None:
            return entries[:limit]
        return entries
