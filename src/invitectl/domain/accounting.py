"""InviteAccountingEngine — one member's credited invites from three sources.

1. Regular credit: ``uses - cleared_amount`` summed over the member's
   codes, only where uses exceed the cleared amount.
2. Invalidated joins attributed to the member as inviter, excluding
   cleared joins. Fakes and leaves are subtracted.
3. Custom adjustments for the member, excluding cleared ones, added as-is.

The three queries are independent and run concurrently when an executor
is supplied; their results are joined before aggregation.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor
from typing import TYPE_CHECKING

from invitectl.domain.models import InviteCountBreakdown
from invitectl.domain.types import InvalidationReason

if TYPE_CHECKING:
    from invitectl.domain.ports import InviteStore


def run_concurrently[A, B, C](
    executor: Executor | None,
    first: Callable[[], A],
    second: Callable[[], B],
    third: Callable[[], C],
) -> tuple[A, B, C]:
    """Run three independent thunks and join them.

    Without an executor the thunks run in order on the calling thread. Any
    exception propagates after all submitted work has been awaited.
    """
    if executor is None:
        return first(), second(), third()

    futures = (executor.submit(first), executor.submit(second), executor.submit(third))
    errors: list[BaseException] = []
    for future in futures:
        exc = future.exception()
        if exc is not None:
            errors.append(exc)
    if errors:
        raise errors[0]
    return futures[0].result(), futures[1].result(), futures[2].result()


class InviteAccountingEngine:
    """Computes :class:`InviteCountBreakdown` for a single member."""

    def __init__(self, store: InviteStore, *, executor: Executor | None = None) -> None:
        self._store = store
        self._executor = executor

    def compute_counts(self, guild_id: str, member_id: str) -> InviteCountBreakdown:
        """Aggregate the member's credit. Missing rows count as zero."""
        regular_rows, join_rows, custom_rows = run_concurrently(
            self._executor,
            lambda: self._store.query_regular_credit(guild_id, member_id),
            lambda: self._store.query_invalidated_joins(guild_id, member_id),
            lambda: self._store.query_custom_adjustments(guild_id, member_id),
        )

        regular = sum(row.amount for row in regular_rows)
        custom = sum(row.amount for row in custom_rows)

        fake = 0
        leave = 0
        for row in join_rows:
            if row.reason == InvalidationReason.FAKE:
                fake -= row.count
            elif row.reason == InvalidationReason.LEAVE:
                leave -= row.count

        return InviteCountBreakdown(regular=regular, custom=custom, fake=fake, leave=leave)
