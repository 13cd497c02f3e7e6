"""Infrastructure error types."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError


class StoreError(RuntimeError):
    """A store query or mutation failed. Never partially applied."""


class RoleMutationError(RuntimeError):
    """A single role grant or revoke could not be applied."""


class DeliveryError(RuntimeError):
    """An announcement could not be delivered."""


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLAlchemy failures as :class:`StoreError`."""
    try:
        yield
    except SQLAlchemyError as exc:
        msg = f"Store operation {operation!r} failed: {exc}"
        raise StoreError(msg) from exc
