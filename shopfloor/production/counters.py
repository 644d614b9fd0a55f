"""Monotonic sequence allocation for production units.

Every unit gets a global sequence and a per-product sequence. The
read-increment-write for a scope happens inside the caller's transaction with
the counter row locked (``SELECT ... FOR UPDATE``), and the whole transaction
runs under ``allocation_lock`` so workers in this process never interleave on
databases without row locks (SQLite).
"""

import logging
import threading
from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.orm import Session

from shopfloor.db.models import SequenceCounter
from shopfloor.exceptions import InvalidSequence

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = "global"

_allocation_lock = threading.RLock()


def item_scope(item_id: str) -> str:
    """Counter scope for one product."""
    return f"item:{item_id}"


def _next(last: int | None) -> int:
    if last is None:
        return 1
    if isinstance(last, bool) or not isinstance(last, int):
        raise InvalidSequence(f"Counter value must be an integer, got {last!r}")
    if last < 0:
        raise InvalidSequence(f"Counter value cannot be negative: {last}")
    return last + 1


def next_global(last: int | None) -> int:
    """Return the global sequence following ``last`` (``None`` means no row yet)."""
    return _next(last)


def next_for_product(last: int | None) -> int:
    """Return the per-product sequence following ``last``."""
    return _next(last)


@contextmanager
def allocation_lock():
    """Hold the process-wide allocation lock for the length of a transaction.

    The lock must stay held until the transaction that allocated has committed
    or rolled back; releasing it earlier lets another worker read the
    pre-commit counter value.
    """
    with _allocation_lock:
        yield


class SequenceAllocator:
    """Read-increment-write of named counters within one session."""

    def __init__(self, db: Session):
        """Initialize allocator.

        Args:
            db: Database session whose transaction owns the allocation.
        """
        self.db = db

    def _locked_row(self, scope: str) -> SequenceCounter | None:
        stmt = select(SequenceCounter).where(SequenceCounter.scope == scope).with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def allocate(self, scope: str) -> int:
        """Allocate the next value of ``scope``.

        The new value is flushed but not committed; it becomes durable with
        the caller's commit and disappears with its rollback.

        Args:
            scope: Counter scope, ``"global"`` or ``"item:<item_id>"``.

        Returns:
            int: The allocated value, starting at 1 for a new scope.
        """
        with _allocation_lock:
            row = self._locked_row(scope)
            if row is None:
                value = _next(None)
                row = SequenceCounter(scope=scope, value=value)
                self.db.add(row)
            else:
                value = _next(row.value)
                row.value = value
            self.db.flush()

        logger.debug(f"Allocated {scope} = {value}")
        return value

    def allocate_global(self) -> int:
        """Allocate the next system-wide unit sequence."""
        return self.allocate(GLOBAL_SCOPE)

    def allocate_for_item(self, item_id: str) -> int:
        """Allocate the next sequence for one product."""
        return self.allocate(item_scope(item_id))

    def peek(self, scope: str) -> int:
        """Return the last issued value of ``scope`` without allocating (0 if none)."""
        row = self.db.execute(
            select(SequenceCounter).where(SequenceCounter.scope == scope)
        ).scalar_one_or_none()
        return row.value if row is not None else 0
