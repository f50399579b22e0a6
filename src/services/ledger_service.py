"""Append-only ledger entry store.

Entries are inserted and read, never updated or deleted. The store does not
know about balances; the balance engine owns that and calls append() inside
its own transaction.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.ledger_entry import EntryKind, LedgerEntry

logger = logging.getLogger(__name__)


class LedgerEntryStore:
    """Durable event log of payments, charges and credits keyed by lease."""

    def __init__(self, session: AsyncSession):
        """Initialize with database session.

        Args:
            session: AsyncSession shared with the caller's transaction
        """
        self.session = session

    async def append(
        self, lease_id: int, kind: EntryKind, amount: Decimal, method: Optional[str] = None
    ) -> LedgerEntry:
        """Insert one entry and flush it so it gets an id.

        Does not commit: the caller decides the transaction boundary.

        Args:
            lease_id: Owning lease
            kind: Entry classification
            amount: Amount as recorded (negative for credits)
            method: Payment method label, None for landlord adjustments

        Returns:
            The new LedgerEntry
        """
        entry = LedgerEntry(lease_id=lease_id, kind=EntryKind(kind).value, amount=amount, method=method)
        self.session.add(entry)
        await self.session.flush()
        logger.debug("ledger.append: lease_id=%s kind=%s amount=%s entry_id=%s", lease_id, kind, amount, entry.id)
        return entry

    async def list_for_lease(self, lease_id: int) -> List[LedgerEntry]:
        """List a lease's entries, newest first.

        Entries recorded in the same instant fall back to insertion order
        (higher id first).
        """
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.lease_id == lease_id)
            .order_by(LedgerEntry.recorded_at.desc(), LedgerEntry.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def latest_for_lease(self, lease_id: int) -> Optional[LedgerEntry]:
        """Most recent entry for a lease, or None when the ledger is empty."""
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.lease_id == lease_id)
            .order_by(LedgerEntry.recorded_at.desc(), LedgerEntry.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()


__all__ = ["LedgerEntryStore"]
