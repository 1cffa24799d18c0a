"""
Capability port for collections whose records can be soft-deleted.
"""

from typing import List, Sequence


class SoftDeletableCollection:
    """A collection of records carrying a ``deleted_at`` timestamp."""

    name: str = ""

    async def list_expired_ids(self, cutoff_millis: int, limit: int) -> List[str]:
        """Ids with ``deleted_at <= cutoff_millis``, oldest deletion first.

        Records whose ``deleted_at`` is unset never match.
        """
        raise NotImplementedError

    async def delete_batch(self, record_ids: Sequence[str]) -> int:
        """Hard-delete the given records in one request; returns the count removed."""
        raise NotImplementedError
