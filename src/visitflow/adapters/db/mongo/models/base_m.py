"""
Shared fields for soft-deletable MongoDB documents.

Timestamps are stored as epoch milliseconds (int64).
"""

from typing import Optional

from beanie import Document
from pydantic import Field

from visitflow.domain.value_objects.timestamps import now_millis


class SoftDeletableDocument(Document):
    """Base document for owner-scoped records that are soft-deleted before purge."""

    owner_user_id: str = Field(..., description="Owning user ID")
    deleted_at: Optional[int] = Field(default=None, description="Soft-delete time (epoch ms)")
    deleted_by: Optional[str] = Field(default=None, description="User who deleted the record")
    created_at: int = Field(default_factory=now_millis)
    updated_at: int = Field(default_factory=now_millis)
