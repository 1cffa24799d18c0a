from typing import List, Optional

from pydantic import BaseModel, Field


class PurgeSoftDeletedRequest(BaseModel):
    retention_days: Optional[int] = Field(None, ge=0, description="Defaults to RETENTION_DAYS")
    page_size: Optional[int] = Field(None, gt=0, description="Defaults to RETENTION_PAGE_SIZE")
    collections: Optional[List[str]] = Field(None, description="Subset of soft-deletable collections")


class CollectionPurgeSummary(BaseModel):
    collection: str
    scanned: int
    purged: int
    has_more: bool
    error: Optional[str] = None


class PurgeSoftDeletedResponse(BaseModel):
    total_scanned: int
    total_purged: int
    has_more: bool
    cutoff: Optional[str] = None
    failed_collections: List[str] = Field(default_factory=list)
    collections: List[CollectionPurgeSummary] = Field(default_factory=list)
