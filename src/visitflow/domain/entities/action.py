"""Action item entity (follow-up tasks extracted from a visit)."""

from dataclasses import dataclass, field
from typing import Optional

from ..value_objects.timestamps import now_millis


@dataclass
class ActionItem:
    action_id: str
    owner_user_id: str
    description: str
    visit_id: Optional[str] = None
    completed: bool = False
    due_at: Optional[int] = None
    deleted_at: Optional[int] = None
    deleted_by: Optional[str] = None
    created_at: int = field(default_factory=now_millis)
    updated_at: int = field(default_factory=now_millis)
