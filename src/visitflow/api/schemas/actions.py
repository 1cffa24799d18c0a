from typing import Optional

from pydantic import BaseModel

from visitflow.domain.entities.action import ActionItem
from visitflow.domain.value_objects.timestamps import to_iso


class ActionResponse(BaseModel):
    action_id: str
    description: str
    visit_id: Optional[str] = None
    completed: bool = False
    due_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_entity(cls, action: ActionItem) -> "ActionResponse":
        return cls(
            action_id=action.action_id,
            description=action.description,
            visit_id=action.visit_id,
            completed=action.completed,
            due_at=to_iso(action.due_at),
            created_at=to_iso(action.created_at),
            updated_at=to_iso(action.updated_at),
        )
