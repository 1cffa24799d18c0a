"""
MongoDB Beanie model for action items.
"""

from typing import Optional

from pydantic import Field

from .base_m import SoftDeletableDocument


class ActionMongo(SoftDeletableDocument):
    """MongoDB model for an action item."""

    action_id: str = Field(..., description="Action ID")
    description: str = Field(..., description="What the user needs to do")
    visit_id: Optional[str] = Field(default=None, description="Visit the action came from")
    completed: bool = False
    due_at: Optional[int] = None

    class Settings:
        name = "actions"
        indexes = [
            "action_id",
            [("owner_user_id", 1), ("deleted_at", 1), ("created_at", -1), ("action_id", -1)],
            [("owner_user_id", 1), ("visit_id", 1)],
            [("deleted_at", 1)],
        ]
