"""
MongoDB implementation of ActionRepository.
"""

from typing import List, Optional

from visitflow.application.pagination import CursorPosition, SortDirection
from visitflow.application.ports.repositories.action_repo import ActionRepository
from visitflow.domain.entities.action import ActionItem

from ..models.action_m import ActionMongo
from .cursor_query import active_owner_filter, after_cursor_filter, sort_spec


class MongoActionRepository(ActionRepository):
    """MongoDB implementation of ActionRepository."""

    async def create(self, action: ActionItem) -> ActionItem:
        action_mongo = ActionMongo(
            action_id=action.action_id,
            owner_user_id=action.owner_user_id,
            description=action.description,
            visit_id=action.visit_id,
            completed=action.completed,
            due_at=action.due_at,
            deleted_at=action.deleted_at,
            deleted_by=action.deleted_by,
            created_at=action.created_at,
            updated_at=action.updated_at,
        )
        await action_mongo.insert()
        return self._mongo_to_domain(action_mongo)

    async def resolve_cursor(self, owner_user_id: str, cursor: str) -> Optional[CursorPosition]:
        query = active_owner_filter(owner_user_id)
        query["action_id"] = cursor
        action_mongo = await ActionMongo.find_one(query)
        if not action_mongo:
            return None
        return CursorPosition(record_id=action_mongo.action_id, created_at=action_mongo.created_at)

    async def list_for_owner(
        self,
        owner_user_id: str,
        limit: int,
        sort: SortDirection = SortDirection.DESC,
        after: Optional[CursorPosition] = None,
    ) -> List[ActionItem]:
        query = active_owner_filter(owner_user_id)
        query.update(after_cursor_filter("action_id", after, sort))
        actions = await ActionMongo.find(query).sort(sort_spec("action_id", sort)).limit(limit).to_list()
        return [self._mongo_to_domain(a) for a in actions]

    async def list_all_for_owner(
        self, owner_user_id: str, sort: SortDirection = SortDirection.DESC
    ) -> List[ActionItem]:
        actions = await ActionMongo.find(active_owner_filter(owner_user_id)).sort(
            sort_spec("action_id", sort)
        ).to_list()
        return [self._mongo_to_domain(a) for a in actions]

    async def set_deleted_for_visit(
        self, owner_user_id: str, visit_id: str, deleted_at: Optional[int], deleted_by: Optional[str]
    ) -> int:
        query = {"owner_user_id": owner_user_id, "visit_id": visit_id}
        # Deleting keeps earlier deletion times; restoring only touches deleted actions
        query["deleted_at"] = None if deleted_at is not None else {"$ne": None}
        result = await ActionMongo.get_motor_collection().update_many(
            query, {"$set": {"deleted_at": deleted_at, "deleted_by": deleted_by}}
        )
        return result.modified_count

    def _mongo_to_domain(self, action_mongo: ActionMongo) -> ActionItem:
        return ActionItem(
            action_id=action_mongo.action_id,
            owner_user_id=action_mongo.owner_user_id,
            description=action_mongo.description,
            visit_id=action_mongo.visit_id,
            completed=action_mongo.completed,
            due_at=action_mongo.due_at,
            deleted_at=action_mongo.deleted_at,
            deleted_by=action_mongo.deleted_by,
            created_at=action_mongo.created_at,
            updated_at=action_mongo.updated_at,
        )
