from typing import Any, Dict, List

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING

from tutorchat.database.connection import persistence_guard
from tutorchat.models.conversation import ConversationDocument


class ConversationIndex:
    """Lookups of conversations by participant, served by the student_id/teacher_id indexes."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["conversations"]

    async def _find(self, query: Dict[str, Any]) -> List[ConversationDocument]:
        items: List[ConversationDocument] = []
        with persistence_guard("list"):
            cursor = self.collection.find(query).sort([("updated_at", DESCENDING), ("_id", DESCENDING)])
            async for doc in cursor:
                items.append(doc)
        return items

    async def by_student(self, student_id: str) -> List[ConversationDocument]:
        return await self._find({"student_id": student_id})

    async def by_teacher(self, teacher_id: str) -> List[ConversationDocument]:
        return await self._find({"teacher_id": teacher_id})

    async def for_participant(self, user_id: str) -> List[ConversationDocument]:
        # a user may be a student in one thread and a teacher in another
        merged: Dict[str, ConversationDocument] = {}
        for doc in await self.by_student(user_id) + await self.by_teacher(user_id):
            merged[doc["_id"]] = doc
        return sorted(merged.values(), key=lambda d: (d["updated_at"], d["_id"]), reverse=True)
