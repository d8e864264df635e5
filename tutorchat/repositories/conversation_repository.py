import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError

from tutorchat.config import get_settings
from tutorchat.database.connection import persistence_guard
from tutorchat.errors import AlreadyExistsError, InvalidArgumentError, NotFoundError
from tutorchat.models.conversation import ConversationDocument
from tutorchat.models.message import MessageDocument
from tutorchat.repositories.conversation_index import ConversationIndex
from tutorchat.utils.concurrency import StaleWriteError
from tutorchat.utils.identity import conversation_id
from tutorchat.utils.timestamps import Clock, to_iso, utc_now

logger = logging.getLogger(__name__)


class ConversationRepository:

    def __init__(self, db: AsyncIOMotorDatabase, clock: Clock = utc_now) -> None:
        self._db = db
        self._clock = clock
        self.index = ConversationIndex(db)

    @property
    def collection(self):
        return self._db["conversations"]

    async def ensure_indexes(self) -> None:
        with persistence_guard("ensure_indexes"):
            await self.collection.create_index([("student_id", ASCENDING)])
            await self.collection.create_index([("teacher_id", ASCENDING)])
            await self.collection.create_index([("updated_at", DESCENDING)])

    def canonical_id(self, student_id: str, teacher_id: str, course_id: Optional[str] = None) -> str:
        scope = course_id if get_settings().scope_by_course else None
        return conversation_id(student_id, teacher_id, scope)

    async def create(
        self,
        student_id: str,
        student_name: str,
        teacher_id: str,
        teacher_name: str,
        course_id: Optional[str] = None,
        course_name: Optional[str] = None,
        initial_message: Optional[MessageDocument] = None,
    ) -> ConversationDocument:
        if not student_id or not teacher_id:
            raise InvalidArgumentError("Student ID and Teacher ID are required")
        if student_id == teacher_id:
            raise InvalidArgumentError("A conversation needs two different participants")

        convo_id = self.canonical_id(student_id, teacher_id, course_id)
        now = to_iso(self._clock())
        messages: List[MessageDocument] = [initial_message] if initial_message else []
        doc: Dict[str, Any] = {
            "_id": convo_id,
            "course_id": course_id,
            "course_name": course_name,
            "student_id": student_id,
            "student_name": student_name,
            "teacher_id": teacher_id,
            "teacher_name": teacher_name,
            "messages": messages,
            "last_message": dict(messages[-1]) if messages else None,
            "created_at": now,
            "updated_at": now,
            "version": 0,
        }
        with persistence_guard("create"):
            try:
                await self.collection.insert_one(doc)
            except DuplicateKeyError:
                raise AlreadyExistsError(
                    f"Conversation {convo_id} already exists", conversation_id=convo_id
                ) from None
        logger.info("Created conversation %s (course=%s)", convo_id, course_id)
        return doc

    async def find(self, convo_id: str) -> Optional[ConversationDocument]:
        with persistence_guard("get"):
            return await self.collection.find_one({"_id": convo_id})

    async def get(self, convo_id: str) -> ConversationDocument:
        doc = await self.find(convo_id)
        if doc is None:
            raise NotFoundError(f"Conversation {convo_id} not found", conversation_id=convo_id)
        return doc

    async def delete(self, convo_id: str) -> None:
        with persistence_guard("delete"):
            result = await self.collection.delete_one({"_id": convo_id})
        if not result.deleted_count:
            raise NotFoundError(f"Conversation {convo_id} not found", conversation_id=convo_id)
        logger.info("Deleted conversation %s", convo_id)

    async def list_by_participant(self, user_id: str) -> List[ConversationDocument]:
        return await self.index.for_participant(user_id)

    async def compare_and_set(self, convo_id: str, expected_version: int, update: Dict[str, Any]) -> None:
        """
        Apply ``update`` only if the stored version still equals ``expected_version``.

        The version is incremented in the same update. Raises StaleWriteError when
        nothing matched, which also covers a conversation deleted in between.
        """
        update = dict(update)
        update["$inc"] = {"version": 1}
        with persistence_guard("write"):
            result = await self.collection.update_one({"_id": convo_id, "version": expected_version}, update)
        if not result.matched_count:
            raise StaleWriteError(convo_id)
