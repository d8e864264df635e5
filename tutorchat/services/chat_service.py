import logging
from typing import Any, Dict, List, Mapping, Optional

from tutorchat.config import get_settings
from tutorchat.errors import AlreadyExistsError
from tutorchat.models.conversation import ConversationDocument
from tutorchat.models.message import MessageDocument
from tutorchat.repositories.conversation_repository import ConversationRepository
from tutorchat.services.message_appender import MessageAppender, build_message, clean_content
from tutorchat.services.read_marker import ReadMarker
from tutorchat.services.unread_counter import count_unread, summarize
from tutorchat.utils.concurrency import KeyedLock, conversation_locks
from tutorchat.utils.identity import ensure_participant
from tutorchat.utils.timestamps import Clock, next_timestamp, utc_now

logger = logging.getLogger(__name__)


class ChatService:

    def __init__(
        self,
        conversation_repo: ConversationRepository,
        clock: Clock = utc_now,
        locks: KeyedLock = conversation_locks,
    ) -> None:
        self._conversation_repo = conversation_repo
        self._clock = clock
        self._locks = locks
        self._appender = MessageAppender(conversation_repo, clock=clock, locks=locks)
        self._read_marker = ReadMarker(conversation_repo, clock=clock, locks=locks)

    async def create_conversation(
        self,
        student_id: str,
        student_name: str,
        teacher_id: str,
        teacher_name: str,
        course_id: Optional[str] = None,
        course_name: Optional[str] = None,
        initial_message: Optional[str] = None,
    ) -> ConversationDocument:
        first: Optional[MessageDocument] = None
        if initial_message is not None:
            # the student opens the thread
            first = build_message(
                student_id,
                student_name or student_id,
                clean_content(initial_message),
                next_timestamp(self._clock(), None),
            )
        return await self._conversation_repo.create(
            student_id=student_id,
            student_name=student_name,
            teacher_id=teacher_id,
            teacher_name=teacher_name,
            course_id=course_id,
            course_name=course_name,
            initial_message=first,
        )

    async def start_conversation(
        self,
        student_id: str,
        student_name: str,
        teacher_id: str,
        teacher_name: str,
        course_id: Optional[str] = None,
        course_name: Optional[str] = None,
        initial_message: Optional[str] = None,
    ) -> ConversationDocument:
        """
        Return the live conversation for the pair, creating it on first contact.

        A thread opened under another course is never handed back.
        """
        try:
            return await self.create_conversation(
                student_id=student_id,
                student_name=student_name,
                teacher_id=teacher_id,
                teacher_name=teacher_name,
                course_id=course_id,
                course_name=course_name,
                initial_message=initial_message,
            )
        except AlreadyExistsError as exc:
            existing = await self._conversation_repo.get(exc.conversation_id)
            if (existing.get("course_id") or "") != (course_id or ""):
                raise AlreadyExistsError(
                    f"Conversation {exc.conversation_id} already exists for course "
                    f"{existing.get('course_id') or '(none)'}",
                    conversation_id=exc.conversation_id,
                ) from None
            logger.debug("Conversation %s already exists, reusing it", exc.conversation_id)
            return existing

    async def get_conversation(self, conversation_id: str, viewer_id: Optional[str] = None) -> ConversationDocument:
        convo = await self._conversation_repo.get(conversation_id)
        if viewer_id is not None:
            ensure_participant(convo, viewer_id)
        return convo

    async def delete_conversation(self, conversation_id: str, requester_id: Optional[str] = None) -> None:
        async with self._locks.hold(conversation_id, get_settings().write_lock_timeout_seconds):
            if requester_id is not None:
                ensure_participant(await self._conversation_repo.get(conversation_id), requester_id)
            await self._conversation_repo.delete(conversation_id)

    async def list_conversations(self, user_id: str) -> List[Dict[str, Any]]:
        conversations = await self._conversation_repo.list_by_participant(user_id)
        return [summarize(convo, user_id) for convo in conversations]

    async def send_message(
        self,
        conversation_id: str,
        sender_id: str,
        sender_name: Optional[str],
        content: str,
        attachment: Optional[Mapping[str, Any]] = None,
    ) -> MessageDocument:
        return await self._appender.append(conversation_id, sender_id, sender_name, content, attachment)

    async def mark_read(self, conversation_id: str, viewer_id: str) -> int:
        return await self._read_marker.mark_read(conversation_id, viewer_id)

    async def unread_count(self, conversation_id: str, viewer_id: str) -> int:
        convo = await self._conversation_repo.get(conversation_id)
        return count_unread(convo, viewer_id)
