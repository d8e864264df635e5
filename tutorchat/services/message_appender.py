import logging
import uuid
from typing import Any, Dict, Mapping, Optional

from tutorchat.config import get_settings
from tutorchat.errors import InvalidArgumentError
from tutorchat.models.message import MessageDocument
from tutorchat.repositories.conversation_repository import ConversationRepository
from tutorchat.utils.concurrency import KeyedLock, conversation_locks, retry_on_conflict
from tutorchat.utils.identity import ensure_participant
from tutorchat.utils.timestamps import Clock, next_timestamp, utc_now

logger = logging.getLogger(__name__)


def build_message(
    sender_id: str,
    sender_name: str,
    content: str,
    timestamp: str,
    attachment: Optional[Mapping[str, Any]] = None,
) -> MessageDocument:
    message: MessageDocument = {
        "message_id": uuid.uuid4().hex,
        "sender_id": sender_id,
        "sender_name": sender_name,
        "content": content,
        "timestamp": timestamp,
        "is_read": False,
    }
    if attachment:
        message["attachment"] = {k: attachment.get(k) for k in ("url", "type", "name")}
    return message


def clean_content(content: Optional[str]) -> str:
    cleaned = (content or "").strip()
    if not cleaned:
        raise InvalidArgumentError("Message content cannot be empty")
    limit = get_settings().message_max_length
    if len(cleaned) > limit:
        raise InvalidArgumentError(f"Message content exceeds {limit} characters")
    return cleaned


def _display_name(conversation: Mapping, sender_id: str) -> str:
    if sender_id == conversation["student_id"]:
        return conversation.get("student_name") or sender_id
    return conversation.get("teacher_name") or sender_id


class MessageAppender:

    def __init__(
        self,
        conversation_repo: ConversationRepository,
        clock: Clock = utc_now,
        locks: KeyedLock = conversation_locks,
    ) -> None:
        self._conversation_repo = conversation_repo
        self._clock = clock
        self._locks = locks

    async def append(
        self,
        conversation_id: str,
        sender_id: str,
        sender_name: Optional[str],
        content: Optional[str],
        attachment: Optional[Mapping[str, Any]] = None,
    ) -> MessageDocument:
        content = clean_content(content)
        settings = get_settings()

        async def attempt() -> MessageDocument:
            convo = await self._conversation_repo.get(conversation_id)
            ensure_participant(convo, sender_id)
            previous = convo["messages"][-1]["timestamp"] if convo.get("messages") else None
            message = build_message(
                sender_id,
                sender_name or _display_name(convo, sender_id),
                content,
                next_timestamp(self._clock(), previous),
                attachment,
            )
            update: Dict[str, Any] = {
                "$push": {"messages": message},
                "$set": {
                    "last_message": dict(message),
                    "updated_at": max(message["timestamp"], convo["updated_at"]),
                },
            }
            await self._conversation_repo.compare_and_set(conversation_id, convo["version"], update)
            return message

        async with self._locks.hold(conversation_id, settings.write_lock_timeout_seconds):
            message = await retry_on_conflict(conversation_id, attempt, max_attempts=settings.write_max_retries)
        logger.debug("Appended message %s to conversation %s", message["message_id"], conversation_id)
        return message
