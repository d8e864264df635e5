import logging
from typing import Any, Dict, List

from tutorchat.config import get_settings
from tutorchat.models.message import MessageDocument
from tutorchat.repositories.conversation_repository import ConversationRepository
from tutorchat.utils.concurrency import KeyedLock, conversation_locks, retry_on_conflict
from tutorchat.utils.identity import ensure_participant
from tutorchat.utils.timestamps import Clock, to_iso, utc_now

logger = logging.getLogger(__name__)


class ReadMarker:

    def __init__(
        self,
        conversation_repo: ConversationRepository,
        clock: Clock = utc_now,
        locks: KeyedLock = conversation_locks,
    ) -> None:
        self._conversation_repo = conversation_repo
        self._clock = clock
        self._locks = locks

    async def mark_read(self, conversation_id: str, viewer_id: str) -> int:
        """Mark every message the viewer received as read; returns how many changed."""
        settings = get_settings()

        async def attempt() -> int:
            convo = await self._conversation_repo.get(conversation_id)
            ensure_participant(convo, viewer_id)
            transitioned = 0
            messages: List[MessageDocument] = []
            for message in convo.get("messages") or []:
                if message["sender_id"] != viewer_id and not message.get("is_read", False):
                    message = {**message, "is_read": True}
                    transitioned += 1
                messages.append(message)
            if not transitioned:
                return 0
            update: Dict[str, Any] = {
                "$set": {
                    "messages": messages,
                    "last_message": dict(messages[-1]),
                    "updated_at": max(to_iso(self._clock()), convo["updated_at"]),
                }
            }
            await self._conversation_repo.compare_and_set(conversation_id, convo["version"], update)
            return transitioned

        async with self._locks.hold(conversation_id, settings.write_lock_timeout_seconds):
            count = await retry_on_conflict(conversation_id, attempt, max_attempts=settings.write_max_retries)
        logger.debug("Marked %d message(s) read in conversation %s for %s", count, conversation_id, viewer_id)
        return count
