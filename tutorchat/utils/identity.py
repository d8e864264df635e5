from typing import Mapping, Optional, Tuple

from tutorchat.errors import ForbiddenError, InvalidArgumentError

SEPARATOR = "-"


def _escape(part: str) -> str:
    # escaping keeps the join injective, so "a-b"+"c" never equals "a"+"b-c"
    return part.replace("\\", "\\\\").replace(SEPARATOR, "\\" + SEPARATOR)


def conversation_id(user_a: str, user_b: str, course_id: Optional[str] = None) -> str:
    """
    Canonical id of the conversation between two participants.

    The pair is sorted first, so ``conversation_id(a, b) == conversation_id(b, a)``.
    When ``course_id`` is given it is appended as a third segment.
    """
    if not user_a or not user_b:
        raise InvalidArgumentError("Both participant ids are required")
    parts = [_escape(p) for p in sorted([user_a, user_b])]
    if course_id:
        parts.append(_escape(course_id))
    return SEPARATOR.join(parts)


def participants_of(conversation: Mapping) -> Tuple[str, str]:
    return conversation["student_id"], conversation["teacher_id"]


def is_participant(conversation: Mapping, user_id: str) -> bool:
    return user_id in participants_of(conversation)


def ensure_participant(conversation: Mapping, user_id: str) -> None:
    if not is_participant(conversation, user_id):
        raise ForbiddenError(
            f"User {user_id} is not a participant of conversation {conversation['_id']}",
            conversation_id=conversation["_id"],
        )
