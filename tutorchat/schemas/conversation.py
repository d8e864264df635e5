from typing import Any, List, Mapping, Optional

from pydantic import BaseModel


class Attachment(BaseModel):

    url: str
    type: str
    name: Optional[str] = None


class MessageCreate(BaseModel):

    content: str
    attachment: Optional[Attachment] = None


class MessagePublic(BaseModel):

    message_id: str
    sender_id: str
    sender_name: str
    content: str
    timestamp: str
    is_read: bool = False
    attachment: Optional[Attachment] = None


class ConversationCreate(BaseModel):

    student_id: str
    student_name: str
    teacher_id: str
    teacher_name: str
    course_id: Optional[str] = None
    course_name: Optional[str] = None
    initial_message: Optional[str] = None


class ConversationSummary(BaseModel):

    conversation_id: str
    course_id: Optional[str] = None
    course_name: Optional[str] = None
    student_id: str
    student_name: str
    teacher_id: str
    teacher_name: str
    last_message: Optional[MessagePublic] = None
    created_at: str
    updated_at: str
    unread_count: int = 0

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "ConversationSummary":
        return cls(conversation_id=doc["_id"], **{k: v for k, v in doc.items() if k != "_id"})


class ConversationPublic(ConversationSummary):

    messages: List[MessagePublic] = []


class MarkReadResult(BaseModel):

    updated: int


class UnreadCount(BaseModel):

    conversation_id: str
    unread_count: int


class ConversationList(BaseModel):

    items: List[ConversationSummary]
