from typing import Optional, TypedDict


class AttachmentDocument(TypedDict, total=False):
    url: str
    type: str
    name: str


class MessageDocument(TypedDict, total=False):
    message_id: str
    sender_id: str
    sender_name: str
    content: str
    # ISO-8601 UTC, strictly increasing within a conversation
    timestamp: str
    is_read: bool
    attachment: Optional[AttachmentDocument]
