from typing import List, Optional, TypedDict

from tutorchat.models.message import MessageDocument


class ConversationDocument(TypedDict, total=False):
    # canonical id, see tutorchat.utils.identity
    _id: str
    course_id: Optional[str]
    course_name: Optional[str]
    student_id: str
    student_name: str
    teacher_id: str
    teacher_name: str
    messages: List[MessageDocument]
    # copy of messages[-1]
    last_message: Optional[MessageDocument]
    created_at: str
    updated_at: str
    # bumped on every write, checked by compare-and-set
    version: int
