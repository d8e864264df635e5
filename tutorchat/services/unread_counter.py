from typing import Any, Dict, Mapping


def count_unread(conversation: Mapping, viewer_id: str) -> int:
    """Messages the viewer has not read yet; their own messages never count."""
    return sum(
        1
        for message in conversation.get("messages") or []
        if message["sender_id"] != viewer_id and not message.get("is_read", False)
    )


def summarize(conversation: Mapping, viewer_id: str) -> Dict[str, Any]:
    """Listing entry: everything but the message log, plus the viewer's unread count."""
    summary = {key: value for key, value in conversation.items() if key not in ("messages", "version")}
    summary["unread_count"] = count_unread(conversation, viewer_id)
    return summary
