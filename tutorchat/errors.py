from typing import Optional


class ChatError(Exception):

    kind = "internal"
    status_code = 500

    def __init__(self, message: str, *, conversation_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.conversation_id = conversation_id


class InvalidArgumentError(ChatError, ValueError):

    kind = "invalid_argument"
    status_code = 400


class NotFoundError(ChatError):

    kind = "not_found"
    status_code = 404


class ForbiddenError(ChatError):

    kind = "forbidden"
    status_code = 403


class AlreadyExistsError(ChatError):

    kind = "already_exists"
    status_code = 409


class ConflictError(ChatError):
    """Raised once a write keeps losing the race for its conversation."""

    kind = "conflict"
    status_code = 409


class UnavailableError(ChatError):

    kind = "unavailable"
    status_code = 503
