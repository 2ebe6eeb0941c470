from typing import Any, Optional


class SuetaError(Exception):
    """Base class for pipeline failures. Carries identity for log correlation."""

    code = "unknown"

    def __init__(self, message: str, **identity: Any):
        self.identity = {key: value for key, value in identity.items() if value is not None}
        super().__init__(message)

    def context(self) -> dict:
        return {"error": str(self), "error_code": self.code, **self.identity}


class DuplicateMessage(SuetaError):
    """(chat_id, message_id) or update_id already stored. Benign."""

    code = "duplicate"

    def __init__(self, chat_id: int, message_id: int, update_id: Optional[int] = None):
        self.chat_id = chat_id
        self.message_id = message_id
        self.update_id = update_id
        super().__init__(
            f"Message already stored: chat_id={chat_id}, message_id={message_id}",
            chat_id=chat_id,
            message_id=message_id,
            update_id=update_id,
        )


class StorageError(SuetaError):
    code = "storage_error"


class RetrievalError(SuetaError):
    code = "retrieval_error"


class GenerationError(SuetaError):
    code = "generation_error"


class DispatchError(SuetaError):
    code = "dispatch_error"
