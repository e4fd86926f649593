"""Error taxonomy shared by the API routes and services

Every error carries the HTTP status it maps to so the API layer can render
it without knowing which service raised it.
"""

from typing import Optional


class ChatError(Exception):
    """Base class for all chat backend errors"""

    status_code: int = 500
    default_detail: str = "An error occurred while processing your request"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class Unauthorized(ChatError):
    status_code = 401
    default_detail = "Unauthorized"


class NotFound(ChatError):
    status_code = 404
    default_detail = "Not Found"


class ModelNotFound(NotFound):
    default_detail = "Model not found"


class InvalidRequest(ChatError):
    status_code = 400
    default_detail = "Invalid request"


class NoUserMessage(InvalidRequest):
    default_detail = "No user message found"


class UpstreamFailure(ChatError):
    """The model backend call failed"""

    status_code = 502
    default_detail = "Model backend request failed"


class ToolCallRejected(ChatError):
    """The model asked for an unknown tool or sent arguments that fail validation"""

    status_code = 400
    default_detail = "Tool call rejected"


class PersistenceFailure(ChatError):
    """A read or write against the chat store failed"""

    status_code = 500
    default_detail = "Failed to access the chat store"


class OperationFailed(ChatError):
    """A store operation behind an API call could not be completed"""

    status_code = 500
    default_detail = "An error occurred while processing your request"
