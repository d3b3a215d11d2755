"""Exception hierarchy shared by the inquiry pipeline."""

from enum import Enum


class InquiryBotError(Exception):
    """Base exception for all inquiry bot errors."""


class ConfigurationError(InquiryBotError):
    """A credential or setting required by an operation is missing."""


class RequestValidationError(InquiryBotError):
    """An inbound payload could not be decoded."""


class ErrorCategory(str, Enum):
    """Cause of an external service failure, used for diagnostics."""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    BAD_REQUEST = "bad_request"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    UNKNOWN = "unknown"


def category_for_status(status_code: int) -> ErrorCategory:
    """Map an HTTP status code onto an error category."""
    if status_code in (401, 403):
        return ErrorCategory.AUTH
    if status_code == 429:
        return ErrorCategory.RATE_LIMIT
    if status_code >= 500:
        return ErrorCategory.SERVER
    if 400 <= status_code < 500:
        return ErrorCategory.BAD_REQUEST
    return ErrorCategory.UNKNOWN


class ExternalServiceError(InquiryBotError):
    """A call to Slack, Confluence or the LLM failed."""

    def __init__(
        self,
        service: str,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
    ):
        self.service = service
        self.category = category
        super().__init__(f"{service} ({category.value}): {message}")


class GenerationError(ExternalServiceError):
    """Answer generation did not produce a usable response."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.UNKNOWN):
        super().__init__("llm", message, category)


class PersistenceError(InquiryBotError):
    """A database read or write failed."""


class DuplicateInquiryError(PersistenceError):
    """An inquiry for the same source message already exists."""

    def __init__(self, message_id: str):
        self.message_id = message_id
        super().__init__(f"Inquiry for message {message_id} already exists")


class IntakeError(InquiryBotError):
    """A reaction could not be turned into an inquiry."""


class EmptyMessageError(IntakeError):
    """The reacted-to message has no text."""


class MessageFetchError(IntakeError):
    """The reacted-to message could not be fetched."""
