"""Custom exceptions for chat-catalog."""


class ChatCatalogError(Exception):
    """Base exception for chat-catalog."""

    pass


class ModelCallError(ChatCatalogError):
    """Raised when the outbound model call fails."""

    pass


class AuthenticationError(ModelCallError):
    """Raised when API key is invalid or missing."""

    pass


class RateLimitError(ModelCallError):
    """Raised when API rate limit is exceeded."""

    pass


class ParseError(ChatCatalogError):
    """Raised when no JSON object can be recovered from model output."""

    def __init__(self, message: str, text: str):
        super().__init__(message)
        self.text = text


class TranscriptError(ChatCatalogError):
    """Raised when a transcript file cannot be read."""

    pass


class StorageError(ChatCatalogError):
    """Raised when the catalogue store rejects a read or write."""

    pass
