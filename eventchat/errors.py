"""Error taxonomy shared by the store, projector, providers, and chat service."""


class ChatError(Exception):
    pass


class ValidationError(ChatError):
    """Missing or malformed input. Surfaced as HTTP 400."""


class StorageError(ChatError):
    """The store is unreachable or rejected a write. Surfaced as HTTP 500."""


class ProviderError(ChatError):
    """The language-model call failed or returned no content. Surfaced as HTTP 500."""

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        self.provider = provider
        super().__init__(message)
