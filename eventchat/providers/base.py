"""Abstract LLM provider interface and shared data types."""

from abc import ABC, abstractmethod
from pydantic import BaseModel, Field

from eventchat.models import TokenUsage


class GenerationRequest(BaseModel):
    """Everything a provider needs to make an API call."""

    model: str
    messages: list[dict[str, str]]
    system_prompt: str | None = None
    max_tokens: int = 2048


class GenerationResult(BaseModel):
    """Full response from a provider after generation completes."""

    content: str
    model: str
    finish_reason: str | None = None
    usage: TokenUsage = Field(default_factory=TokenUsage)
    latency_ms: int | None = None


class LLMProvider(ABC):
    """Abstract interface for LLM providers.

    Implementations raise ProviderError for transport, quota, and empty
    responses; no other exception type should escape generate().
    """

    default_model: str = ""

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g., 'openai')."""
        ...

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Send a non-streaming generation request. Returns the full result."""
        ...
