"""OpenAI LLM provider backed by the Chat Completions API."""

import time
from typing import Any

from openai import AsyncOpenAI, OpenAIError

from eventchat.errors import ProviderError
from eventchat.models import TokenUsage
from eventchat.providers.base import GenerationRequest, GenerationResult, LLMProvider


class OpenAIProvider(LLMProvider):
    """LLM provider backed by OpenAI's Chat Completions API."""

    default_model = "gpt-4o"

    def __init__(self, *, client: AsyncOpenAI | None = None, api_key: str | None = None) -> None:
        self._client = client if client is not None else AsyncOpenAI(api_key=api_key)

    @property
    def name(self) -> str:
        return "openai"

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        params = self._build_params(request)
        start = time.monotonic()
        try:
            response = await self._client.chat.completions.create(**params)
        except OpenAIError as e:
            raise ProviderError(f"OpenAI request failed: {e}", provider=self.name) from e
        latency_ms = int((time.monotonic() - start) * 1000)

        if not response.choices:
            raise ProviderError("OpenAI returned no choices", provider=self.name)
        choice = response.choices[0]
        content = choice.message.content
        if not content:
            raise ProviderError("OpenAI returned no content", provider=self.name)

        usage = TokenUsage()
        if response.usage is not None:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens,
                output_tokens=response.usage.completion_tokens,
                total_tokens=response.usage.total_tokens,
            )

        return GenerationResult(
            content=content,
            model=response.model,
            finish_reason=choice.finish_reason,
            usage=usage,
            latency_ms=latency_ms,
        )

    @staticmethod
    def _build_params(request: GenerationRequest) -> dict[str, Any]:
        """Build kwargs dict for client.chat.completions.create()."""
        messages: list[dict[str, str]] = []

        # System prompt → prepended as system message
        if request.system_prompt is not None:
            messages.append({"role": "system", "content": request.system_prompt})

        messages.extend(
            {"role": m["role"], "content": m["content"]} for m in request.messages
        )

        params: dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "messages": messages,
        }
        return params
