"""Anthropic (Claude) LLM provider implementation."""

import time
from typing import Any

from anthropic import AnthropicError, AsyncAnthropic

from eventchat.errors import ProviderError
from eventchat.models import TokenUsage
from eventchat.providers.base import GenerationRequest, GenerationResult, LLMProvider


class AnthropicProvider(LLMProvider):
    """LLM provider backed by Anthropic's Messages API."""

    default_model = "claude-sonnet-4-5-20250929"

    def __init__(self, client: AsyncAnthropic) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return "anthropic"

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        params = self._build_params(request)
        start = time.monotonic()
        try:
            response = await self._client.messages.create(**params)
        except AnthropicError as e:
            raise ProviderError(f"Anthropic request failed: {e}", provider=self.name) from e
        latency_ms = int((time.monotonic() - start) * 1000)

        content = self._extract_text(response)
        if not content:
            raise ProviderError("Anthropic returned no content", provider=self.name)

        # The Messages API reports input/output only; total is derived here.
        input_tokens = response.usage.input_tokens
        output_tokens = response.usage.output_tokens
        return GenerationResult(
            content=content,
            model=response.model,
            finish_reason=response.stop_reason,
            usage=TokenUsage(
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
            ),
            latency_ms=latency_ms,
        )

    @staticmethod
    def _build_params(request: GenerationRequest) -> dict[str, Any]:
        """Build kwargs dict for client.messages.create()."""
        params: dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "messages": [
                {"role": m["role"], "content": m["content"]} for m in request.messages
            ],
        }
        if request.system_prompt is not None:
            params["system"] = request.system_prompt
        return params

    @staticmethod
    def _extract_text(response: Any) -> str:
        """Extract text content from Anthropic Message response."""
        parts = []
        for block in response.content:
            if block.type == "text":
                parts.append(block.text)
        return "".join(parts)
