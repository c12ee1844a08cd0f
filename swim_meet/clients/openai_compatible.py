"""
OpenAI-compatible API client.
Works with OpenAI, Anthropic, Gemini, Perplexity, xAI and DeepSeek through
their chat-completions endpoints.
"""

from typing import Any, Optional

import httpx
from openai import AsyncOpenAI

from .base import BaseClient, Message, Role

DEFAULT_TIMEOUT = 120.0


class OpenAICompatibleClient(BaseClient):
    def __init__(
        self,
        api_key: str,
        base_url: str,
        model_name: str,
        provider: str = "openai",
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.model_name = model_name
        self.provider = provider.lower()

        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            http_client=httpx.AsyncClient(timeout=timeout),
        )

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        return [msg.to_dict() for msg in messages]

    async def chat(
        self,
        messages: list[Message],
        max_tokens: int = 2000,
        temperature: Optional[float] = None,
    ) -> Message:
        kwargs: dict[str, Any] = {
            "model": self.model_name,
            "messages": self._convert_messages(messages),
            "max_tokens": max_tokens,
        }

        if temperature is not None:
            kwargs["temperature"] = temperature

        response = await self._client.chat.completions.create(**kwargs)

        if not response.choices:
            return Message(role=Role.ASSISTANT, content=None)

        return Message(
            role=Role.ASSISTANT,
            content=response.choices[0].message.content,
        )

    async def aclose(self) -> None:
        await self._client.close()


def create_client(
    api_key: str,
    base_url: str,
    model_name: str,
    provider: str = "openai",
) -> BaseClient:
    return OpenAICompatibleClient(
        api_key=api_key,
        base_url=base_url,
        model_name=model_name,
        provider=provider,
    )
