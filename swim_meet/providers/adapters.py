"""
Concrete provider adapters.
"""

import logging
from typing import Optional

from ..clients import BaseClient, Message, Role
from .base import ProviderAdapter, ProviderDefinition, ProviderResult

logger = logging.getLogger(__name__)

EMPTY_COMPLETION = "No response generated"


class ChatClientAdapter(ProviderAdapter):
    """Sends the prompt as a single user message through a chat client."""

    def __init__(self, definition: ProviderDefinition, client: BaseClient, max_tokens: int = 2000):
        self.provider_id = definition.id
        self.definition = definition
        self.client = client
        self.max_tokens = max_tokens

    async def invoke(self, prompt: str) -> ProviderResult:
        messages = [Message(role=Role.USER, content=prompt)]
        try:
            response = await self.client.chat(messages, max_tokens=self.max_tokens)
        except Exception as e:
            logger.warning("%s call failed: %s", self.provider_id, e)
            return ProviderResult.fail(f"{self.definition.name} error: {e}")

        return ProviderResult.ok(response.content or EMPTY_COMPLETION)

    async def aclose(self) -> None:
        await self.client.aclose()


class UnconfiguredAdapter(ProviderAdapter):
    """Stands in for an enabled provider that has no credential."""

    def __init__(self, definition: ProviderDefinition):
        self.provider_id = definition.id
        self.definition = definition

    async def invoke(self, prompt: str) -> ProviderResult:
        return ProviderResult.fail(f"{self.definition.name} API key not configured")


class DisabledAdapter(ProviderAdapter):
    """Placeholder for a provider with no usable public API."""

    def __init__(self, definition: ProviderDefinition, reason: Optional[str] = None):
        self.provider_id = definition.id
        self.definition = definition
        self.reason = reason or f"{definition.name} API not available"

    async def invoke(self, prompt: str) -> ProviderResult:
        return ProviderResult.fail(self.reason)
