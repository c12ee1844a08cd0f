"""
Provider registry: maps provider ids to adapters.
A fresh registry is built per request from an explicit credential map.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..clients import BaseClient, create_client
from ..config import Config
from .adapters import ChatClientAdapter, DisabledAdapter, UnconfiguredAdapter
from .base import (
    PROVIDER_DEFINITIONS,
    ProviderAdapter,
    ProviderDefinition,
    ProviderResult,
    get_provider_definition,
)

logger = logging.getLogger(__name__)

PROBE_PROMPT = "Test connection"


class ConnectionStatus(Enum):
    CONNECTED = "connected"
    SETUP_REQUIRED = "setup_required"
    ERROR = "error"
    DISABLED = "disabled"


@dataclass
class ProviderStatus:
    id: str
    name: str
    company: str
    status: ConnectionStatus
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "company": self.company,
            "status": self.status.value,
            "error": self.error,
        }


def classify_result(result: ProviderResult) -> ConnectionStatus:
    if result.success:
        return ConnectionStatus.CONNECTED
    error = result.error or ""
    if "not configured" in error or "API key" in error:
        return ConnectionStatus.SETUP_REQUIRED
    return ConnectionStatus.ERROR


class ProviderRegistry:
    def __init__(self):
        self._adapters: dict[str, ProviderAdapter] = {}

    def register(self, provider_id: str, adapter: ProviderAdapter) -> None:
        self._adapters[provider_id.lower()] = adapter

    def get(self, provider_id: str) -> Optional[ProviderAdapter]:
        return self._adapters.get(provider_id.lower())

    def __contains__(self, provider_id: str) -> bool:
        return provider_id.lower() in self._adapters

    def list_providers(self) -> list[str]:
        return list(self._adapters.keys())

    async def invoke(self, provider_id: str, prompt: str) -> ProviderResult:
        adapter = self.get(provider_id)
        if adapter is None:
            return ProviderResult.fail(f"Unsupported provider: {provider_id}")
        return await adapter.invoke(prompt)

    async def probe(self) -> list[ProviderStatus]:
        """Send a short prompt to every enabled provider and classify the outcome."""

        async def probe_one(provider_id: str, adapter: ProviderAdapter) -> ProviderStatus:
            definition = get_provider_definition(provider_id) or ProviderDefinition(
                id=provider_id, name=provider_id, company=""
            )
            if isinstance(adapter, DisabledAdapter):
                return ProviderStatus(
                    id=provider_id,
                    name=definition.name,
                    company=definition.company,
                    status=ConnectionStatus.DISABLED,
                )

            try:
                result = await adapter.invoke(PROBE_PROMPT)
            except Exception as e:
                result = ProviderResult.fail(str(e))

            status = classify_result(result)
            logger.info("Probe %s: %s", provider_id, status.value)
            return ProviderStatus(
                id=provider_id,
                name=definition.name,
                company=definition.company,
                status=status,
                error=result.error,
            )

        return list(await asyncio.gather(
            *(probe_one(pid, adapter) for pid, adapter in self._adapters.items())
        ))

    async def aclose(self) -> None:
        for adapter in self._adapters.values():
            await adapter.aclose()


ClientFactory = Callable[..., BaseClient]


def create_registry(
    credentials: dict[str, str],
    config: Optional[Config] = None,
    client_factory: ClientFactory = create_client,
) -> ProviderRegistry:
    """Build a registry holding one adapter for every known provider."""
    config = config or Config()
    registry = ProviderRegistry()

    for provider_id, definition in PROVIDER_DEFINITIONS.items():
        if not definition.enabled:
            registry.register(provider_id, DisabledAdapter(definition))
            continue

        api_key = credentials.get(provider_id)
        if not api_key:
            registry.register(provider_id, UnconfiguredAdapter(definition))
            continue

        provider_config = config.get_provider_config(provider_id)
        client = client_factory(
            api_key=api_key,
            base_url=provider_config.base_url or definition.base_url,
            model_name=provider_config.model_name or definition.model_name,
            provider=provider_id,
        )
        registry.register(
            provider_id,
            ChatClientAdapter(
                definition,
                client,
                max_tokens=provider_config.max_tokens or config.max_tokens,
            ),
        )

    return registry
