"""Shared stub adapters and registry builders for swim-meet tests."""

import asyncio
from typing import Optional

from swim_meet.models import Mode, ResponseStatus
from swim_meet.providers import (
    PROVIDER_DEFINITIONS,
    ProviderAdapter,
    ProviderRegistry,
    ProviderResult,
)
from swim_meet.store import MemoryStore


class StubAdapter(ProviderAdapter):
    """Returns a fixed result after an optional delay and records every prompt."""

    def __init__(
        self,
        provider_id: str,
        content: Optional[str] = None,
        error: Optional[str] = None,
        delay: float = 0.0,
    ):
        self.provider_id = provider_id
        self.content = content if content is not None else f"answer from {provider_id}"
        self.error = error
        self.delay = delay
        self.prompts: list[str] = []
        self.closed = False

    async def invoke(self, prompt: str) -> ProviderResult:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            return ProviderResult.fail(self.error)
        return ProviderResult.ok(self.content)

    async def aclose(self) -> None:
        self.closed = True


class RaisingAdapter(ProviderAdapter):
    """Raises instead of returning a result."""

    def __init__(self, provider_id: str, message: str = "connection reset"):
        self.provider_id = provider_id
        self.message = message
        self.prompts: list[str] = []

    async def invoke(self, prompt: str) -> ProviderResult:
        self.prompts.append(prompt)
        raise RuntimeError(self.message)


class GatedAdapter(ProviderAdapter):
    """Blocks until `release()` is called; lets tests observe in-flight state."""

    def __init__(self, provider_id: str, content: str = "gated answer"):
        self.provider_id = provider_id
        self.content = content
        self.prompts: list[str] = []
        self.started = asyncio.Event()
        self._gate = asyncio.Event()

    def release(self) -> None:
        self._gate.set()

    async def invoke(self, prompt: str) -> ProviderResult:
        self.prompts.append(prompt)
        self.started.set()
        await self._gate.wait()
        return ProviderResult.ok(self.content)


class SequenceAdapter(ProviderAdapter):
    """Plays back a list of results, one per call."""

    def __init__(self, provider_id: str, results: list[ProviderResult]):
        self.provider_id = provider_id
        self.results = list(results)
        self.prompts: list[str] = []

    async def invoke(self, prompt: str) -> ProviderResult:
        self.prompts.append(prompt)
        return self.results.pop(0)


def make_registry(**adapters: ProviderAdapter) -> ProviderRegistry:
    """Build a registry over every known provider id; unnamed ones succeed with a stock answer."""
    registry = ProviderRegistry()
    for provider_id in PROVIDER_DEFINITIONS:
        registry.register(provider_id, adapters.get(provider_id) or StubAdapter(provider_id))
    return registry


def registry_factory(registry: ProviderRegistry):
    """An Orchestrator registry factory that always hands back `registry`."""
    calls = []

    def factory(credentials, config=None):
        calls.append(dict(credentials))
        return registry

    factory.calls = calls
    return factory


def fresh_registry_factory():
    """An Orchestrator registry factory that builds a new stub registry per call and keeps each one."""
    built = []

    def factory(credentials, config=None):
        registry = make_registry()
        built.append(registry)
        return registry

    factory.built = built
    return factory


async def make_conversation(store: MemoryStore, query: str = "What is the tallest mountain?", mode: Mode = Mode.DIVE):
    return await store.create_conversation("user-1", query, mode)


async def make_complete_response(
    store: MemoryStore,
    provider: str = "openai",
    content: str = "Mount Everest is the tallest mountain above sea level.",
    query: str = "What is the tallest mountain?",
):
    conversation = await make_conversation(store, query)
    response = await store.create_response(conversation.id, provider)
    return await store.finish_response(response.id, ResponseStatus.COMPLETE, content)
