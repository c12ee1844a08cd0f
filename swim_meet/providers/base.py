"""
Provider definitions and the uniform adapter interface.
Each provider id maps to one vendor; orchestration code only ever sees
`ProviderAdapter.invoke` and branches on `ProviderResult.success`.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass
class ProviderResult:
    success: bool
    content: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, content: str) -> "ProviderResult":
        return cls(success=True, content=content)

    @classmethod
    def fail(cls, error: str) -> "ProviderResult":
        return cls(success=False, error=error)


class ProviderAdapter(ABC):
    provider_id: str

    @abstractmethod
    async def invoke(self, prompt: str) -> ProviderResult:
        pass

    async def aclose(self) -> None:
        pass


@dataclass
class ProviderDefinition:
    id: str
    name: str
    company: str
    base_url: Optional[str] = None
    model_name: Optional[str] = None
    enabled: bool = True

    @property
    def requires_api_key(self) -> bool:
        return self.enabled


PROVIDER_DEFINITIONS: dict[str, ProviderDefinition] = {
    "openai": ProviderDefinition(
        id="openai",
        name="ChatGPT",
        company="OpenAI",
        base_url="https://api.openai.com/v1",
        model_name="gpt-4o",
    ),
    "anthropic": ProviderDefinition(
        id="anthropic",
        name="Claude",
        company="Anthropic",
        base_url="https://api.anthropic.com/v1/",
        model_name="claude-sonnet-4-20250514",
    ),
    "google": ProviderDefinition(
        id="google",
        name="Gemini",
        company="Google",
        base_url="https://generativelanguage.googleapis.com/v1beta/openai/",
        model_name="gemini-2.5-flash",
    ),
    "perplexity": ProviderDefinition(
        id="perplexity",
        name="Perplexity",
        company="Perplexity AI",
        base_url="https://api.perplexity.ai",
        model_name="sonar",
    ),
    "grok": ProviderDefinition(
        id="grok",
        name="Grok",
        company="xAI",
        base_url="https://api.x.ai/v1",
        model_name="grok-3",
    ),
    "deepseek": ProviderDefinition(
        id="deepseek",
        name="DeepSeek",
        company="DeepSeek AI",
        base_url="https://api.deepseek.com/v1",
        model_name="deepseek-chat",
    ),
    "microsoft": ProviderDefinition(
        id="microsoft",
        name="Copilot",
        company="Microsoft",
        enabled=False,
    ),
    "llama": ProviderDefinition(
        id="llama",
        name="Llama",
        company="Meta",
        enabled=False,
    ),
}

PROVIDER_IDS: tuple[str, ...] = tuple(PROVIDER_DEFINITIONS)


def get_provider_definition(provider_id: str) -> Optional[ProviderDefinition]:
    return PROVIDER_DEFINITIONS.get(provider_id.lower())


def get_display_name(provider_id: str) -> str:
    definition = get_provider_definition(provider_id)
    return definition.name if definition else provider_id
