"""
Provider adapter set.
One uniform `invoke(prompt)` per AI vendor, looked up by provider id.
"""

from .base import (
    PROVIDER_DEFINITIONS,
    PROVIDER_IDS,
    ProviderAdapter,
    ProviderDefinition,
    ProviderResult,
    get_display_name,
    get_provider_definition,
)
from .adapters import ChatClientAdapter, DisabledAdapter, UnconfiguredAdapter
from .registry import (
    ConnectionStatus,
    ProviderRegistry,
    ProviderStatus,
    classify_result,
    create_registry,
)

__all__ = [
    "PROVIDER_DEFINITIONS",
    "PROVIDER_IDS",
    "ProviderAdapter",
    "ProviderDefinition",
    "ProviderResult",
    "get_display_name",
    "get_provider_definition",
    "ChatClientAdapter",
    "DisabledAdapter",
    "UnconfiguredAdapter",
    "ConnectionStatus",
    "ProviderRegistry",
    "ProviderStatus",
    "classify_result",
    "create_registry",
]
