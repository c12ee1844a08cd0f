"""
Chat clients used by the provider adapters.
Every enabled vendor is reached through the OpenAI-compatible API format.
"""

from .base import BaseClient, Message, Role
from .openai_compatible import OpenAICompatibleClient, create_client

__all__ = ["BaseClient", "Message", "Role", "OpenAICompatibleClient", "create_client"]
