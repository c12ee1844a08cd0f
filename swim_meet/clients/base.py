"""
Base client interface and message structures.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class Role(Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    role: Role
    content: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {"role": self.role.value, "content": self.content or ""}


class BaseClient(ABC):
    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        max_tokens: int = 2000,
        temperature: Optional[float] = None,
    ) -> Message:
        pass

    async def aclose(self) -> None:
        pass
