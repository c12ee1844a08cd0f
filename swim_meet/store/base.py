"""
Store interface used by the orchestration core.
Implementations must be immediately consistent from the calling process's
point of view and must refuse to move a response out of a terminal state.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from ..models import (
    Conversation,
    Mode,
    Response,
    ResponseStatus,
    User,
    VerificationResult,
    VerificationStatus,
    WorkflowState,
)


class Store(ABC):
    # Users

    @abstractmethod
    async def create_user(self, username: str, user_id: Optional[str] = None) -> User:
        pass

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    async def set_credentials(self, user_id: str, credentials: dict[str, str]) -> None:
        pass

    @abstractmethod
    async def get_credentials(self, user_id: str) -> dict[str, str]:
        pass

    # Conversations

    @abstractmethod
    async def create_conversation(self, user_id: str, query: str, mode: Mode) -> Conversation:
        pass

    @abstractmethod
    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        pass

    @abstractmethod
    async def update_conversation(
        self, conversation_id: str, workflow_state: WorkflowState
    ) -> Conversation:
        pass

    @abstractmethod
    async def list_conversations(self, user_id: str) -> list[Conversation]:
        pass

    # Responses

    @abstractmethod
    async def create_response(
        self, conversation_id: str, provider: str, work_step: Optional[str] = None
    ) -> Response:
        pass

    @abstractmethod
    async def get_response(self, response_id: str) -> Optional[Response]:
        pass

    @abstractmethod
    async def finish_response(
        self, response_id: str, status: ResponseStatus, content: str
    ) -> Response:
        """Move a pending response to `complete` or `error`, exactly once."""

    @abstractmethod
    async def update_response(
        self,
        response_id: str,
        *,
        award: Optional[str] = None,
        verification_status: Optional[VerificationStatus] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Response:
        """Update the fields that stay mutable after a response is terminal."""

    @abstractmethod
    async def append_verification(
        self, response_id: str, result: VerificationResult
    ) -> Response:
        pass

    @abstractmethod
    async def list_responses(self, conversation_id: str) -> list[Response]:
        pass

    @abstractmethod
    async def all_responses(self) -> list[Response]:
        pass
