"""
In-process store. Everything lives in dictionaries; callers get copies so
that nothing they mutate leaks back without going through the store.
"""

import copy
from typing import Any, Optional

from ..errors import InvalidTransitionError, NotFoundError, ValidationError
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
from .base import Store


class MemoryStore(Store):
    def __init__(self):
        self.users: dict[str, User] = {}
        self.conversations: dict[str, Conversation] = {}
        self.responses: dict[str, Response] = {}

    def _changed(self) -> None:
        """Hook called after every mutation."""

    def _require_response(self, response_id: str) -> Response:
        response = self.responses.get(response_id)
        if response is None:
            raise NotFoundError(f"Response {response_id} not found")
        return response

    # Users

    async def create_user(self, username: str, user_id: Optional[str] = None) -> User:
        if any(u.username == username for u in self.users.values()):
            raise ValidationError(f"Username {username} is already taken")
        user = User(username=username)
        if user_id:
            if user_id in self.users:
                raise ValidationError(f"User {user_id} already exists")
            user.id = user_id
        self.users[user.id] = user
        self._changed()
        return copy.deepcopy(user)

    async def get_user(self, user_id: str) -> Optional[User]:
        user = self.users.get(user_id)
        return copy.deepcopy(user) if user else None

    async def get_user_by_username(self, username: str) -> Optional[User]:
        for user in self.users.values():
            if user.username == username:
                return copy.deepcopy(user)
        return None

    async def set_credentials(self, user_id: str, credentials: dict[str, str]) -> None:
        user = self.users.get(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        user.credentials = {k.lower(): v for k, v in credentials.items() if v}
        self._changed()

    async def get_credentials(self, user_id: str) -> dict[str, str]:
        user = self.users.get(user_id)
        return dict(user.credentials) if user else {}

    # Conversations

    async def create_conversation(self, user_id: str, query: str, mode: Mode) -> Conversation:
        conversation = Conversation(user_id=user_id, query=query, mode=mode)
        self.conversations[conversation.id] = conversation
        self._changed()
        return copy.deepcopy(conversation)

    async def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        conversation = self.conversations.get(conversation_id)
        return copy.deepcopy(conversation) if conversation else None

    async def update_conversation(
        self, conversation_id: str, workflow_state: WorkflowState
    ) -> Conversation:
        conversation = self.conversations.get(conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        conversation.workflow_state = copy.deepcopy(workflow_state)
        self._changed()
        return copy.deepcopy(conversation)

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        # reversed insertion order breaks timestamp ties newest first
        owned = [c for c in reversed(self.conversations.values()) if c.user_id == user_id]
        owned.sort(key=lambda c: c.created_at, reverse=True)
        return copy.deepcopy(owned)

    # Responses

    async def create_response(
        self, conversation_id: str, provider: str, work_step: Optional[str] = None
    ) -> Response:
        if conversation_id not in self.conversations:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        response = Response(
            conversation_id=conversation_id,
            provider=provider,
            work_step=work_step,
        )
        self.responses[response.id] = response
        self._changed()
        return copy.deepcopy(response)

    async def get_response(self, response_id: str) -> Optional[Response]:
        response = self.responses.get(response_id)
        return copy.deepcopy(response) if response else None

    async def finish_response(
        self, response_id: str, status: ResponseStatus, content: str
    ) -> Response:
        response = self._require_response(response_id)
        if not status.is_terminal:
            raise InvalidTransitionError(f"{status.value} is not a terminal status")
        if response.status.is_terminal:
            raise InvalidTransitionError(
                f"Response {response_id} is already {response.status.value}"
            )
        response.status = status
        response.content = content
        self._changed()
        return copy.deepcopy(response)

    async def update_response(
        self,
        response_id: str,
        *,
        award: Optional[str] = None,
        verification_status: Optional[VerificationStatus] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Response:
        response = self._require_response(response_id)
        if award is not None:
            response.award = award
        if verification_status is not None:
            response.verification_status = verification_status
        if metadata:
            response.metadata.update(copy.deepcopy(metadata))
        self._changed()
        return copy.deepcopy(response)

    async def append_verification(
        self, response_id: str, result: VerificationResult
    ) -> Response:
        response = self._require_response(response_id)
        response.verification_results.append(copy.deepcopy(result))
        response.verification_status = VerificationStatus.COMPLETE
        self._changed()
        return copy.deepcopy(response)

    async def list_responses(self, conversation_id: str) -> list[Response]:
        return copy.deepcopy(
            [r for r in self.responses.values() if r.conversation_id == conversation_id]
        )

    async def all_responses(self) -> list[Response]:
        return copy.deepcopy(list(self.responses.values()))
