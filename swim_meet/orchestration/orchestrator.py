"""
Entry point for the outer layer: validates a query request and routes it to
the dive dispatcher, the turn verifier or the work workflow engine.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Optional

from ..config import Config
from ..errors import NotFoundError, ValidationError
from ..models import (
    Conversation,
    Mode,
    QueryRequest,
    Response,
    VerificationResult,
    WorkflowState,
)
from ..providers import PROVIDER_IDS, ProviderRegistry, ProviderStatus, create_registry
from ..stats import ProviderStats, compute_provider_stats
from ..store import Store
from .dive import DiveDispatcher
from .tasks import BackgroundTasks
from .verifier import FACT_CHECKER, REPLY_PROVIDER, TurnVerifier
from .workflow import WorkflowEngine, WorkflowStatus

logger = logging.getLogger(__name__)

RegistryFactory = Callable[..., ProviderRegistry]


@dataclass
class Submission:
    conversation_id: str
    responses: list[Response] = field(default_factory=list)
    workflow_state: Optional[WorkflowState] = None
    verification: Optional[VerificationResult] = None

    def to_dict(self) -> dict:
        return {
            "conversation_id": self.conversation_id,
            "responses": [r.to_dict() for r in self.responses],
            "workflow_state": self.workflow_state.to_dict() if self.workflow_state else None,
            "verification": self.verification.to_dict() if self.verification else None,
        }


class Orchestrator:
    def __init__(
        self,
        store: Store,
        config: Optional[Config] = None,
        registry_factory: RegistryFactory = create_registry,
    ):
        self.store = store
        self.config = config or Config()
        self.registry_factory = registry_factory
        self.tasks = BackgroundTasks()
        self.dive = DiveDispatcher(store, self.tasks)
        self.verifier = TurnVerifier(store)
        self.workflow = WorkflowEngine(store, self.tasks)

    async def credentials_for(self, user_id: str) -> dict[str, str]:
        """Configured keys, overridden by any keys stored for the user."""
        credentials = self.config.credentials()
        credentials.update(await self.store.get_credentials(user_id))
        return credentials

    async def _registry(
        self, user_id: str, credentials: Optional[dict[str, str]] = None
    ) -> ProviderRegistry:
        if credentials is None:
            credentials = await self.credentials_for(user_id)
        return self.registry_factory(credentials, self.config)

    @asynccontextmanager
    async def _scoped_registry(
        self, user_id: str, credentials: Optional[dict[str, str]] = None
    ) -> AsyncIterator[ProviderRegistry]:
        """A registry for one synchronous call, closed when the call returns."""
        registry = await self._registry(user_id, credentials)
        try:
            yield registry
        finally:
            await registry.aclose()

    async def _conversation(self, conversation_id: str) -> Conversation:
        conversation = await self.store.get_conversation(conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        return conversation

    async def submit(
        self,
        request: QueryRequest,
        user_id: str,
        credentials: Optional[dict[str, str]] = None,
    ) -> Submission:
        """
        Validate and route one query request.

        Dive returns the pending responses, work returns the planned workflow
        with step 1's pending response, turn returns the finished critique.
        Validation failures raise before any response is created.
        """
        request.validate(PROVIDER_IDS)
        logger.info(
            "Submit %s for %s: %s",
            request.mode.value,
            user_id,
            ", ".join(request.selected_providers),
        )

        if request.mode == Mode.TURN:
            return await self._submit_turn(request, user_id, credentials)

        if request.conversation_id:
            conversation = await self._conversation(request.conversation_id)
            if conversation.mode != request.mode:
                raise ValidationError(
                    f"Conversation {conversation.id} is a {conversation.mode.value} conversation; "
                    f"cannot add a {request.mode.value} query to it"
                )
            if request.mode == Mode.WORK and conversation.workflow_state is not None:
                raise ValidationError(
                    f"Conversation {conversation.id} already has a workflow; continue it instead"
                )
        else:
            conversation = await self.store.create_conversation(
                user_id, request.query, request.mode
            )

        if request.mode == Mode.DIVE:
            registry = await self._registry(user_id, credentials)
            responses = await self.dive.dispatch(
                conversation,
                request.query,
                request.selected_providers,
                registry,
                close_registry=True,
            )
            return Submission(conversation_id=conversation.id, responses=responses)

        await self.workflow.plan(conversation.id, request.selected_providers, query=request.query)
        registry = await self._registry(user_id, credentials)
        response = await self.workflow.advance(conversation.id, registry, close_registry=True)
        conversation = await self._conversation(conversation.id)
        return Submission(
            conversation_id=conversation.id,
            responses=[response] if response else [],
            workflow_state=conversation.workflow_state,
        )

    async def _submit_turn(
        self,
        request: QueryRequest,
        user_id: str,
        credentials: Optional[dict[str, str]],
    ) -> Submission:
        target = await self.store.get_response(request.response_id)
        if target is None:
            raise NotFoundError(f"Response {request.response_id} not found")
        if request.conversation_id and request.conversation_id != target.conversation_id:
            raise ValidationError(
                f"Response {target.id} does not belong to conversation {request.conversation_id}"
            )

        verification = await self.verify(
            target.id, request.selected_providers[0], user_id, credentials
        )
        response = await self.store.get_response(target.id)
        return Submission(
            conversation_id=target.conversation_id,
            responses=[response],
            verification=verification,
        )

    async def continue_workflow(
        self,
        conversation_id: str,
        user_id: str,
        credentials: Optional[dict[str, str]] = None,
    ) -> Optional[Response]:
        await self._conversation(conversation_id)
        registry = await self._registry(user_id, credentials)
        return await self.workflow.advance(conversation_id, registry, close_registry=True)

    async def verify(
        self,
        response_id: str,
        verifier: str,
        user_id: str,
        credentials: Optional[dict[str, str]] = None,
    ) -> VerificationResult:
        verifier = _provider_id(verifier)
        async with self._scoped_registry(user_id, credentials) as registry:
            return await self.verifier.verify(response_id, verifier, registry)

    async def share_critique(
        self,
        response_id: str,
        user_id: str,
        credentials: Optional[dict[str, str]] = None,
    ) -> str:
        async with self._scoped_registry(user_id, credentials) as registry:
            return await self.verifier.share_critique(response_id, registry)

    async def fact_check(
        self,
        response_id: str,
        user_id: str,
        credentials: Optional[dict[str, str]] = None,
        checker: str = FACT_CHECKER,
    ) -> str:
        checker = _provider_id(checker)
        async with self._scoped_registry(user_id, credentials) as registry:
            return await self.verifier.fact_check(response_id, registry, checker)

    async def generate_reply(
        self,
        response_id: str,
        user_id: str,
        context: Optional[str] = None,
        credentials: Optional[dict[str, str]] = None,
        provider: str = REPLY_PROVIDER,
    ) -> str:
        provider = _provider_id(provider)
        async with self._scoped_registry(user_id, credentials) as registry:
            return await self.verifier.generate_reply(
                response_id, registry, context=context or None, provider=provider
            )

    async def award(self, response_id: str, award: str) -> Response:
        award = (award or "").strip().lower()
        if not award:
            raise ValidationError("Award must not be empty")
        if await self.store.get_response(response_id) is None:
            raise NotFoundError(f"Response {response_id} not found")
        return await self.store.update_response(response_id, award=award)

    async def workflow_status(self, conversation_id: str) -> WorkflowStatus:
        return await self.workflow.describe(conversation_id)

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        return await self.store.list_conversations(user_id)

    async def list_responses(self, conversation_id: str) -> list[Response]:
        await self._conversation(conversation_id)
        return await self.store.list_responses(conversation_id)

    async def provider_stats(self) -> list[ProviderStats]:
        return compute_provider_stats(await self.store.all_responses())

    async def probe_providers(
        self,
        user_id: str,
        credentials: Optional[dict[str, str]] = None,
    ) -> list[ProviderStatus]:
        async with self._scoped_registry(user_id, credentials) as registry:
            return await registry.probe()

    async def wait(self) -> None:
        """Wait for every background provider call; their registries close as they finish."""
        await self.tasks.wait()


def _provider_id(provider: str) -> str:
    provider = provider.strip().lower()
    if provider not in PROVIDER_IDS:
        raise ValidationError(f"Unknown provider: {provider}")
    return provider
