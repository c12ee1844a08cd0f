"""
Dive mode: one query fanned out to several providers at once.
"""

import logging
from typing import Optional

from ..models import Conversation, Response, ResponseStatus
from ..providers import ProviderRegistry
from ..store import Store
from .tasks import BackgroundTasks

logger = logging.getLogger(__name__)


class DiveDispatcher:
    def __init__(self, store: Store, tasks: Optional[BackgroundTasks] = None):
        self.store = store
        self.tasks = tasks or BackgroundTasks()

    async def dispatch(
        self,
        conversation: Conversation,
        query: str,
        providers: list[str],
        registry: ProviderRegistry,
        close_registry: bool = False,
    ) -> list[Response]:
        """
        Create one pending response per provider and start every call.

        Returns as soon as the pending rows exist; each call finishes on its
        own and records its outcome independently of the others. With
        `close_registry`, the registry is closed after the last call ends.
        """
        tasks = []
        try:
            responses = []
            for provider in providers:
                response = await self.store.create_response(conversation.id, provider)
                responses.append(response)

            for response in responses:
                tasks.append(self.tasks.spawn(
                    self._call_provider(response.id, response.provider, query, registry),
                    name=f"dive-{response.provider}-{response.id[:8]}",
                ))
        finally:
            if close_registry:
                self.tasks.close_when_done(tasks, registry, name=f"dive-close-{conversation.id[:8]}")

        logger.info(
            "Dive %s: dispatched %d providers (%s)",
            conversation.id,
            len(responses),
            ", ".join(providers),
        )
        return responses

    async def _call_provider(
        self,
        response_id: str,
        provider: str,
        query: str,
        registry: ProviderRegistry,
    ) -> None:
        try:
            result = await registry.invoke(provider, query)
        except Exception as e:
            logger.error("Error processing %s: %s", provider, e)
            await self.store.finish_response(response_id, ResponseStatus.ERROR, f"Error: {e}")
            return

        if result.success and result.content:
            await self.store.finish_response(response_id, ResponseStatus.COMPLETE, result.content)
            logger.info("%s response complete", provider)
        else:
            error = result.error or "Unknown error"
            await self.store.finish_response(response_id, ResponseStatus.ERROR, error)
            logger.info("%s response failed: %s", provider, error)

    async def wait(self) -> None:
        await self.tasks.wait()
