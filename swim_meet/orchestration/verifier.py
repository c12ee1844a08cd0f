"""
Turn mode: one provider critiques another provider's completed response,
and the critique can be handed back to the original provider for a reply.
"""

import logging
from typing import Optional

from ..errors import NotFoundError, ProviderCallError, ValidationError
from ..models import (
    Conversation,
    Response,
    ResponseStatus,
    VerificationResult,
    VerificationStatus,
    now_iso,
)
from ..providers import ProviderRegistry, ProviderResult
from ..store import Store
from .critique import (
    build_critique_prompt,
    build_fact_check_prompt,
    build_reply_prompt,
    build_share_prompt,
    parse_critique,
)

logger = logging.getLogger(__name__)

# Perplexity searches the web; Anthropic drafts follow-ups.
FACT_CHECKER = "perplexity"
REPLY_PROVIDER = "anthropic"


async def _invoke(registry: ProviderRegistry, provider: str, prompt: str) -> ProviderResult:
    try:
        return await registry.invoke(provider, prompt)
    except Exception as e:
        return ProviderResult.fail(f"Error: {e}")


class TurnVerifier:
    def __init__(self, store: Store):
        self.store = store

    async def _load(self, response_id: str) -> tuple[Response, Conversation]:
        response = await self.store.get_response(response_id)
        if response is None:
            raise NotFoundError(f"Response {response_id} not found")

        conversation = await self.store.get_conversation(response.conversation_id)
        if conversation is None:
            raise NotFoundError(f"Conversation {response.conversation_id} not found")

        return response, conversation

    async def _load_complete(self, response_id: str) -> tuple[Response, Conversation]:
        response, conversation = await self._load(response_id)
        if response.status != ResponseStatus.COMPLETE:
            raise ValidationError(
                f"Response {response_id} is {response.status.value}; only complete responses can be reviewed"
            )
        return response, conversation

    async def verify(
        self,
        response_id: str,
        verifier: str,
        registry: ProviderRegistry,
    ) -> VerificationResult:
        """
        Ask `verifier` to critique a completed response.

        The response's verification status is `pending` while the verifier
        runs, then `complete` with the result appended, or `failed` when the
        verifier call does not succeed.
        """
        response, conversation = await self._load(response_id)

        if response.status != ResponseStatus.COMPLETE:
            raise ValidationError(
                f"Response {response_id} is {response.status.value}; only complete responses can be verified"
            )
        if verifier not in registry:
            raise ValidationError(f"Unsupported verifier: {verifier}")

        await self.store.update_response(
            response_id, verification_status=VerificationStatus.PENDING
        )

        prompt = build_critique_prompt(conversation.query, response)
        result = await _invoke(registry, verifier, prompt)

        if not result.success:
            await self.store.update_response(
                response_id, verification_status=VerificationStatus.FAILED
            )
            logger.warning("Verification of %s by %s failed: %s", response_id, verifier, result.error)
            raise ProviderCallError(verifier, result.error or "Verification failed")

        critique = parse_critique(result.content, verifier)
        if critique.parse_failed:
            logger.info("Critique from %s was not structured; kept as free text", verifier)

        await self.store.append_verification(response_id, critique)
        logger.info(
            "Response %s verified by %s: score %s",
            response_id,
            verifier,
            critique.accuracy_score,
        )
        return critique

    async def share_critique(
        self,
        response_id: str,
        registry: ProviderRegistry,
    ) -> str:
        """Send the latest critique back to the provider that wrote the response."""
        response, conversation = await self._load(response_id)

        critique = response.latest_verification
        if critique is None:
            raise ValidationError("No verification results to share")

        prompt = build_share_prompt(conversation.query, response, critique)
        result = await _invoke(registry, response.provider, prompt)

        if not result.success:
            raise ProviderCallError(response.provider, result.error or "Critique sharing failed")

        await self.store.update_response(
            response_id,
            metadata={
                "critique_response": {
                    "verifier": critique.verifier,
                    "shared_at": now_iso(),
                    "content": result.content,
                }
            },
        )
        logger.info("Critique from %s shared with %s", critique.verifier, response.provider)
        return result.content or ""

    async def fact_check(
        self,
        response_id: str,
        registry: ProviderRegistry,
        checker: str = FACT_CHECKER,
    ) -> str:
        """Have `checker` fact-check a completed response; the report lands in metadata["fact_check"]."""
        response, conversation = await self._load_complete(response_id)
        if checker not in registry:
            raise ValidationError(f"Unsupported fact checker: {checker}")

        prompt = build_fact_check_prompt(conversation.query, response)
        result = await _invoke(registry, checker, prompt)

        if not result.success:
            logger.warning("Fact-check of %s by %s failed: %s", response_id, checker, result.error)
            raise ProviderCallError(checker, result.error or "Fact-check failed")

        await self.store.update_response(
            response_id,
            metadata={
                "fact_check": {
                    "checker": checker,
                    "checked_at": now_iso(),
                    "content": result.content,
                }
            },
        )
        logger.info("Response %s fact-checked by %s", response_id, checker)
        return result.content or ""

    async def generate_reply(
        self,
        response_id: str,
        registry: ProviderRegistry,
        context: Optional[str] = None,
        provider: str = REPLY_PROVIDER,
    ) -> str:
        """Draft a constructive follow-up to a completed response; stored in metadata["reply"]."""
        response, conversation = await self._load_complete(response_id)
        if provider not in registry:
            raise ValidationError(f"Unsupported provider: {provider}")

        prompt = build_reply_prompt(conversation.query, response, context)
        result = await _invoke(registry, provider, prompt)

        if not result.success:
            raise ProviderCallError(provider, result.error or "Reply generation failed")

        await self.store.update_response(
            response_id,
            metadata={
                "reply": {
                    "provider": provider,
                    "context": context,
                    "generated_at": now_iso(),
                    "content": result.content,
                }
            },
        )
        logger.info("Follow-up to %s drafted by %s", response_id, provider)
        return result.content or ""
