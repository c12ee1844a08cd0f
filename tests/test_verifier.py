"""Tests for turn-mode verification and critique sharing."""

import pytest

from swim_meet.errors import NotFoundError, ProviderCallError, ValidationError
from swim_meet.models import ResponseStatus, VerificationStatus
from swim_meet.orchestration import TurnVerifier
from swim_meet.store import MemoryStore

from tests.helpers import (
    RaisingAdapter,
    StubAdapter,
    make_complete_response,
    make_conversation,
    make_registry,
)

CRITIQUE = (
    '{"accuracyScore": 9, "factualErrors": [], "strengths": ["Correct"], '
    '"weaknesses": ["Brief"], "overallAssessment": "Reliable.", "recommendations": []}'
)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def verifier(store):
    return TurnVerifier(store)


class TestVerify:
    @pytest.mark.asyncio
    async def test_structured_critique_is_stored(self, store, verifier):
        response = await make_complete_response(store)
        anthropic = StubAdapter("anthropic", content=CRITIQUE)

        result = await verifier.verify(response.id, "anthropic", make_registry(anthropic=anthropic))

        assert result.accuracy_score == 9
        assert result.verifier == "anthropic"
        stored = await store.get_response(response.id)
        assert stored.verification_status == VerificationStatus.COMPLETE
        assert stored.latest_verification.overall_assessment == "Reliable."
        assert "What is the tallest mountain?" in anthropic.prompts[0]
        assert "Mount Everest" in anthropic.prompts[0]

    @pytest.mark.asyncio
    async def test_response_content_is_untouched(self, store, verifier):
        response = await make_complete_response(store)
        await verifier.verify(response.id, "google", make_registry(google=StubAdapter("google", content=CRITIQUE)))

        stored = await store.get_response(response.id)
        assert stored.content == response.content
        assert stored.status == ResponseStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_unstructured_reply_degrades(self, store, verifier):
        response = await make_complete_response(store)
        registry = make_registry(grok=StubAdapter("grok", content="Looks fine to me."))

        result = await verifier.verify(response.id, "grok", registry)

        assert result.parse_failed
        assert result.accuracy_score == 5
        assert result.overall_assessment == "Looks fine to me."
        assert (await store.get_response(response.id)).verification_status == VerificationStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_verifications_accumulate(self, store, verifier):
        response = await make_complete_response(store)
        registry = make_registry(
            anthropic=StubAdapter("anthropic", content=CRITIQUE),
            google=StubAdapter("google", content=CRITIQUE),
        )

        await verifier.verify(response.id, "anthropic", registry)
        await verifier.verify(response.id, "google", registry)

        stored = await store.get_response(response.id)
        assert [v.verifier for v in stored.verification_results] == ["anthropic", "google"]

    @pytest.mark.asyncio
    async def test_pending_response_rejected(self, store, verifier):
        conversation = await make_conversation(store)
        response = await store.create_response(conversation.id, "openai")
        with pytest.raises(ValidationError):
            await verifier.verify(response.id, "anthropic", make_registry())

    @pytest.mark.asyncio
    async def test_error_response_rejected(self, store, verifier):
        conversation = await make_conversation(store)
        response = await store.create_response(conversation.id, "openai")
        await store.finish_response(response.id, ResponseStatus.ERROR, "OpenAI error: 500")
        with pytest.raises(ValidationError):
            await verifier.verify(response.id, "anthropic", make_registry())

    @pytest.mark.asyncio
    async def test_missing_response(self, verifier):
        with pytest.raises(NotFoundError):
            await verifier.verify("missing", "anthropic", make_registry())

    @pytest.mark.asyncio
    async def test_verifier_failure_marks_failed(self, store, verifier):
        response = await make_complete_response(store)
        registry = make_registry(anthropic=StubAdapter("anthropic", error="Claude API key not configured"))

        with pytest.raises(ProviderCallError) as exc_info:
            await verifier.verify(response.id, "anthropic", registry)

        assert exc_info.value.provider == "anthropic"
        stored = await store.get_response(response.id)
        assert stored.verification_status == VerificationStatus.FAILED
        assert stored.verification_results == []

    @pytest.mark.asyncio
    async def test_raising_verifier_marks_failed(self, store, verifier):
        response = await make_complete_response(store)
        registry = make_registry(deepseek=RaisingAdapter("deepseek"))

        with pytest.raises(ProviderCallError):
            await verifier.verify(response.id, "deepseek", registry)

        assert (await store.get_response(response.id)).verification_status == VerificationStatus.FAILED


class TestShareCritique:
    @pytest.mark.asyncio
    async def test_reply_stored_in_metadata(self, store, verifier):
        response = await make_complete_response(store, provider="openai")
        openai = StubAdapter("openai", content="Fair points, I will add K2.")
        registry = make_registry(openai=openai, anthropic=StubAdapter("anthropic", content=CRITIQUE))
        await verifier.verify(response.id, "anthropic", registry)

        reply = await verifier.share_critique(response.id, registry)

        assert reply == "Fair points, I will add K2."
        assert "Accuracy Score: 9/10" in openai.prompts[0]
        stored = await store.get_response(response.id)
        exchange = stored.metadata["critique_response"]
        assert exchange["verifier"] == "anthropic"
        assert exchange["content"] == reply
        assert exchange["shared_at"]

    @pytest.mark.asyncio
    async def test_requires_a_verification(self, store, verifier):
        response = await make_complete_response(store)
        with pytest.raises(ValidationError):
            await verifier.share_critique(response.id, make_registry())

    @pytest.mark.asyncio
    async def test_original_provider_failure(self, store, verifier):
        response = await make_complete_response(store, provider="openai")
        registry = make_registry(
            openai=StubAdapter("openai", error="OpenAI error: timeout"),
            anthropic=StubAdapter("anthropic", content=CRITIQUE),
        )
        await verifier.verify(response.id, "anthropic", registry)

        with pytest.raises(ProviderCallError):
            await verifier.share_critique(response.id, registry)

        assert "critique_response" not in (await store.get_response(response.id)).metadata
