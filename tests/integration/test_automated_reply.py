"""
Integration Tests - Automated Reply

Tests model replies to AI-mode requests through the automated
submission path.
"""

import pytest

from crosscare.domain.enums.queue_enums import (
    CulturalBackground,
    QueueStatus,
    ResponderType,
    ResponseMode,
)
from crosscare.infrastructure.llm.provider import LLMProviderError, ProviderTimeoutError
from crosscare.services.prompt.cultural_reference import REPLY_GUIDANCE
from crosscare.services.queue.automated_responder import AutomatedResponder, clean_reply
from crosscare.services.queue.errors import InvalidTransitionError
from crosscare.services.queue.intake import RequestIntake
from crosscare.services.queue.response_submission import AI_RESPONDER_ID, ResponseSubmission


@pytest.fixture
def intake(store) -> RequestIntake:
    return RequestIntake(store)


@pytest.fixture
def submission(store) -> ResponseSubmission:
    return ResponseSubmission(store)


class TestAutomatedResponder:
    """Integration tests for AutomatedResponder."""

    async def test_reply_answers_item(self, store, intake, submission, make_provider) -> None:
        provider = make_provider("**You are not alone.** What feels heaviest right now?")
        responder = AutomatedResponder(provider, store, submission)
        item = await intake.create_request(
            "student-1",
            "I miss home so much",
            response_mode=ResponseMode.AI,
            cultural_context=CulturalBackground.MIDDLE_EASTERN,
        )

        response_id = await responder.respond(item.id)

        stored = await store.get_item(item.id, include_responses=True)
        assert stored.status == QueueStatus.ANSWERED
        assert stored.claimed_by is None
        reply = stored.responses[0]
        assert reply.id == response_id
        assert reply.responder_id == AI_RESPONDER_ID
        assert reply.responder_type == ResponderType.AI
        assert reply.content == "You are not alone. What feels heaviest right now?"
        assert reply.model_id == "fake-model-001"
        assert reply.feedback is None

        prompt = provider.prompts[0]
        assert REPLY_GUIDANCE[CulturalBackground.MIDDLE_EASTERN] in prompt.system_prompt
        assert prompt.user_message == "I miss home so much"

    async def test_human_mode_item_refused(self, store, intake, submission, make_provider) -> None:
        provider = make_provider("Hello")
        responder = AutomatedResponder(provider, store, submission)
        item = await intake.create_request("student-1", "Please have a person answer")

        with pytest.raises(InvalidTransitionError):
            await responder.respond(item.id)

        assert provider.prompts == []

    async def test_provider_failure_leaves_item_pending(
        self,
        store,
        intake,
        submission,
        make_provider,
    ) -> None:
        provider = make_provider(LLMProviderError("upstream down", provider="fake"))
        responder = AutomatedResponder(provider, store, submission)
        item = await intake.create_request("student-1", "Hi", response_mode=ResponseMode.AI)

        with pytest.raises(LLMProviderError):
            await responder.respond(item.id)

        assert (await store.get_item(item.id)).status == QueueStatus.PENDING

    async def test_timeout_raises_provider_error(self, store, intake, submission, make_provider) -> None:
        provider = make_provider("late", delay=1.0)
        responder = AutomatedResponder(provider, store, submission, timeout_seconds=0.05)
        item = await intake.create_request("student-1", "Hi", response_mode=ResponseMode.AI)

        with pytest.raises(ProviderTimeoutError):
            await responder.respond(item.id)

        assert (await store.get_item(item.id)).status == QueueStatus.PENDING

    async def test_empty_reply_rejected(self, store, intake, submission, make_provider) -> None:
        provider = make_provider("```\ncode only\n```")
        responder = AutomatedResponder(provider, store, submission)
        item = await intake.create_request("student-1", "Hi", response_mode=ResponseMode.AI)

        with pytest.raises(LLMProviderError):
            await responder.respond(item.id)

    async def test_answered_item_refused(self, store, intake, submission, make_provider) -> None:
        """Test that a second reply to the same item is rejected."""
        responder = AutomatedResponder(make_provider("First"), store, submission)
        item = await intake.create_request("student-1", "Hi", response_mode=ResponseMode.AI)
        await responder.respond(item.id)

        with pytest.raises(InvalidTransitionError):
            await responder.respond(item.id)


class TestCleanReply:
    """Test suite for markdown stripping."""

    def test_strips_formatting(self) -> None:
        text = "# Title\n- **Breathe** slowly\n- Try [this](http://x.y)\n1. `rest`"

        assert clean_reply(text) == "Title Breathe slowly Try this rest"

    def test_plain_text_unchanged(self) -> None:
        assert clean_reply("That sounds hard.") == "That sounds hard."
