"""
Integration Tests - Analysis Flow

Tests submission → detached analysis → feedback attachment, and that
every analysis failure leaves the committed response intact.
"""

import asyncio

import pytest

from crosscare.domain.enums.queue_enums import (
    CulturalBackground,
    Priority,
    QueueStatus,
    TrainingDataQuality,
)
from crosscare.domain.models.feedback import FeedbackState
from crosscare.infrastructure.llm.provider import LLMProviderError, RateLimitError
from crosscare.services.analysis.response_analyzer import AnalysisTaskRunner, ResponseAnalyzer
from crosscare.services.analysis.result_parser import MANUAL_REVIEW_NOTE
from crosscare.services.queue.claim_manager import ClaimManager
from crosscare.services.queue.intake import RequestIntake
from crosscare.services.queue.response_submission import ResponseSubmission


class FailingAttachStore:
    """Delegating store whose feedback write always fails."""

    def __init__(self, store) -> None:
        self._store = store

    def __getattr__(self, name):
        return getattr(self._store, name)

    async def attach_feedback(self, response_id, feedback) -> bool:
        raise RuntimeError("database went away")


def _pipeline(store, provider, *, provider_timeout: float = 5.0, task_timeout: float = 5.0):
    analyzer = ResponseAnalyzer(provider, store, provider_timeout_seconds=provider_timeout)
    runner = AnalysisTaskRunner(analyzer, timeout_seconds=task_timeout)
    return runner, ResponseSubmission(store, analysis_runner=runner)


async def _answer(store, submission: ResponseSubmission, content: str = "I hear you.", requester="student-1"):
    intake = RequestIntake(store)
    manager = ClaimManager(store)
    item = await intake.create_request(
        requester,
        "My parents expect me to become a doctor and I want to study art.",
        priority=Priority.HIGH,
        cultural_context=CulturalBackground.SOUTH_ASIAN,
    )
    await manager.claim(item.id, "counselor-1")
    response_id = await submission.submit(item.id, "counselor-1", content)
    return item, response_id


class TestAnalysisFlow:
    """Integration tests for the response analysis pipeline."""

    async def test_feedback_attached(self, store, make_provider, payload) -> None:
        """Test that a good model answer ends up on the response."""
        provider = make_provider(payload(empathy=9))
        runner, submission = _pipeline(store, provider)

        _, response_id = await _answer(store, submission)
        await runner.wait_idle()

        lookup = await submission.get_feedback(response_id)
        assert lookup.state == FeedbackState.ATTACHED
        assert lookup.feedback.analysis_succeeded
        assert lookup.feedback.scores.empathy == 9.0
        assert not lookup.feedback.flagged_for_review
        assert lookup.feedback.model_id == "fake-model-001"

    async def test_prompt_carries_the_exchange(self, store, make_provider, payload) -> None:
        provider = make_provider(payload())
        runner, submission = _pipeline(store, provider)

        await _answer(store, submission, content="Have you talked to them about art?")
        await runner.wait_idle()

        message = provider.prompts[0].user_message
        assert '"Have you talked to them about art?"' in message
        assert "Cultural Background: south-asian" in message
        assert "Urgency Level: high" in message
        assert "Session Number: 1" in message

    async def test_history_from_earlier_requests(self, store, make_provider, payload) -> None:
        """Test that the requester's earlier exchange reaches the prompt."""
        provider = make_provider(payload())
        runner, submission = _pipeline(store, provider)

        await _answer(store, submission, content="First reply")
        await runner.wait_idle()
        await _answer(store, submission, content="Second reply")
        await runner.wait_idle()

        message = provider.prompts[1].user_message
        assert "Counselor: First reply" in message
        assert "Session Number: 2" in message

    async def test_low_scores_flag_review(self, store, make_provider, payload) -> None:
        provider = make_provider(payload(culturalSensitivity=3, empathy=4))
        runner, submission = _pipeline(store, provider)

        _, response_id = await _answer(store, submission)
        await runner.wait_idle()

        feedback = (await submission.get_feedback(response_id)).feedback
        assert feedback.flagged_for_review
        assert feedback.training_data_quality != TrainingDataQuality.HIGH

    async def test_unparseable_output_attaches_fallback(self, store, make_provider) -> None:
        provider = make_provider("Sorry, I cannot evaluate this.")
        runner, submission = _pipeline(store, provider)

        _, response_id = await _answer(store, submission)
        await runner.wait_idle()

        feedback = (await submission.get_feedback(response_id)).feedback
        assert not feedback.analysis_succeeded
        assert feedback.suggestions.improvements == [MANUAL_REVIEW_NOTE]
        assert feedback.training_data_quality == TrainingDataQuality.LOW

    async def test_provider_error_attaches_fallback(self, store, make_provider) -> None:
        """Test that a failed model call still yields reviewable feedback."""
        provider = make_provider(RateLimitError("fake"))
        runner, submission = _pipeline(store, provider)

        _, response_id = await _answer(store, submission)
        await runner.wait_idle()

        lookup = await submission.get_feedback(response_id)
        assert lookup.state == FeedbackState.ATTACHED
        assert not lookup.feedback.analysis_succeeded
        assert lookup.feedback.scores.overall == 5.5
        assert lookup.feedback.flagged_for_review
        assert lookup.feedback.training_data_quality == TrainingDataQuality.LOW

    async def test_unexpected_provider_exception_attaches_fallback(self, store, make_provider) -> None:
        """Test that an unmapped client exception is treated as a failed model call."""
        provider = make_provider(RuntimeError("bad payload from SDK"))
        runner, submission = _pipeline(store, provider)

        _, response_id = await _answer(store, submission)
        await runner.wait_idle()

        lookup = await submission.get_feedback(response_id)
        assert lookup.state == FeedbackState.ATTACHED
        assert not lookup.feedback.analysis_succeeded
        assert lookup.feedback.training_data_quality == TrainingDataQuality.LOW

    async def test_provider_timeout_attaches_fallback(self, store, make_provider, payload) -> None:
        provider = make_provider(payload(), delay=1.0)
        runner, submission = _pipeline(store, provider, provider_timeout=0.05)

        _, response_id = await _answer(store, submission)
        await runner.wait_idle()

        feedback = (await submission.get_feedback(response_id)).feedback
        assert not feedback.analysis_succeeded

    async def test_task_timeout_leaves_feedback_absent(self, store, make_provider, payload) -> None:
        """Test that the overall timeout abandons the analysis entirely."""
        provider = make_provider(payload(), delay=1.0)
        runner, submission = _pipeline(store, provider, provider_timeout=5.0, task_timeout=0.05)

        item, response_id = await _answer(store, submission)
        await runner.wait_idle()

        assert (await submission.get_feedback(response_id)).state == FeedbackState.ABSENT
        assert (await store.get_item(item.id)).status == QueueStatus.ANSWERED

    async def test_persistence_failure_leaves_feedback_absent(self, store, make_provider, payload) -> None:
        provider = make_provider(payload())
        analyzer = ResponseAnalyzer(provider, FailingAttachStore(store))
        runner = AnalysisTaskRunner(analyzer)
        submission = ResponseSubmission(store, analysis_runner=runner)

        item, response_id = await _answer(store, submission)
        await runner.wait_idle()

        assert (await submission.get_feedback(response_id)).state == FeedbackState.ABSENT
        assert (await store.get_item(item.id)).response_count == 1

    async def test_submit_does_not_wait_for_analysis(self, store, make_provider, payload) -> None:
        """Test that the response is committed before analysis finishes."""
        provider = make_provider(payload(), delay=0.3)
        runner, submission = _pipeline(store, provider)

        _, response_id = await _answer(store, submission)

        assert runner.in_flight == 1
        assert (await submission.get_feedback(response_id)).state == FeedbackState.ABSENT

        await runner.wait_idle()
        assert (await submission.get_feedback(response_id)).state == FeedbackState.ATTACHED

    async def test_shutdown_cancels_in_flight(self, store, make_provider, payload) -> None:
        provider = make_provider(payload(), delay=5.0)
        runner, submission = _pipeline(store, provider, provider_timeout=10.0, task_timeout=10.0)

        _, response_id = await _answer(store, submission)
        await asyncio.sleep(0.05)
        await runner.shutdown()

        assert runner.in_flight == 0
        assert (await submission.get_feedback(response_id)).state == FeedbackState.ABSENT

    async def test_feedback_written_once(self, store, make_provider, payload) -> None:
        """Test that a second attach does not overwrite the first."""
        provider = make_provider(payload(empathy=9), payload(empathy=2))
        analyzer = ResponseAnalyzer(provider, store)
        runner = AnalysisTaskRunner(analyzer)
        submission = ResponseSubmission(store, analysis_runner=runner)

        _, response_id = await _answer(store, submission)
        await runner.wait_idle()
        response = await store.get_response(response_id)
        context = await analyzer.build_context(response)

        assert not await analyzer.analyze_and_attach(response_id, context)
        feedback = (await submission.get_feedback(response_id)).feedback
        assert feedback.scores.empathy == 9.0


class TestProviderErrorTypes:
    """Test suite for the provider error contract."""

    def test_rate_limit_is_retryable(self) -> None:
        assert RateLimitError("fake").is_retryable

    def test_plain_error_is_not_retryable(self) -> None:
        assert not LLMProviderError("boom", provider="fake").is_retryable
