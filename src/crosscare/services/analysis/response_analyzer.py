"""
Response Analyzer

Runs the scoring pipeline for a counselor response:
PromptBuilder → LLMProvider → FeedbackParser → QualityClassifier →
one attach_feedback write.

Model failures never surface as errors. A provider error or timeout
yields fallback feedback with analysis_succeeded=False. Everything else
(the overall task timeout, persistence failures) is logged and reported
by AnalysisTaskRunner, and the response simply keeps no feedback.
"""

import asyncio
import time
from typing import Optional
from uuid import UUID

from crosscare.config.logging_config import get_logger
from crosscare.domain.enums.queue_enums import ResponderType, TrainingDataQuality
from crosscare.domain.models.feedback import AIFeedback, ResponseContext
from crosscare.domain.models.queue_item import Response, utc_now
from crosscare.infrastructure.database.queue_store import QueueStore
from crosscare.infrastructure.llm.provider import LLMProvider, LLMProviderError, RateLimitError
from crosscare.infrastructure.metrics import (
    ANALYSIS_FLAGGED_TOTAL,
    track_analysis,
    track_llm_request,
)
from crosscare.infrastructure.monitoring import capture_exception_with_context
from crosscare.services.analysis.quality_classifier import QualityClassifier
from crosscare.services.analysis.result_parser import FeedbackParser, fallback_feedback
from crosscare.services.prompt.prompt_builder import AnalysisPromptBuilder

logger = get_logger(__name__)


class ResponseAnalyzer:
    """
    Scores counselor responses and stores the result.

    Usage:
        analyzer = ResponseAnalyzer(provider, store)
        feedback = await analyzer.analyze(context)
    """

    DEFAULT_PROVIDER_TIMEOUT_SECONDS = 20.0

    def __init__(
        self,
        provider: LLMProvider,
        store: QueueStore,
        *,
        prompt_builder: Optional[AnalysisPromptBuilder] = None,
        parser: Optional[FeedbackParser] = None,
        classifier: Optional[QualityClassifier] = None,
        provider_timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
        history_window: int = AnalysisPromptBuilder.DEFAULT_HISTORY_WINDOW,
        analysis_version: str = "1.0",
    ) -> None:
        self._provider = provider
        self._store = store
        self._prompt_builder = prompt_builder or AnalysisPromptBuilder(history_window)
        self._parser = parser or FeedbackParser()
        self._classifier = classifier or QualityClassifier()
        self._provider_timeout = provider_timeout_seconds
        self._history_window = history_window
        self._analysis_version = analysis_version

    async def build_context(self, response: Response) -> Optional[ResponseContext]:
        """
        Assemble the analysis context for a response.

        Returns None if the answered item no longer exists.

        History is the requester's earlier requests and the replies they
        received, oldest first, trimmed to the history window.
        """
        item = await self._store.get_item(response.queue_item_id)
        if item is None:
            return None

        earlier = await self._store.list_requester_items(
            item.requester_id,
            before=item.created_at,
            limit=self._history_window,
        )

        history: list[str] = []
        for previous in earlier:
            history.append(f"Student: {previous.content}")
            for reply in previous.responses:
                speaker = "AI" if reply.responder_type == ResponderType.AI else "Counselor"
                history.append(f"{speaker}: {reply.content}")

        return ResponseContext(
            student_message=item.content,
            counselor_response=response.content,
            cultural_background=item.cultural_context,
            conversation_history=history[-self._history_window:] if self._history_window else [],
            session_number=len(earlier) + 1,
            urgency_level=item.priority.value,
        )

    async def analyze(self, context: ResponseContext) -> AIFeedback:
        """
        Score one exchange.

        Never raises for model failures; returns fallback feedback
        instead.
        """
        prompt = self._prompt_builder.build(context)
        provider_name = self._provider.provider_name
        model_id = self._provider.default_model

        start = time.monotonic()
        try:
            llm_response = await asyncio.wait_for(
                self._provider.generate(prompt),
                timeout=self._provider_timeout,
            )
        except asyncio.TimeoutError:
            track_llm_request(provider_name, "timeout", time.monotonic() - start)
            logger.warning(
                "Analysis model call timed out - using fallback",
                provider=provider_name,
                timeout=self._provider_timeout,
            )
            feedback = fallback_feedback()
        except LLMProviderError as e:
            status = "rate_limited" if isinstance(e, RateLimitError) else "error"
            track_llm_request(provider_name, status, time.monotonic() - start)
            logger.warning(
                "Analysis model call failed - using fallback",
                provider=provider_name,
                error_type=type(e).__name__,
                error=str(e),
            )
            feedback = fallback_feedback()
        except Exception as e:
            track_llm_request(provider_name, "error", time.monotonic() - start)
            logger.error(
                "Analysis model call raised unexpectedly - using fallback",
                provider=provider_name,
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            feedback = fallback_feedback()
        else:
            track_llm_request(
                provider_name,
                "success",
                time.monotonic() - start,
                llm_response.usage,
            )
            model_id = llm_response.model or model_id
            feedback = self._parser.parse(llm_response.content).feedback

        return self._classify(feedback, context, model_id)

    def _classify(
        self,
        feedback: AIFeedback,
        context: ResponseContext,
        model_id: str,
    ) -> AIFeedback:
        feedback.flagged_for_review = self._classifier.flag_for_review(feedback.scores)
        if feedback.analysis_succeeded:
            feedback.training_data_quality = self._classifier.training_data_quality(
                feedback.scores, context
            )
        else:
            # Neutral fallback scores say nothing about the response
            feedback.training_data_quality = TrainingDataQuality.LOW
        feedback.model_id = model_id
        feedback.analysis_version = self._analysis_version
        feedback.analyzed_at = utc_now()
        return feedback

    async def analyze_and_attach(self, response_id: UUID, context: ResponseContext) -> bool:
        """
        Score a response and store the feedback with one write.

        Returns:
            True if feedback was attached
        """
        feedback = await self.analyze(context)
        attached = await self._store.attach_feedback(response_id, feedback)

        if attached and feedback.flagged_for_review:
            ANALYSIS_FLAGGED_TOTAL.inc()

        logger.info(
            "Response analysis finished",
            response_id=str(response_id),
            attached=attached,
            analysis_succeeded=feedback.analysis_succeeded,
            flagged_for_review=feedback.flagged_for_review,
            overall=feedback.scores.overall,
        )
        return attached


class AnalysisTaskRunner:
    """
    Owns detached analysis tasks.

    Each task runs under one overall deadline. Failures end in a log
    line, a Sentry event and a metric; nothing is re-raised and no
    write is retried. shutdown() cancels whatever is still running.
    """

    DEFAULT_TIMEOUT_SECONDS = 30.0

    def __init__(
        self,
        analyzer: ResponseAnalyzer,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._analyzer = analyzer
        self._timeout = timeout_seconds
        self._tasks: set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def schedule(self, response: Response) -> asyncio.Task:
        """Start analysis of response in the background and return at once."""
        task = asyncio.create_task(
            self._run(response),
            name=f"analysis-{response.id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, response: Response) -> None:
        start = time.monotonic()
        log = logger.bind(
            response_id=str(response.id),
            item_id=str(response.queue_item_id),
        )

        try:
            attached = await asyncio.wait_for(
                self._analyze(response),
                timeout=self._timeout,
            )
        except asyncio.CancelledError:
            log.info("Analysis task cancelled")
            raise
        except asyncio.TimeoutError as e:
            track_analysis("timeout", time.monotonic() - start)
            log.warning("Analysis task timed out", timeout=self._timeout)
            capture_exception_with_context(
                e,
                tags={"component": "analysis"},
                extra={"response_id": str(response.id), "timeout": self._timeout},
            )
            return
        except Exception as e:
            track_analysis("error", time.monotonic() - start)
            log.error(
                "Analysis task failed",
                error_type=type(e).__name__,
                error=str(e),
                exc_info=True,
            )
            capture_exception_with_context(
                e,
                tags={"component": "analysis"},
                extra={"response_id": str(response.id)},
            )
            return

        track_analysis("attached" if attached else "not_attached", time.monotonic() - start)

    async def _analyze(self, response: Response) -> bool:
        context = await self._analyzer.build_context(response)
        if context is None:
            logger.warning("Answered item missing, analysis skipped", response_id=str(response.id))
            return False
        return await self._analyzer.analyze_and_attach(response.id, context)

    async def wait_idle(self) -> None:
        """Wait for every task scheduled so far to finish."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        """Cancel in-flight analyses."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Analysis tasks cancelled", count=len(tasks))
