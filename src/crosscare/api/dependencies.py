"""
API Dependencies

Wires the queue services together once per application and hands them
to endpoints through FastAPI dependency injection.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from fastapi import Request

from crosscare.config import Settings
from crosscare.config.logging_config import get_logger
from crosscare.infrastructure.database.queue_store import QueueStore
from crosscare.infrastructure.llm.provider import LLMProvider
from crosscare.services.analysis.response_analyzer import AnalysisTaskRunner, ResponseAnalyzer
from crosscare.services.queue.automated_responder import AutomatedResponder
from crosscare.services.queue.claim_manager import ClaimManager
from crosscare.services.queue.intake import RequestIntake
from crosscare.services.queue.maintenance import QueueMaintenance
from crosscare.services.queue.response_submission import ResponseSubmission

logger = get_logger(__name__)


@dataclass
class QueueServices:
    """Every service the HTTP layer talks to."""

    store: QueueStore
    claim_manager: ClaimManager
    submission: ResponseSubmission
    intake: RequestIntake
    maintenance: QueueMaintenance
    analysis_runner: Optional[AnalysisTaskRunner] = None
    responder: Optional[AutomatedResponder] = None

    async def shutdown(self) -> None:
        """Stop background work: maintenance loop first, then analyses."""
        await self.maintenance.stop()
        if self.analysis_runner is not None:
            await self.analysis_runner.shutdown()


def build_queue_services(
    settings: Settings,
    store: QueueStore,
    provider: Optional[LLMProvider] = None,
) -> QueueServices:
    """
    Assemble queue services from settings.

    Without a configured provider, analysis and automated replies are
    disabled; AI-mode items then wait in the queue.
    """
    if provider is not None and not provider.is_configured():
        logger.warning(
            "LLM provider not configured, analysis and automated replies disabled",
            provider=provider.provider_name,
        )
        provider = None

    claim_manager = ClaimManager(
        store,
        lease_duration=timedelta(hours=settings.queue.lease_hours),
        archive_cooldown=timedelta(days=settings.queue.archive_cooldown_days),
        list_limit=settings.queue.list_limit,
    )

    analysis_runner: Optional[AnalysisTaskRunner] = None
    if provider is not None and settings.analysis.enabled:
        analyzer = ResponseAnalyzer(
            provider,
            store,
            provider_timeout_seconds=settings.analysis.provider_timeout_seconds,
            history_window=settings.analysis.history_window,
            analysis_version=settings.analysis.version,
        )
        analysis_runner = AnalysisTaskRunner(
            analyzer,
            timeout_seconds=settings.analysis.timeout_seconds,
        )

    submission = ResponseSubmission(store, analysis_runner=analysis_runner)
    responder = (
        AutomatedResponder(
            provider,
            store,
            submission,
            timeout_seconds=settings.analysis.provider_timeout_seconds,
        )
        if provider is not None
        else None
    )

    return QueueServices(
        store=store,
        claim_manager=claim_manager,
        submission=submission,
        intake=RequestIntake(store),
        maintenance=QueueMaintenance(
            claim_manager,
            interval_seconds=settings.queue.sweep_interval_seconds,
        ),
        analysis_runner=analysis_runner,
        responder=responder,
    )


def get_services(request: Request) -> QueueServices:
    """FastAPI dependency returning the application's services."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Queue services not initialized")
    return services
