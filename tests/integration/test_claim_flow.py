"""
Integration Tests - Claim Flow

Tests intake → claim → release / expiry → submission against a real
SQLite store, including concurrent claimers.
"""

import asyncio
from datetime import timedelta
from uuid import uuid4

import pytest

from crosscare.domain.enums.queue_enums import (
    CulturalBackground,
    Priority,
    QueueStatus,
    ResponderType,
    ResponseMode,
)
from crosscare.domain.models.feedback import FeedbackState
from crosscare.domain.models.queue_item import QueueItem
from crosscare.services.queue.claim_manager import ClaimManager
from crosscare.services.queue.errors import (
    AlreadyClaimedError,
    ExpiredClaimError,
    InvalidTransitionError,
    ItemNotFoundError,
    NotClaimedError,
    NotOwnerError,
    ResponseNotFoundError,
    ValidationError,
)
from crosscare.services.queue.intake import RequestIntake
from crosscare.services.queue.maintenance import QueueMaintenance
from crosscare.services.queue.response_submission import ResponseSubmission


@pytest.fixture
def intake(store, clock) -> RequestIntake:
    return RequestIntake(store, clock=clock)


@pytest.fixture
def manager(store, clock) -> ClaimManager:
    return ClaimManager(store, clock=clock)


@pytest.fixture
def submission(store, clock) -> ResponseSubmission:
    return ResponseSubmission(store, clock=clock)


@pytest.fixture
async def pending_item(intake: RequestIntake) -> QueueItem:
    return await intake.create_request(
        "student-1",
        "I'm stressed about my exams and my family keeps asking about grades.",
        cultural_context=CulturalBackground.EAST_ASIAN,
    )


class TestIntake:
    """Test suite for request intake."""

    async def test_request_is_pending(self, intake: RequestIntake, store) -> None:
        item = await intake.create_request("student-1", "I have anxiety before every class")
        stored = await store.get_item(item.id)

        assert stored.status == QueueStatus.PENDING
        assert stored.claimed_by is None
        assert stored.response_deadline is None
        assert stored.tags == ["anxiety"]

    async def test_empty_content_rejected(self, intake: RequestIntake, store) -> None:
        """Test that invalid input persists nothing."""
        with pytest.raises(ValidationError):
            await intake.create_request("student-1", "   ")

        assert await store.list_items(QueueStatus.PENDING) == []

    async def test_oversized_content_rejected(self, intake: RequestIntake) -> None:
        with pytest.raises(ValidationError):
            await intake.create_request("student-1", "x" * 4001)


class TestClaim:
    """Test suite for claiming."""

    async def test_claim_sets_lease(self, manager: ClaimManager, pending_item: QueueItem, clock) -> None:
        item = await manager.claim(pending_item.id, "counselor-1")

        assert item.status == QueueStatus.CLAIMED
        assert item.claimed_by == "counselor-1"
        assert item.claimed_at == clock.now
        assert item.response_deadline == clock.now + timedelta(hours=2)

    async def test_concurrent_claims_have_one_winner(
        self,
        manager: ClaimManager,
        pending_item: QueueItem,
    ) -> None:
        """Test that exactly one of many simultaneous claimers wins."""
        results = await asyncio.gather(
            *(manager.claim(pending_item.id, f"counselor-{i}") for i in range(8)),
            return_exceptions=True,
        )

        winners = [r for r in results if isinstance(r, QueueItem)]
        losers = [r for r in results if isinstance(r, AlreadyClaimedError)]
        assert len(winners) == 1
        assert len(losers) == 7
        assert all(loser.current_status == QueueStatus.CLAIMED for loser in losers)

    async def test_second_claim_rejected(self, manager: ClaimManager, pending_item: QueueItem) -> None:
        await manager.claim(pending_item.id, "counselor-1")

        with pytest.raises(AlreadyClaimedError):
            await manager.claim(pending_item.id, "counselor-2")

    async def test_claim_unknown_item(self, manager: ClaimManager) -> None:
        with pytest.raises(ItemNotFoundError):
            await manager.claim(uuid4(), "counselor-1")


class TestRelease:
    """Test suite for releasing."""

    async def test_release_then_reclaim(self, manager: ClaimManager, pending_item: QueueItem) -> None:
        """Test that a released item is claimable by someone else."""
        await manager.claim(pending_item.id, "counselor-1")
        released = await manager.release(pending_item.id, "counselor-1")

        assert released.status == QueueStatus.PENDING
        assert released.claimed_by is None
        assert released.claimed_at is None
        assert released.response_deadline is None

        reclaimed = await manager.claim(pending_item.id, "counselor-2")
        assert reclaimed.claimed_by == "counselor-2"

    async def test_release_by_non_owner(self, manager: ClaimManager, pending_item: QueueItem) -> None:
        await manager.claim(pending_item.id, "counselor-1")

        with pytest.raises(NotOwnerError):
            await manager.release(pending_item.id, "counselor-2")

    async def test_release_unclaimed(self, manager: ClaimManager, pending_item: QueueItem) -> None:
        with pytest.raises(NotClaimedError):
            await manager.release(pending_item.id, "counselor-1")


class TestListing:
    """Test suite for available-item listing."""

    async def test_fifo_ignores_priority(self, intake: RequestIntake, manager: ClaimManager, clock) -> None:
        """Test that listing order is arrival order whatever the priority."""
        low = await intake.create_request("s1", "first", priority=Priority.LOW)
        clock.advance(seconds=1)
        urgent = await intake.create_request("s2", "second", priority=Priority.URGENT)
        clock.advance(seconds=1)
        medium = await intake.create_request("s3", "third", priority=Priority.MEDIUM)

        items = await manager.list_available()

        assert [item.id for item in items] == [low.id, urgent.id, medium.id]

    async def test_priority_filters(self, intake: RequestIntake, manager: ClaimManager, clock) -> None:
        await intake.create_request("s1", "first", priority=Priority.LOW)
        clock.advance(seconds=1)
        urgent = await intake.create_request("s2", "second", priority=Priority.URGENT)

        items = await manager.list_available(priority=Priority.URGENT)

        assert [item.id for item in items] == [urgent.id]

    async def test_ai_mode_and_claimed_items_hidden(
        self,
        intake: RequestIntake,
        manager: ClaimManager,
        clock,
    ) -> None:
        await intake.create_request("s1", "for the bot", response_mode=ResponseMode.AI)
        claimed = await intake.create_request("s2", "taken")
        clock.advance(seconds=1)
        open_item = await intake.create_request("s3", "open")
        await manager.claim(claimed.id, "counselor-1")

        items = await manager.list_available()

        assert [item.id for item in items] == [open_item.id]

    async def test_limit(self, intake: RequestIntake, manager: ClaimManager, clock) -> None:
        for i in range(5):
            await intake.create_request(f"s{i}", f"request {i}")
            clock.advance(seconds=1)

        assert len(await manager.list_available(limit=2)) == 2


class TestLeaseExpiry:
    """Test suite for lease expiry and the sweep."""

    async def test_expired_lease_end_to_end(
        self,
        manager: ClaimManager,
        submission: ResponseSubmission,
        pending_item: QueueItem,
        store,
        clock,
    ) -> None:
        """Test claim → lapse → rejected submit → sweep → reclaim."""
        await manager.claim(pending_item.id, "counselor-1")
        clock.advance(hours=2, seconds=1)

        with pytest.raises(ExpiredClaimError):
            await submission.submit(pending_item.id, "counselor-1", "Sorry for the delay.")

        assert await manager.sweep_expired() == 1
        item = await store.get_item(pending_item.id)
        assert item.status == QueueStatus.PENDING
        assert item.claimed_by is None
        assert item.response_deadline is None

        with pytest.raises(ExpiredClaimError):
            await submission.submit(pending_item.id, "counselor-1", "Sorry for the delay.")

        reclaimed = await manager.claim(pending_item.id, "counselor-2")
        assert reclaimed.claimed_by == "counselor-2"

    async def test_deadline_instant_counts_as_expired(
        self,
        manager: ClaimManager,
        submission: ResponseSubmission,
        pending_item: QueueItem,
        clock,
    ) -> None:
        """Test that submit and sweep agree at exactly the deadline."""
        await manager.claim(pending_item.id, "counselor-1")
        clock.advance(hours=2)

        with pytest.raises(ExpiredClaimError):
            await submission.submit(pending_item.id, "counselor-1", "Right on time?")
        assert await manager.sweep_expired() == 1

    async def test_sweep_is_idempotent(
        self,
        manager: ClaimManager,
        intake: RequestIntake,
        clock,
    ) -> None:
        first = await intake.create_request("s1", "one")
        second = await intake.create_request("s2", "two")
        await manager.claim(first.id, "counselor-1")
        await manager.claim(second.id, "counselor-2")
        clock.advance(hours=3)

        assert await manager.sweep_expired() == 2
        assert await manager.sweep_expired() == 0

    async def test_live_lease_not_swept(self, manager: ClaimManager, pending_item: QueueItem, clock) -> None:
        await manager.claim(pending_item.id, "counselor-1")
        clock.advance(hours=1, minutes=59)

        assert await manager.sweep_expired() == 0


class TestSubmission:
    """Test suite for response submission."""

    async def test_submit_answers_item(
        self,
        manager: ClaimManager,
        submission: ResponseSubmission,
        pending_item: QueueItem,
        store,
        clock,
    ) -> None:
        await manager.claim(pending_item.id, "counselor-1")
        clock.advance(minutes=30)

        response_id = await submission.submit(
            pending_item.id, "counselor-1", "That sounds really hard. What would help most?"
        )

        item = await store.get_item(pending_item.id, include_responses=True)
        assert item.status == QueueStatus.ANSWERED
        assert item.answered_at == clock.now
        assert item.response_count == 1
        assert item.claimed_by is None
        assert item.response_deadline is None
        assert [r.id for r in item.responses] == [response_id]
        assert item.responses[0].responder_type == ResponderType.HUMAN

    async def test_submit_by_non_owner(
        self,
        manager: ClaimManager,
        submission: ResponseSubmission,
        pending_item: QueueItem,
    ) -> None:
        await manager.claim(pending_item.id, "counselor-1")

        with pytest.raises(NotOwnerError):
            await submission.submit(pending_item.id, "counselor-2", "Hi there")

    async def test_second_submission_rejected(
        self,
        manager: ClaimManager,
        submission: ResponseSubmission,
        pending_item: QueueItem,
        store,
    ) -> None:
        """Test that an answered item accepts nothing more."""
        await manager.claim(pending_item.id, "counselor-1")
        await submission.submit(pending_item.id, "counselor-1", "First answer")

        with pytest.raises(NotClaimedError):
            await submission.submit(pending_item.id, "counselor-1", "Second answer")

        item = await store.get_item(pending_item.id)
        assert item.response_count == 1

    async def test_empty_response_rejected(
        self,
        manager: ClaimManager,
        submission: ResponseSubmission,
        pending_item: QueueItem,
        store,
    ) -> None:
        await manager.claim(pending_item.id, "counselor-1")

        with pytest.raises(ValidationError):
            await submission.submit(pending_item.id, "counselor-1", "  ")

        item = await store.get_item(pending_item.id)
        assert item.status == QueueStatus.CLAIMED

    async def test_automated_path_rejects_human_mode_item(
        self,
        submission: ResponseSubmission,
        pending_item: QueueItem,
    ) -> None:
        with pytest.raises(InvalidTransitionError):
            await submission.submit(
                pending_item.id, "ai", "Automated reply", responder_type=ResponderType.AI
            )

    async def test_automated_reply_skips_claiming(
        self,
        intake: RequestIntake,
        submission: ResponseSubmission,
        store,
    ) -> None:
        item = await intake.create_request("s1", "Talk to me", response_mode=ResponseMode.AI)

        response_id = await submission.submit(
            item.id, "ai", "I'm here for you.", responder_type=ResponderType.AI, model_id="m"
        )

        stored = await store.get_item(item.id)
        assert stored.status == QueueStatus.ANSWERED
        lookup = await submission.get_feedback(response_id)
        assert lookup.state == FeedbackState.NOT_APPLICABLE

    async def test_feedback_absent_without_analysis(
        self,
        manager: ClaimManager,
        submission: ResponseSubmission,
        pending_item: QueueItem,
    ) -> None:
        await manager.claim(pending_item.id, "counselor-1")
        response_id = await submission.submit(pending_item.id, "counselor-1", "I hear you.")

        lookup = await submission.get_feedback(response_id)

        assert lookup.state == FeedbackState.ABSENT
        assert lookup.feedback is None

    async def test_unknown_response(self, submission: ResponseSubmission) -> None:
        with pytest.raises(ResponseNotFoundError):
            await submission.get_feedback(uuid4())


class TestResponseHistory:
    """Test suite for reading committed responses back."""

    async def test_counselor_responses_newest_first(
        self,
        intake: RequestIntake,
        manager: ClaimManager,
        submission: ResponseSubmission,
        store,
        clock,
    ) -> None:
        submitted = []
        for counselor, text in [("counselor-1", "first"), ("counselor-2", "other"), ("counselor-1", "second")]:
            item = await intake.create_request("student-1", f"request for {text}")
            await manager.claim(item.id, counselor)
            submitted.append(await submission.submit(item.id, counselor, text))
            clock.advance(minutes=5)

        responses = await store.list_responder_responses("counselor-1")

        assert [r.id for r in responses] == [submitted[2], submitted[0]]
        assert all(r.responder_type == ResponderType.HUMAN for r in responses)
        assert len(await store.list_responder_responses("counselor-1", limit=1)) == 1

    async def test_item_responses_in_timestamp_order(
        self,
        pending_item: QueueItem,
        manager: ClaimManager,
        submission: ResponseSubmission,
        store,
    ) -> None:
        await manager.claim(pending_item.id, "counselor-1")
        response_id = await submission.submit(pending_item.id, "counselor-1", "Here is some help.")

        item = await store.get_item(pending_item.id, include_responses=True)

        assert [r.id for r in item.responses] == [response_id]
        assert item.responses[0].content == "Here is some help."


class TestMaintenance:
    """Test suite for the maintenance pass."""

    async def test_run_once_sweeps_and_archives(
        self,
        manager: ClaimManager,
        submission: ResponseSubmission,
        intake: RequestIntake,
        store,
        clock,
    ) -> None:
        answered = await intake.create_request("s1", "answered soon")
        lapsed = await intake.create_request("s2", "never answered")
        await manager.claim(answered.id, "counselor-1")
        await manager.claim(lapsed.id, "counselor-2")
        await submission.submit(answered.id, "counselor-1", "Here is some help.")

        clock.advance(days=7, seconds=1)
        maintenance = QueueMaintenance(manager)

        assert await maintenance.run_once() == (1, 1)
        assert (await store.get_item(answered.id)).status == QueueStatus.ARCHIVED
        assert (await store.get_item(lapsed.id)).status == QueueStatus.PENDING
        assert await maintenance.run_once() == (0, 0)

    async def test_recent_answers_not_archived(
        self,
        manager: ClaimManager,
        submission: ResponseSubmission,
        pending_item: QueueItem,
        clock,
    ) -> None:
        await manager.claim(pending_item.id, "counselor-1")
        await submission.submit(pending_item.id, "counselor-1", "Here is some help.")
        clock.advance(days=6)

        assert await manager.archive_answered() == 0

    async def test_start_and_stop(self, manager: ClaimManager) -> None:
        maintenance = QueueMaintenance(manager, interval_seconds=0.01)
        maintenance.start()
        await asyncio.sleep(0.05)

        assert maintenance.is_running
        await maintenance.stop()
        assert not maintenance.is_running

    async def test_loop_survives_connection_outage(self, store, clock) -> None:
        """Test that a failed pass does not end the loop."""

        class FlakyClaimManager(ClaimManager):
            sweep_calls = 0

            async def sweep_expired(self) -> int:
                self.sweep_calls += 1
                if self.sweep_calls == 1:
                    raise ConnectionRefusedError(111, "Connect call failed")
                return await super().sweep_expired()

        flaky = FlakyClaimManager(store, clock=clock)
        maintenance = QueueMaintenance(flaky, interval_seconds=0.01)
        maintenance.start()
        await asyncio.sleep(0.2)

        assert maintenance.is_running
        assert flaky.sweep_calls > 1
        await maintenance.stop()
        assert not maintenance.is_running

    async def test_stop_tolerates_failed_task(self, manager: ClaimManager) -> None:
        maintenance = QueueMaintenance(manager)

        async def crashed() -> None:
            raise OSError("gone")

        maintenance.run = crashed
        maintenance.start()
        await asyncio.sleep(0.01)

        await maintenance.stop()
        assert not maintenance.is_running
