"""
Claim Manager

Claim, release and expiry of counselor leases on queue items.

Every transition here is exactly one guarded conditional write in the
store. Nothing reads an item and then writes it back, and nothing
takes a process-local lock, so any number of counselor processes can
poll and claim at once. The store decides each race per item.

A lost claim race is ordinary control flow: it is logged at info level
and surfaced as AlreadyClaimedError for the caller to re-poll.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence
from uuid import UUID

from crosscare.config.logging_config import get_logger
from crosscare.domain.enums.queue_enums import Priority, QueueStatus, ResponseMode
from crosscare.domain.models.queue_item import QueueItem, utc_now
from crosscare.infrastructure.database.queue_store import (
    ItemChanges,
    QueueStore,
    TransitionGuard,
)
from crosscare.infrastructure.metrics import (
    QUEUE_ARCHIVED_TOTAL,
    QUEUE_EXPIRED_CLAIMS_TOTAL,
    track_claim,
    track_release,
)
from crosscare.services.queue.errors import (
    AlreadyClaimedError,
    ItemNotFoundError,
    NotClaimedError,
    NotOwnerError,
    ValidationError,
)

logger = get_logger(__name__)

# Policy constants. Settings may override the lease per deployment.
LEASE_DURATION = timedelta(hours=2)
ARCHIVE_COOLDOWN = timedelta(days=7)
SWEEP_BATCH_SIZE = 500
DEFAULT_LIST_LIMIT = 100

Clock = Callable[[], datetime]


class ClaimManager:
    """
    Lease management for the counselor queue.

    Usage:
        manager = ClaimManager(store)
        item = await manager.claim(item_id, counselor_id)
    """

    def __init__(
        self,
        store: QueueStore,
        *,
        lease_duration: timedelta = LEASE_DURATION,
        archive_cooldown: timedelta = ARCHIVE_COOLDOWN,
        list_limit: int = DEFAULT_LIST_LIMIT,
        clock: Clock = utc_now,
    ) -> None:
        """
        Args:
            store: Queue persistence
            lease_duration: How long a claim stays valid
            archive_cooldown: How long answered items stay visible
            list_limit: Default page size for list_available
            clock: Source of naive UTC "now"
        """
        self._store = store
        self._lease_duration = lease_duration
        self._archive_cooldown = archive_cooldown
        self._list_limit = list_limit
        self._clock = clock

    @property
    def lease_duration(self) -> timedelta:
        return self._lease_duration

    async def claim(self, item_id: UUID, actor_id: str) -> QueueItem:
        """
        Take the lease on a pending item.

        Args:
            item_id: Item to claim
            actor_id: Claiming counselor

        Returns:
            The claimed item

        Raises:
            AlreadyClaimedError: The item is not pending any more
            ItemNotFoundError: No such item
        """
        if not actor_id:
            raise ValidationError("actor_id is required", field="actor_id")

        now = self._clock()
        claimed = await self._store.transition(
            item_id,
            TransitionGuard(expected_status=QueueStatus.PENDING),
            ItemChanges(
                status=QueueStatus.CLAIMED,
                updated_at=now,
                claimed_by=actor_id,
                claimed_at=now,
                response_deadline=now + self._lease_duration,
            ),
        )

        if not claimed:
            item = await self._store.get_item(item_id)
            if item is None:
                raise ItemNotFoundError(item_id)
            track_claim("already_claimed")
            logger.info(
                "Claim lost",
                item_id=str(item_id),
                actor_id=actor_id,
                current_status=item.status.value,
            )
            raise AlreadyClaimedError(item_id, item.status)

        track_claim("claimed")
        logger.info(
            "Item claimed",
            item_id=str(item_id),
            actor_id=actor_id,
            deadline=(now + self._lease_duration).isoformat(),
        )

        item = await self._store.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    async def release(self, item_id: UUID, actor_id: str) -> QueueItem:
        """
        Give a claimed item back to the queue.

        Only the lease holder may release. The item returns to pending
        with every claim field cleared.

        Raises:
            NotOwnerError: Claimed by someone else
            NotClaimedError: Not claimed at all
            ItemNotFoundError: No such item
        """
        now = self._clock()
        released = await self._store.transition(
            item_id,
            TransitionGuard(expected_status=QueueStatus.CLAIMED, claimed_by=actor_id),
            ItemChanges(status=QueueStatus.PENDING, updated_at=now),
        )

        if not released:
            item = await self._store.get_item(item_id)
            if item is None:
                raise ItemNotFoundError(item_id)
            if item.status == QueueStatus.CLAIMED:
                track_release("not_owner")
                raise NotOwnerError(item_id, actor_id)
            track_release("not_claimed")
            raise NotClaimedError(item_id, item.status)

        track_release("released")
        logger.info("Item released", item_id=str(item_id), actor_id=actor_id)

        item = await self._store.get_item(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    async def sweep_expired(self) -> int:
        """
        Return every lapsed claim to pending.

        Each candidate gets its own conditional write re-checking the
        deadline, so a claim submitted or released meanwhile is left
        alone. Running it again with no new claims changes nothing.

        Returns:
            Number of items returned to pending
        """
        now = self._clock()
        total = 0

        while True:
            candidates = await self._store.list_expired_claims(now, limit=SWEEP_BATCH_SIZE)
            swept = 0
            for item_id in candidates:
                if await self._store.transition(
                    item_id,
                    TransitionGuard(
                        expected_status=QueueStatus.CLAIMED,
                        deadline_not_after=now,
                    ),
                    ItemChanges(status=QueueStatus.PENDING, updated_at=now),
                ):
                    swept += 1
            total += swept
            if len(candidates) < SWEEP_BATCH_SIZE or swept == 0:
                break

        if total:
            QUEUE_EXPIRED_CLAIMS_TOTAL.inc(total)
            logger.info("Expired claims swept", count=total)
        return total

    async def list_available(
        self,
        priority: Optional[Priority] = None,
        limit: Optional[int] = None,
    ) -> Sequence[QueueItem]:
        """
        Pending human-mode items, oldest first.

        Priority only filters the list. It never changes the order.
        """
        return await self._store.list_items(
            QueueStatus.PENDING,
            response_mode=ResponseMode.HUMAN,
            priority=priority,
            limit=limit or self._list_limit,
        )

    async def archive_answered(self, cooldown: Optional[timedelta] = None) -> int:
        """
        Archive items answered longer ago than the cool-down.

        Returns:
            Number of items archived
        """
        now = self._clock()
        cutoff = now - (cooldown if cooldown is not None else self._archive_cooldown)
        total = 0

        while True:
            candidates = await self._store.list_answered_before(cutoff, limit=SWEEP_BATCH_SIZE)
            archived = 0
            for item_id in candidates:
                if await self._store.transition(
                    item_id,
                    TransitionGuard(
                        expected_status=QueueStatus.ANSWERED,
                        answered_before=cutoff,
                    ),
                    ItemChanges(status=QueueStatus.ARCHIVED, updated_at=now),
                ):
                    archived += 1
            total += archived
            if len(candidates) < SWEEP_BATCH_SIZE or archived == 0:
                break

        if total:
            QUEUE_ARCHIVED_TOTAL.inc(total)
            logger.info("Answered items archived", count=total)
        return total
