"""
Unit Tests for Queue Domain

Tests the status graph, lease helpers, serialisation and topic tagging.
"""

from datetime import datetime, timedelta

import pytest

from crosscare.domain.enums.queue_enums import QueueStatus
from crosscare.domain.models.queue_item import QueueItem, is_valid_transition
from crosscare.services.queue.intake import extract_tags


class TestStatusTransitions:
    """Test suite for the queue status graph."""

    @pytest.mark.parametrize(
        "current, target",
        [
            (QueueStatus.PENDING, QueueStatus.CLAIMED),
            (QueueStatus.CLAIMED, QueueStatus.PENDING),
            (QueueStatus.CLAIMED, QueueStatus.ANSWERED),
            (QueueStatus.PENDING, QueueStatus.ANSWERED),
            (QueueStatus.ANSWERED, QueueStatus.ARCHIVED),
        ],
    )
    def test_permitted_edges(self, current: QueueStatus, target: QueueStatus) -> None:
        assert is_valid_transition(current, target)

    @pytest.mark.parametrize(
        "current, target",
        [
            (QueueStatus.ANSWERED, QueueStatus.PENDING),
            (QueueStatus.ANSWERED, QueueStatus.CLAIMED),
            (QueueStatus.ARCHIVED, QueueStatus.PENDING),
            (QueueStatus.PENDING, QueueStatus.ARCHIVED),
            (QueueStatus.CLAIMED, QueueStatus.ARCHIVED),
            (QueueStatus.CLAIMED, QueueStatus.CLAIMED),
        ],
    )
    def test_forbidden_edges(self, current: QueueStatus, target: QueueStatus) -> None:
        assert not is_valid_transition(current, target)

    def test_archived_is_terminal(self) -> None:
        """Test that nothing leaves the archived state."""
        assert not any(is_valid_transition(QueueStatus.ARCHIVED, target) for target in QueueStatus)


class TestQueueItem:
    """Test suite for QueueItem helpers."""

    @pytest.fixture
    def claimed_item(self) -> QueueItem:
        now = datetime(2026, 3, 2, 9, 0, 0)
        return QueueItem(
            requester_id="student-1",
            content="I feel overwhelmed",
            status=QueueStatus.CLAIMED,
            claimed_by="counselor-1",
            claimed_at=now,
            response_deadline=now + timedelta(hours=2),
        )

    def test_lease_expiry_boundary(self, claimed_item: QueueItem) -> None:
        """Test that the lease has lapsed exactly at the deadline."""
        deadline = claimed_item.response_deadline

        assert not claimed_item.lease_expired(deadline - timedelta(microseconds=1))
        assert claimed_item.lease_expired(deadline)

    def test_is_claimed_by(self, claimed_item: QueueItem) -> None:
        assert claimed_item.is_claimed_by("counselor-1")
        assert not claimed_item.is_claimed_by("counselor-2")

    def test_anonymous_requester_hidden(self, claimed_item: QueueItem) -> None:
        """Test that counselors never see an anonymous requester's id."""
        claimed_item.is_anonymous = True

        assert claimed_item.to_dict(include_requester=False)["requester_id"] is None
        assert claimed_item.to_dict()["requester_id"] == "student-1"


class TestExtractTags:
    """Test suite for topic tagging."""

    def test_inflected_forms_match(self) -> None:
        assert extract_tags("I'm so stressed and anxious about my family") == ["stress", "family"]

    def test_five_letter_prefix_matches(self) -> None:
        """Test that a singular word matches its plural concept."""
        assert extract_tags("My relationship is falling apart") == ["relationships"]

    def test_short_words_do_not_match(self) -> None:
        """Test that short words are not treated as concept prefixes."""
        assert extract_tags("a car is social") == ["social"]

    def test_tags_follow_concept_order(self) -> None:
        tags = extract_tags("Career worries, academic pressure and depression")

        assert tags == ["depression", "academic", "career"]

    def test_no_concepts(self) -> None:
        assert extract_tags("Hello there") == []
