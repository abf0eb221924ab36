"""Domain enums package."""

from crosscare.domain.enums.queue_enums import (
    CulturalBackground,
    Priority,
    QueueStatus,
    ResponderType,
    ResponseMode,
    TrainingDataQuality,
)

__all__ = [
    "CulturalBackground",
    "Priority",
    "QueueStatus",
    "ResponderType",
    "ResponseMode",
    "TrainingDataQuality",
]
