"""Sample size rating for a prediction."""

from __future__ import annotations

import dataclasses
from enum import Enum

LOW_SAMPLE_MATCHES = 3
RELIABLE_SAMPLE_MATCHES = 7


class QualityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclasses.dataclass(frozen=True, slots=True)
class QualityAssessment:
    level: QualityLevel
    message: str


def assess_quality(matches_played: float, average_minutes: float | None = None) -> QualityAssessment:
    """Rate the sample behind a prediction from the number of matches alone.

    ``average_minutes`` is accepted for call-site symmetry with the
    expectation model and plays no part in the rating.
    """

    del average_minutes
    count = f"{matches_played:g}"
    if matches_played < LOW_SAMPLE_MATCHES:
        return QualityAssessment(
            QualityLevel.LOW, f"Few matches ({count}) - use with great caution"
        )
    if matches_played < RELIABLE_SAMPLE_MATCHES:
        return QualityAssessment(
            QualityLevel.MEDIUM, f"Reasonable sample ({count} matches) - moderate risk"
        )
    return QualityAssessment(
        QualityLevel.HIGH, f"Good sample ({count} matches) - reliable data"
    )


__all__ = ["QualityAssessment", "QualityLevel", "assess_quality"]
