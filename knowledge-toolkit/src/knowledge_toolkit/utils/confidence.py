from enum import StrEnum
from typing import Sequence

from knowledge_toolkit.vectorstores.base import DocumentMatch

HIGH_CONFIDENCE_THRESHOLD = 0.7
MEDIUM_CONFIDENCE_THRESHOLD = 0.4


class Confidence(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConfidenceEstimator:
    """
    Map retrieval quality to a coarse, user-facing label.

    Only the best similarity score counts: '>= high_threshold' is HIGH,
    '>= medium_threshold' is MEDIUM, anything else (including no documents) is LOW.
    Thresholds are fixed for the lifetime of the estimator.
    """

    def __init__(
        self,
        high_threshold: float = HIGH_CONFIDENCE_THRESHOLD,
        medium_threshold: float = MEDIUM_CONFIDENCE_THRESHOLD,
    ):
        if medium_threshold > high_threshold:
            raise ValueError("medium_threshold must not exceed high_threshold")
        self.high_threshold = high_threshold
        self.medium_threshold = medium_threshold

    def estimate(self, documents: Sequence[DocumentMatch]) -> Confidence:
        max_score = max((document.score for document in documents), default=0.0)
        if max_score >= self.high_threshold:
            return Confidence.HIGH
        if max_score >= self.medium_threshold:
            return Confidence.MEDIUM
        return Confidence.LOW
