"""Accept/reject gate between the recognizer and the gesture queue."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from stroke_engine.recognizer import ClassificationResult


class Decision(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @property
    def accepted(self) -> bool:
        return self is Decision.ACCEPTED


def decide(
    result: ClassificationResult, expected_label: Optional[str], threshold: float
) -> Decision:
    """Accept iff the score clears the threshold and the label is the expected one.

    A confident match of the wrong shape is still rejected.
    """
    if result.score > threshold and result.label == expected_label:
        return Decision.ACCEPTED
    return Decision.REJECTED


class DecisionGate:
    """Holds the confidence threshold used to accept classified gestures."""

    def __init__(self, threshold: float = 0.3):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be in [0, 1], got {threshold}")
        self.threshold = threshold

    def decide(
        self, result: ClassificationResult, expected_label: Optional[str]
    ) -> Decision:
        return decide(result, expected_label, self.threshold)
