"""
Turns raw detections into inventory item labels.

Uploaded photographs tend to score lower than live camera frames, so the
minimum accepted confidence depends on where the image came from.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Sequence

from boxscan.detection.BaseDetection import Detection


class ThresholdProfile(Enum):
    CAMERA = 0.5
    UPLOAD = 0.3

    @property
    def min_confidence(self) -> float:
        return self.value


@dataclass
class ClassificationResult:
    items: List[str] = field(default_factory=list)
    accepted: List[Detection] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.items


def confidence_percent(confidence: float) -> int:
    """Confidence as a whole percentage, rounding halves up."""
    return int(math.floor(confidence * 100 + 0.5))


def format_item_label(detection: Detection) -> str:
    return f"{detection.label} ({confidence_percent(detection.confidence)}%)"


def to_items(detections: Sequence[Detection], profile: ThresholdProfile) -> ClassificationResult:
    """
    Keep detections scoring at least ``profile.min_confidence`` and label them.

    Input order is preserved. No survivors yields an empty result, which
    callers treat as "nothing detected".
    """
    accepted = [d for d in detections if d.confidence >= profile.min_confidence]
    return ClassificationResult(
        items=[format_item_label(d) for d in accepted],
        accepted=accepted,
    )
