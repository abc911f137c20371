# backend/pestscan/services/inference_pipeline/label_analysis.py
"""
Label Analysis Utilities

Pure functions that turn a classifier's label distribution into a pest
verdict. No model, image or I/O dependencies.
"""

from typing import Iterable, List, Tuple

from ...constants import (
    ARMYWORM_KEYWORDS,
    FALL_ARMYWORM_SENTINEL,
    INFESTATION_CRITICAL_THRESHOLD,
    INFESTATION_HIGH_THRESHOLD,
    INFESTATION_MODERATE_THRESHOLD,
    PEST_KEYWORDS,
    PEST_SCORE_THRESHOLD,
    UNKNOWN_PEST_SENTINEL,
)
from ...enums import InfestationLevel
from ...models.classification_model import LabelScore


def analyze_pest_labels(
    labels: Iterable[LabelScore],
) -> Tuple[bool, List[str], float]:
    """
    Match classifier labels against the pest keyword set.

    Each label matching a keyword is recorded once, and the highest score among
    matching labels becomes the confidence basis. Labels mentioning a
    caterpillar, larva or worm additionally flag a suspected Fall Armyworm.

    When no keyword matches, a top label scoring above PEST_SCORE_THRESHOLD
    still flags the image as an "Unknown pest" and its score becomes the
    confidence basis.

    Args:
        labels: Classifier output, any order

    Returns:
        Tuple of (is_pest, pest_types, confidence on a 0-100 scale)
    """
    pest_types: List[str] = []
    max_pest_score = 0.0
    max_any_score = 0.0

    for item in labels:
        lower_label = item.label.lower()
        max_any_score = max(max_any_score, item.score)

        for keyword in PEST_KEYWORDS:
            if keyword in lower_label:
                if item.label not in pest_types:
                    pest_types.append(item.label)
                if item.score > max_pest_score:
                    max_pest_score = item.score
                break

        if any(keyword in lower_label for keyword in ARMYWORM_KEYWORDS):
            if FALL_ARMYWORM_SENTINEL not in pest_types:
                pest_types.append(FALL_ARMYWORM_SENTINEL)

    if pest_types:
        return True, pest_types, max_pest_score * 100

    if max_any_score > PEST_SCORE_THRESHOLD:
        return True, [UNKNOWN_PEST_SENTINEL], max_any_score * 100

    return False, [], 0.0


def determine_infestation_level(is_pest: bool, confidence: float) -> InfestationLevel:
    """
    Step function from confidence (0-100) to infestation level.

    Returns NONE whenever is_pest is False, regardless of confidence.
    """
    if not is_pest:
        return InfestationLevel.NONE
    if confidence >= INFESTATION_CRITICAL_THRESHOLD:
        return InfestationLevel.CRITICAL
    if confidence >= INFESTATION_HIGH_THRESHOLD:
        return InfestationLevel.HIGH
    if confidence >= INFESTATION_MODERATE_THRESHOLD:
        return InfestationLevel.MODERATE
    return InfestationLevel.LOW
