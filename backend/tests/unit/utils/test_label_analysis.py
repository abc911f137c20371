#!/usr/bin/env python3
"""
Unit tests for the pest label heuristic.

Covers keyword matching, the armyworm sentinel, the score-threshold fallback
and the confidence → infestation level step function.
"""

import pytest

from pestscan.constants import FALL_ARMYWORM_SENTINEL, UNKNOWN_PEST_SENTINEL
from pestscan.enums import InfestationLevel
from pestscan.models.classification_model import LabelScore
from pestscan.services.inference_pipeline.label_analysis import (
    analyze_pest_labels,
    determine_infestation_level,
)


def labels(*pairs):
    return [LabelScore(label=label, score=score) for label, score in pairs]


@pytest.mark.unit
class TestAnalyzePestLabels:
    """Test suite for analyze_pest_labels."""

    # ============================================================================
    # KEYWORD MATCHES
    # ============================================================================

    def test_worm_and_beetle_labels(self):
        """Both matches are kept, the armyworm sentinel is added, top score wins."""
        is_pest, pest_types, confidence = analyze_pest_labels(
            labels(("army worm", 0.5), ("ground beetle", 0.2), ("soil", 0.1))
        )

        assert is_pest is True
        assert "army worm" in pest_types
        assert "ground beetle" in pest_types
        assert FALL_ARMYWORM_SENTINEL in pest_types
        assert confidence == pytest.approx(50.0)

    def test_keyword_match_is_case_insensitive(self):
        is_pest, pest_types, confidence = analyze_pest_labels(
            labels(("Monarch BUTTERFLY", 0.9))
        )

        assert is_pest is True
        assert pest_types == ["Monarch BUTTERFLY"]
        assert confidence == pytest.approx(90.0)

    def test_label_matching_several_keywords_added_once(self):
        """'bug' and 'ant' both match; the label still appears once."""
        _, pest_types, _ = analyze_pest_labels(labels(("giant bug", 0.4)))

        assert pest_types == ["giant bug"]

    def test_sentinel_added_once_for_many_larvae(self):
        _, pest_types, _ = analyze_pest_labels(
            labels(("caterpillar", 0.6), ("larva", 0.2), ("inchworm", 0.1))
        )

        assert pest_types.count(FALL_ARMYWORM_SENTINEL) == 1
        assert pest_types[0] == "caterpillar"

    def test_low_scoring_keyword_match_is_still_pest(self):
        is_pest, pest_types, confidence = analyze_pest_labels(labels(("aphid", 0.05)))

        assert is_pest is True
        assert pest_types == ["aphid"]
        assert confidence == pytest.approx(5.0)

    # ============================================================================
    # THRESHOLD FALLBACK
    # ============================================================================

    def test_no_match_below_threshold_is_not_pest(self):
        is_pest, pest_types, confidence = analyze_pest_labels(
            labels(("teapot", 0.3), ("golden retriever", 0.2))
        )

        assert is_pest is False
        assert pest_types == []
        assert confidence == 0.0

    def test_no_match_above_threshold_is_unknown_pest(self):
        is_pest, pest_types, confidence = analyze_pest_labels(
            labels(("teapot", 0.75), ("golden retriever", 0.1))
        )

        assert is_pest is True
        assert pest_types == [UNKNOWN_PEST_SENTINEL]
        assert confidence == pytest.approx(75.0)

    def test_empty_labels(self):
        assert analyze_pest_labels([]) == (False, [], 0.0)


@pytest.mark.unit
class TestDetermineInfestationLevel:
    """Test suite for the confidence step function."""

    @pytest.mark.parametrize("confidence", [0.0, 39.9, 60.0, 80.0, 100.0])
    def test_not_pest_is_always_none(self, confidence):
        assert determine_infestation_level(False, confidence) == InfestationLevel.NONE

    @pytest.mark.parametrize(
        "confidence, expected",
        [
            (100.0, InfestationLevel.CRITICAL),
            (80.0, InfestationLevel.CRITICAL),
            (79.9, InfestationLevel.HIGH),
            (60.0, InfestationLevel.HIGH),
            (59.9, InfestationLevel.MODERATE),
            (40.0, InfestationLevel.MODERATE),
            (39.9, InfestationLevel.LOW),
            (0.0, InfestationLevel.LOW),
        ],
    )
    def test_pest_levels(self, confidence, expected):
        assert determine_infestation_level(True, confidence) == expected

    def test_levels_are_ordered(self):
        assert (
            InfestationLevel.NONE
            < InfestationLevel.LOW
            < InfestationLevel.MODERATE
            < InfestationLevel.HIGH
            < InfestationLevel.CRITICAL
        )
