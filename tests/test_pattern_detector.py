"""Tests for cross-story pattern detection."""

import pytest

from template_learner.engine.pattern_detector import (
    PatternDetector,
    classify_estimation_style,
    pick_canonical_title,
)
from template_learner.models.learning import EstimationStyle


def test_identical_stories_yield_one_pattern_per_task(analyze, config):
    tasks = [("Design API contract", 2), ("Implement backend endpoint", 6), ("Write unit tests", 2)]
    analyses = [analyze(f"S{i}", tasks, estimation=10) for i in range(1, 5)]

    result = PatternDetector(config).detect(analyses)

    assert len(result.common_tasks) == 3
    for pattern in result.common_tasks:
        assert pattern.frequency == 4
        assert pattern.frequency_ratio == 1.0
        assert pattern.estimation_std_dev == 0
    assert result.average_task_count == 3
    assert result.task_count_std_dev == 0


def test_frequency_counts_distinct_stories(analyze, config):
    analyses = [
        analyze("S1", [("Write unit tests", 2), ("Write unit test", 2)], estimation=4),
        analyze("S2", [("Deploy to staging", 4)], estimation=4),
    ]

    result = PatternDetector(config).detect(analyses)

    tests_pattern = next(p for p in result.common_tasks if "unit" in p.canonical_title)
    assert tests_pattern.frequency == 1
    assert tests_pattern.frequency_ratio == 0.5
    assert tests_pattern.title_variants == ["Write unit tests", "Write unit test"]


def test_detect_without_stories():
    result = PatternDetector().detect([])
    assert result.common_tasks == []
    assert result.estimation_pattern.detected_style == EstimationStyle.MIXED
    assert result.estimation_pattern.is_consistent is False


def test_activity_distribution(analyze, config):
    analyses = [analyze("S1", [("Design API", 1), ("Write tests", 1), ("Build form", 1), ("Build API", 1)], estimation=4)]
    distribution = PatternDetector(config).activity_distribution(analyses)
    assert distribution == {"Design": 25.0, "Testing": 25.0, "Development": 50.0}


@pytest.mark.parametrize("parent, tasks, expected", [
    (None, [4, 4], None),
    (0, [4, 4], None),
    (1, [0.5, 0.3, 0.2], EstimationStyle.PERCENTAGE),
    (1, [0.5, 0.45], EstimationStyle.PERCENTAGE),
    (10, [0, None], EstimationStyle.PERCENTAGE),
    (13, [5, 8], EstimationStyle.POINTS),
    (18, [4, 6, 8], EstimationStyle.HOURS),
    (8, [4, 4, 0.4], EstimationStyle.HOURS),
])
def test_classify_estimation_style(parent, tasks, expected):
    assert classify_estimation_style(parent, tasks) == expected


def test_mixed_estimation_styles_are_inconsistent(analyze, config):
    analyses = [
        analyze("P1", [("Design", 0.5), ("Build", 0.3), ("Test", 0.2)], estimation=1),
        analyze("P2", [("Design", 0.5), ("Build", 0.3), ("Test", 0.2)], estimation=1),
        analyze("H1", [("Design", 4), ("Build", 6), ("Test", 8)], estimation=18),
    ]

    pattern = PatternDetector(config).detect_estimation_pattern(analyses)

    assert pattern.detected_style == EstimationStyle.MIXED
    assert pattern.is_consistent is False


def test_unclassifiable_stories_are_mixed(analyze, config):
    analyses = [analyze("S1", [("Build", None)]), analyze("S2", [("Build", None)])]
    pattern = PatternDetector(config).detect_estimation_pattern(analyses)
    assert pattern.detected_style == EstimationStyle.MIXED
    assert pattern.is_consistent is False


def test_pick_canonical_title_prefers_frequent_then_longest():
    assert pick_canonical_title(["Unit tests", "Write unit tests", "Unit tests"]) == "Unit tests"
    assert pick_canonical_title(["Unit tests", "Write unit tests"]) == "Write unit tests"
    assert pick_canonical_title([]) == ""
