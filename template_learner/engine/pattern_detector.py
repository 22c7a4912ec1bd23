"""Detects recurring task patterns across example stories."""

import logging
from collections import Counter
from typing import Dict, List, Optional, Sequence

from ..models.learning import (
    CommonTaskPattern,
    EstimationPattern,
    EstimationStyle,
    PatternDetectionResult,
    TaskOccurrence,
)
from ..models.story import StoryAnalysis
from ..utils.stats import mean, population_std_dev
from .similarity import SimilarityEngine

logger = logging.getLogger(__name__)

DEFAULT_ACTIVITY = "Development"
DEFAULT_REPORTING_THRESHOLD = 0.6

# Story-point scales people actually use
POINT_VALUES = frozenset([1, 2, 3, 5, 8, 13, 21, 34])
PERCENTAGE_SUM_TOLERANCE = 0.1


def flatten_tasks(analyses: Sequence[StoryAnalysis], engine: SimilarityEngine) -> List[TaskOccurrence]:
    """Every derived task of every example, tagged with its story."""
    occurrences = []
    for analysis in analyses:
        for task in analysis.template.tasks:
            occurrences.append(TaskOccurrence(
                normalized_title=engine.normalize_title(task.title),
                original_title=task.title,
                estimation_percent=task.estimation_percent or 0,
                activity=task.activity or DEFAULT_ACTIVITY,
                story_id=analysis.story_id,
                task=task,
            ))
    return occurrences


def pick_canonical_title(titles: Sequence[str]) -> str:
    """Most frequent title; the longest wins a tie."""
    if not titles:
        return ""
    counts = Counter(titles)
    best = titles[0]
    best_count = 0
    for title, count in counts.items():
        if count > best_count or (count == best_count and len(title) > len(best)):
            best = title
            best_count = count
    return best


def most_common_activity(activities: Sequence[str]) -> str:
    """Most frequent activity; first seen wins a tie."""
    best = DEFAULT_ACTIVITY
    best_count = 0
    for activity, count in Counter(activities).items():
        if count > best_count:
            best = activity
            best_count = count
    return best


def classify_estimation_style(
    parent_estimation: Optional[float],
    task_estimations: Sequence[Optional[float]],
) -> Optional[EstimationStyle]:
    """Guess how one story's tasks were estimated; None without a parent estimation."""
    if not parent_estimation or parent_estimation <= 0:
        return None

    values = [value for value in task_estimations if value and value > 0]
    if not values:
        return EstimationStyle.PERCENTAGE

    all_fractions = all(value <= 1 for value in values)
    sums_to_one = abs(sum(values) - 1) < PERCENTAGE_SUM_TOLERANCE

    if all_fractions and sums_to_one:
        return EstimationStyle.PERCENTAGE
    if all(value in POINT_VALUES for value in values):
        return EstimationStyle.POINTS
    return EstimationStyle.HOURS


class PatternDetector:
    """Clusters tasks across stories and summarizes the recurring ones."""

    def __init__(self, config: Optional[Dict] = None, engine: Optional[SimilarityEngine] = None):
        """Initialize detector with configuration."""
        self.config = config or {}
        self.engine = engine or SimilarityEngine(self.config)
        self.threshold = self.config.get('similarity', {}).get(
            'reporting_threshold', DEFAULT_REPORTING_THRESHOLD
        )

    def detect(self, analyses: Sequence[StoryAnalysis]) -> PatternDetectionResult:
        """Detect common tasks, activity mix, task counts and estimation style."""
        if not analyses:
            return PatternDetectionResult(
                common_tasks=[],
                activity_distribution={},
                average_task_count=0,
                task_count_std_dev=0,
                estimation_pattern=EstimationPattern(
                    detected_style=EstimationStyle.MIXED,
                    average_total_estimation=0,
                    is_consistent=False,
                ),
            )

        common_tasks = self.find_common_tasks(analyses)
        task_counts = [len(analysis.tasks) for analysis in analyses]

        logger.debug(
            "Detected %d task patterns across %d stories", len(common_tasks), len(analyses)
        )

        return PatternDetectionResult(
            common_tasks=common_tasks,
            activity_distribution=self.activity_distribution(analyses),
            average_task_count=round(mean(task_counts), 2),
            task_count_std_dev=population_std_dev(task_counts),
            estimation_pattern=self.detect_estimation_pattern(analyses),
        )

    def find_common_tasks(self, analyses: Sequence[StoryAnalysis]) -> List[CommonTaskPattern]:
        """One pattern per cluster of similar task titles."""
        total_stories = len(analyses)
        occurrences = flatten_tasks(analyses, self.engine)
        clusters = self.engine.cluster_items(
            occurrences, lambda occurrence: occurrence.normalized_title, self.threshold
        )

        patterns = []
        for cluster in clusters:
            titles = [occurrence.original_title for occurrence in cluster]
            estimations = [occurrence.estimation_percent for occurrence in cluster]
            story_ids = {occurrence.story_id for occurrence in cluster}

            patterns.append(CommonTaskPattern(
                canonical_title=pick_canonical_title(titles),
                title_variants=list(dict.fromkeys(titles)),
                frequency=len(story_ids),
                frequency_ratio=len(story_ids) / total_stories,
                average_estimation_percent=round(mean(estimations), 2),
                estimation_std_dev=population_std_dev(estimations),
                activity=most_common_activity([occurrence.activity for occurrence in cluster]),
            ))

        return patterns

    def activity_distribution(self, analyses: Sequence[StoryAnalysis]) -> Dict[str, float]:
        """Percentage of all tasks per activity."""
        counts: Counter = Counter()
        for analysis in analyses:
            for task in analysis.template.tasks:
                counts[task.activity or DEFAULT_ACTIVITY] += 1

        total = sum(counts.values())
        if total == 0:
            return {}
        return {activity: round(count / total * 100, 2) for activity, count in counts.items()}

    def detect_estimation_pattern(self, analyses: Sequence[StoryAnalysis]) -> EstimationPattern:
        """Aggregate per-story estimation styles into one verdict."""
        totals = []
        styles = []

        for analysis in analyses:
            parent_estimation = analysis.story.estimation or 0
            totals.append(parent_estimation)
            style = classify_estimation_style(
                parent_estimation, [task.estimation for task in analysis.tasks]
            )
            if style is not None:
                styles.append(style)

        unique_styles = list(dict.fromkeys(styles))
        if len(unique_styles) == 1:
            detected = unique_styles[0]
            consistent = True
        else:
            # No classifiable story is no evidence of a shared convention either
            detected = EstimationStyle.MIXED
            consistent = False

        return EstimationPattern(
            detected_style=detected,
            average_total_estimation=round(mean(totals), 2),
            is_consistent=consistent,
        )
