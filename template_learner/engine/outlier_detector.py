"""Flags anomalous stories and tasks with median/MAD robust statistics."""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..models.learning import CommonTaskPattern, Outlier, OutlierKind, PatternDetectionResult
from ..models.story import StoryAnalysis
from ..utils.stats import median_absolute_deviation, modified_z_score, round_half_up, z_band
from .similarity import SimilarityEngine

logger = logging.getLogger(__name__)

DEFAULT_Z_THRESHOLD = 3.5
DEFAULT_COMMON_TASK_THRESHOLD = 0.8
DEFAULT_RARE_TASK_THRESHOLD = 0.2
DEFAULT_SINGLETON_MIN_STORIES = 3
DEFAULT_MATCH_THRESHOLD = 0.5


class OutlierDetector:
    """Detects estimation, task-count, missing-task and extra-task outliers.

    Estimation and task-count checks use the Modified Z-Score
    ``0.6745 * (v - median) / MAD``; a sample with MAD == 0 has no spread
    and yields no outliers.

    Missing and extra tasks are judged against the detector's patterns:
    a story lacking a task found in at least ``common_task_threshold`` of
    the stories is reported, as is any pattern backed by a single story.
    Single-story patterns count as rare when their ratio is below
    ``rare_task_threshold`` or, for small batches, as soon as at least
    ``singleton_min_stories`` stories were analyzed (with three stories a
    one-off already has ratio 0.33).
    """

    def __init__(self, config: Optional[Dict] = None, engine: Optional[SimilarityEngine] = None):
        """Initialize detector with the 'outliers' config section."""
        self.config = config or {}
        self.engine = engine or SimilarityEngine(self.config)
        outlier_config = self.config.get('outliers', {})
        self.z_threshold = outlier_config.get('z_threshold', DEFAULT_Z_THRESHOLD)
        self.common_task_threshold = outlier_config.get(
            'common_task_threshold', DEFAULT_COMMON_TASK_THRESHOLD
        )
        self.rare_task_threshold = outlier_config.get(
            'rare_task_threshold', DEFAULT_RARE_TASK_THRESHOLD
        )
        self.singleton_min_stories = outlier_config.get(
            'singleton_min_stories', DEFAULT_SINGLETON_MIN_STORIES
        )
        self.match_threshold = outlier_config.get('match_threshold', DEFAULT_MATCH_THRESHOLD)
        self.weight_severity_by_share = outlier_config.get('weight_severity_by_share', False)

    def detect(
        self,
        analyses: Sequence[StoryAnalysis],
        patterns: PatternDetectionResult,
    ) -> List[Outlier]:
        """Run every outlier check; fewer than two stories have nothing to compare."""
        if len(analyses) < 2:
            return []

        outliers = (
            self.detect_estimation_outliers(analyses)
            + self.detect_task_count_outliers(analyses)
            + self.detect_missing_common_tasks(analyses, patterns)
            + self.detect_extra_tasks(analyses, patterns)
        )

        if outliers:
            logger.info("Found %d outliers across %d stories", len(outliers), len(analyses))

        return outliers

    def detect_estimation_outliers(self, analyses: Sequence[StoryAnalysis]) -> List[Outlier]:
        """Stories whose total estimation is far from the batch median."""
        samples = [
            (analysis.story_id, float(analysis.story.estimation))
            for analysis in analyses
            if analysis.story.estimation and analysis.story.estimation > 0
        ]
        return self._robust_outliers(
            samples,
            OutlierKind.ESTIMATION,
            lambda story_id, value, low, high: (
                f"Story {story_id} has estimation {value:g} which is outside "
                f"the expected range [{low:g}, {high:g}]"
            ),
            digits=2,
        )

    def detect_task_count_outliers(self, analyses: Sequence[StoryAnalysis]) -> List[Outlier]:
        """Stories with unusually many or few tasks."""
        samples = [(analysis.story_id, float(len(analysis.tasks))) for analysis in analyses]
        return self._robust_outliers(
            samples,
            OutlierKind.TASK_COUNT,
            lambda story_id, value, low, high: (
                f"Story {story_id} has {value:g} tasks which is outside "
                f"the expected range [{low:g}, {high:g}]"
            ),
            digits=0,
        )

    def _robust_outliers(self, samples, kind: OutlierKind, describe, digits: int) -> List[Outlier]:
        if len(samples) < 2:
            return []

        center, mad = median_absolute_deviation([value for _, value in samples])
        if mad == 0:
            return []

        low, high = z_band(center, mad, self.z_threshold)
        expected_range: Tuple[float, float] = (round(low, digits), round(high, digits))
        if digits == 0:
            expected_range = (int(round_half_up(low)), int(round_half_up(high)))

        outliers = []
        for story_id, value in samples:
            z_score = abs(modified_z_score(value, center, mad))
            if z_score > self.z_threshold:
                outliers.append(Outlier(
                    kind=kind,
                    story_id=story_id,
                    message=describe(story_id, value, *expected_range),
                    value=value,
                    expected_range=expected_range,
                    severity=round(z_score / self.z_threshold, 2),
                ))
        return outliers

    def detect_missing_common_tasks(
        self,
        analyses: Sequence[StoryAnalysis],
        patterns: PatternDetectionResult,
    ) -> List[Outlier]:
        """Stories that lack a task nearly every other story has."""
        common = [
            pattern for pattern in patterns.common_tasks
            if pattern.frequency_ratio >= self.common_task_threshold
        ]
        if not common:
            return []

        outliers = []
        for analysis in analyses:
            titles = [self.engine.normalize_title(task.title) for task in analysis.template.tasks]

            for pattern in common:
                canonical = self.engine.normalize_title(pattern.canonical_title)
                if any(self.engine.similarity(title, canonical) >= self.match_threshold for title in titles):
                    continue

                outliers.append(Outlier(
                    kind=OutlierKind.MISSING_TASK,
                    story_id=analysis.story_id,
                    message=(
                        f'Story {analysis.story_id} is missing common task "{pattern.canonical_title}" '
                        f"(found in {round_half_up(pattern.frequency_ratio * 100):.0f}% of stories)"
                    ),
                    value=0,
                    expected_range=(1, 1),
                    severity=self._severity(pattern.frequency_ratio, pattern),
                    task_title=pattern.canonical_title,
                ))

        return outliers

    def detect_extra_tasks(
        self,
        analyses: Sequence[StoryAnalysis],
        patterns: PatternDetectionResult,
    ) -> List[Outlier]:
        """Patterns that only one story contains, likely story-specific noise."""
        total = len(analyses)
        outliers = []

        for pattern in patterns.common_tasks:
            if pattern.frequency != 1 or not self._is_rare(pattern, total):
                continue

            story_id = self._owning_story(analyses, pattern)
            outliers.append(Outlier(
                kind=OutlierKind.EXTRA_TASK,
                story_id=story_id,
                message=(
                    f'Task "{pattern.canonical_title}" only appears in story {story_id} '
                    f"and may be story-specific"
                ),
                value=pattern.frequency,
                expected_range=(2, total),
                severity=self._severity(1 - pattern.frequency_ratio, pattern),
                task_title=pattern.canonical_title,
            ))

        return outliers

    def _is_rare(self, pattern: CommonTaskPattern, total: int) -> bool:
        return pattern.frequency_ratio < self.rare_task_threshold or total >= self.singleton_min_stories

    def _severity(self, base: float, pattern: CommonTaskPattern) -> float:
        # Optional: scale by how much of the story the task represents
        if self.weight_severity_by_share:
            share = min(100.0, max(0.0, pattern.average_estimation_percent)) / 100
            base = base * (0.5 + 0.5 * share)
        return round(base, 2)

    @staticmethod
    def _owning_story(analyses: Sequence[StoryAnalysis], pattern: CommonTaskPattern) -> str:
        variants = set(pattern.title_variants) | {pattern.canonical_title}
        for analysis in analyses:
            if any(task.title in variants for task in analysis.template.tasks):
                return analysis.story_id
        return "unknown"
