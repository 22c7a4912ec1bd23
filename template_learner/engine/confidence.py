"""Confidence scoring for learned templates."""

import math
from typing import Dict, List, Optional, Sequence

from ..models.learning import (
    ConfidenceFactor,
    ConfidenceLevel,
    ConfidenceScore,
    MergedTask,
    Outlier,
    PatternDetectionResult,
)
from ..models.story import StoryAnalysis
from ..utils.stats import mean, round_half_up
from .outlier_detector import OutlierDetector

DEFAULT_WEIGHTS = {
    'sample_size': 0.25,
    'estimation_consistency': 0.15,
    'pattern_strength': 0.25,
    'outlier_density': 0.15,
    'merge_quality': 0.1,
    'estimation_coverage': 0.1,
}
DEFAULT_SAMPLE_SATURATION = 5
DEFAULT_INCONSISTENT_ESTIMATION_SCORE = 30
DEFAULT_SMALL_SAMPLE_PENALTY = {1: 0.5, 2: 0.25, 3: 0.1, 4: 0.05}
DEFAULT_HIGH_THRESHOLD = 80
DEFAULT_MEDIUM_THRESHOLD = 50


class ConfidenceScorer:
    """Combines normalized 0-100 factors into one weighted score.

    Factors:
        sample_size: ``100 * ln(1 + n) / ln(1 + saturation)``, capped at 100,
            so each extra story helps less than the previous one.
        estimation_consistency: 100 when every story used the same
            estimation convention, a fixed lower score otherwise.
        pattern_strength: mean frequency ratio of the patterns that recur
            in at least two stories.
        outlier_density: share of stories not implicated in any outlier.
        merge_quality: 60 * merge_ratio + 40 * mean cohesion, where
            merge_ratio = 1 - merged tasks / raw tasks.
        estimation_coverage: share of raw tasks with a positive share.

    overall = weighted mean of the factors minus a small-sample penalty of
    ``(100 - sample_size) * penalty[n]``. Levels: high >= 80, medium >= 50.
    """

    def __init__(self, config: Optional[Dict] = None, outlier_detector: Optional[OutlierDetector] = None):
        """Initialize scorer with the 'confidence' config section."""
        self.config = config or {}
        confidence_config = self.config.get('confidence', {})
        self.weights = {**DEFAULT_WEIGHTS, **confidence_config.get('weights', {})}
        self.sample_saturation = confidence_config.get('sample_saturation', DEFAULT_SAMPLE_SATURATION)
        self.inconsistent_estimation_score = confidence_config.get(
            'inconsistent_estimation_score', DEFAULT_INCONSISTENT_ESTIMATION_SCORE
        )
        penalty = confidence_config.get('small_sample_penalty', DEFAULT_SMALL_SAMPLE_PENALTY)
        self.small_sample_penalty = {int(count): float(extra) for count, extra in penalty.items()}
        self.high_threshold = confidence_config.get('high_threshold', DEFAULT_HIGH_THRESHOLD)
        self.medium_threshold = confidence_config.get('medium_threshold', DEFAULT_MEDIUM_THRESHOLD)
        self.outlier_detector = outlier_detector or OutlierDetector(self.config)

    def score(
        self,
        analyses: Sequence[StoryAnalysis],
        patterns: PatternDetectionResult,
        merged_tasks: Sequence[MergedTask],
        outliers: Optional[Sequence[Outlier]] = None,
    ) -> ConfidenceScore:
        """Score how trustworthy a template built from these stories is."""
        if outliers is None:
            outliers = self.outlier_detector.detect(analyses, patterns)

        sample_size = self.score_sample_size(len(analyses))
        factors = [
            sample_size,
            self.score_estimation_consistency(patterns),
            self.score_pattern_strength(patterns, merged_tasks),
            self.score_outlier_density(analyses, outliers),
            self.score_merge_quality(analyses, merged_tasks),
            self.score_estimation_coverage(analyses),
        ]
        return self.calculate_overall(factors, sample_size, len(analyses))

    def score_sample_size(self, count: int) -> ConfidenceFactor:
        if count <= 0:
            score = 0
        else:
            ratio = math.log1p(count) / math.log1p(self.sample_saturation)
            score = int(round_half_up(100 * min(1.0, ratio)))

        return ConfidenceFactor(
            name="Sample Size",
            score=score,
            weight=self.weights['sample_size'],
            description=f"Based on {count} {'story' if count == 1 else 'stories'} analyzed",
        )

    def score_estimation_consistency(self, patterns: PatternDetectionResult) -> ConfidenceFactor:
        estimation = patterns.estimation_pattern
        if estimation.is_consistent:
            score = 100
            description = f"All stories estimated in {estimation.detected_style.value}"
        else:
            score = self.inconsistent_estimation_score
            description = "Stories use different estimation styles"

        return ConfidenceFactor(
            name="Estimation Consistency",
            score=score,
            weight=self.weights['estimation_consistency'],
            description=description,
        )

    def score_pattern_strength(
        self,
        patterns: PatternDetectionResult,
        merged_tasks: Sequence[MergedTask],
    ) -> ConfidenceFactor:
        recurring = [pattern for pattern in patterns.common_tasks if pattern.frequency >= 2]
        if not recurring:
            return ConfidenceFactor(
                name="Pattern Strength",
                score=0,
                weight=self.weights['pattern_strength'],
                description="No task recurs across stories",
            )

        score = int(round_half_up(mean([pattern.frequency_ratio for pattern in recurring]) * 100))
        shared = sum(1 for merged in merged_tasks if merged.story_count >= 2)

        return ConfidenceFactor(
            name="Pattern Strength",
            score=score,
            weight=self.weights['pattern_strength'],
            description=(
                f"{len(recurring)} recurring patterns, {shared} of {len(merged_tasks)} "
                f"merged tasks shared by several stories"
            ),
        )

    def score_outlier_density(
        self,
        analyses: Sequence[StoryAnalysis],
        outliers: Sequence[Outlier],
    ) -> ConfidenceFactor:
        story_ids = {analysis.story_id for analysis in analyses}
        implicated = {outlier.story_id for outlier in outliers} & story_ids

        if not story_ids:
            score = 0
        else:
            score = int(round_half_up(100 * (1 - len(implicated) / len(story_ids))))

        return ConfidenceFactor(
            name="Outlier Density",
            score=score,
            weight=self.weights['outlier_density'],
            description=f"{len(implicated)} of {len(story_ids)} stories flagged by outlier checks",
        )

    def score_merge_quality(
        self,
        analyses: Sequence[StoryAnalysis],
        merged_tasks: Sequence[MergedTask],
    ) -> ConfidenceFactor:
        if not merged_tasks:
            return ConfidenceFactor(
                name="Merge Quality",
                score=0,
                weight=self.weights['merge_quality'],
                description="No tasks to merge",
            )

        raw_count = sum(len(analysis.template.tasks) for analysis in analyses)
        merge_ratio = max(0.0, 1 - len(merged_tasks) / raw_count) if raw_count else 0.0
        cohesion = mean([merged.similarity for merged in merged_tasks])
        score = int(round_half_up(60 * merge_ratio + 40 * cohesion))

        return ConfidenceFactor(
            name="Merge Quality",
            score=score,
            weight=self.weights['merge_quality'],
            description=(
                f"{raw_count} tasks merged into {len(merged_tasks)}, "
                f"mean cohesion {cohesion:.2f}"
            ),
        )

    def score_estimation_coverage(self, analyses: Sequence[StoryAnalysis]) -> ConfidenceFactor:
        tasks = [task for analysis in analyses for task in analysis.template.tasks]
        estimated = sum(1 for task in tasks if (task.estimation_percent or 0) > 0)
        score = int(round_half_up(100 * estimated / len(tasks))) if tasks else 0

        return ConfidenceFactor(
            name="Estimation Coverage",
            score=score,
            weight=self.weights['estimation_coverage'],
            description=f"{estimated} of {len(tasks)} tasks carry an estimation share",
        )

    def calculate_overall(
        self,
        factors: List[ConfidenceFactor],
        sample_size: ConfidenceFactor,
        sample_count: int,
    ) -> ConfidenceScore:
        total_weight = sum(factor.weight for factor in factors)
        if total_weight <= 0:
            base = 0.0
        else:
            base = sum(factor.score * factor.weight for factor in factors) / total_weight

        extra = self.small_sample_penalty.get(sample_count, 0.0) if sample_count > 0 else 0.0
        penalty = (100 - sample_size.score) * extra
        overall = int(min(100, max(0, round_half_up(base - penalty))))

        if overall >= self.high_threshold:
            level = ConfidenceLevel.HIGH
        elif overall >= self.medium_threshold:
            level = ConfidenceLevel.MEDIUM
        else:
            level = ConfidenceLevel.LOW

        return ConfidenceScore(overall=overall, factors=factors, level=level)
