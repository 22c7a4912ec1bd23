"""Multi-story learning orchestration."""

import asyncio
import dataclasses
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from ..analysis.story_analyzer import StoryAnalyzer, normalize_percentages
from ..errors import NoAnalyzableStoriesError, StoryNotFoundError, TemplateLearningError
from ..models.learning import (
    ConfidenceLevel,
    ConfidenceScore,
    MergedTask,
    MultiStoryLearningResult,
    Outlier,
    OutlierKind,
    PatternDetectionResult,
    SuggestionKind,
    SuggestionSeverity,
    TemplateSuggestion,
    TemplateVariation,
)
from ..models.story import (
    EstimationConfig,
    FilterCriteria,
    SkippedStory,
    StoryAnalysis,
    TaskDefinition,
    TaskTemplate,
)
from ..sources.base import WorkItemSource
from ..utils.stats import mean
from .confidence import ConfidenceScorer
from .outlier_detector import OutlierDetector
from .pattern_detector import PatternDetector
from .similarity import SimilarityEngine
from .task_merger import TaskMerger

logger = logging.getLogger(__name__)

DEFAULT_CORE_RATIO = 0.6
MIN_RECOMMENDED_STORIES = 3
NAMING_VARIANT_LIMIT = 2
NAMING_FREQUENCY_RATIO = 0.5


class MultiStoryLearner:
    """Learns one template from several example stories."""

    def __init__(self, source: Optional[WorkItemSource] = None, config: Optional[Dict] = None):
        """Initialize learner with a work-item source and configuration."""
        self.source = source
        self.config = config or {}
        self.learning_config = self.config.get('learning', {})
        self.fetch_timeout = self.learning_config.get('fetch_timeout_seconds')
        self.core_ratio = self.config.get('variations', {}).get('core_ratio', DEFAULT_CORE_RATIO)
        self.common_task_threshold = self.config.get('outliers', {}).get('common_task_threshold', 0.8)

        self.engine = SimilarityEngine(self.config)
        self.analyzer = StoryAnalyzer(self.config)
        self.pattern_detector = PatternDetector(self.config, self.engine)
        self.task_merger = TaskMerger(self.config, self.engine)
        self.outlier_detector = OutlierDetector(self.config, self.engine)
        self.scorer = ConfidenceScorer(self.config, self.outlier_detector)

    async def learn_from_story(self, story_id: str) -> StoryAnalysis:
        """Fetch and analyze a single story."""
        if self.source is None:
            raise TemplateLearningError("No work-item source configured")

        story = await self.source.get_work_item(story_id)
        if story is None:
            raise StoryNotFoundError(story_id)

        tasks = await self.source.get_children(story_id)
        logger.debug("Story %s has %d child tasks", story_id, len(tasks))
        return self.analyzer.analyze(story, tasks)

    async def _learn_with_timeout(self, story_id: str) -> StoryAnalysis:
        if self.fetch_timeout:
            return await asyncio.wait_for(self.learn_from_story(story_id), self.fetch_timeout)
        return await self.learn_from_story(story_id)

    async def learn_from_multiple(self, story_ids: Iterable[str]) -> MultiStoryLearningResult:
        """Analyze every story concurrently, then learn from the ones that worked."""
        unique_ids = list(dict.fromkeys(str(story_id) for story_id in story_ids))
        logger.info("Learning template from %d stories", len(unique_ids))

        results = await asyncio.gather(
            *(self._learn_with_timeout(story_id) for story_id in unique_ids),
            return_exceptions=True,
        )

        analyses: List[StoryAnalysis] = []
        skipped: List[SkippedStory] = []
        for story_id, result in zip(unique_ids, results):
            if isinstance(result, StoryAnalysis):
                analyses.append(result)
            elif isinstance(result, TemplateLearningError):
                skipped.append(SkippedStory(story_id, str(result)))
            elif isinstance(result, asyncio.TimeoutError):
                skipped.append(SkippedStory(story_id, f"Timed out after {self.fetch_timeout}s"))
            elif isinstance(result, Exception):
                logger.error("Failed to analyze story %s: %r", story_id, result)
                skipped.append(SkippedStory(story_id, f"{type(result).__name__}: {result}"))
            else:
                raise result

        return self.learn_from_analyses(analyses, skipped)

    def learn_from_analyses(
        self,
        analyses: Sequence[StoryAnalysis],
        skipped: Sequence[SkippedStory] = (),
    ) -> MultiStoryLearningResult:
        """Run detection, merging, outlier checks and scoring over analyzed stories."""
        skipped = list(skipped)
        accepted = []
        for analysis in analyses:
            if not analysis.tasks or not analysis.template.tasks:
                skipped.append(SkippedStory(
                    analysis.story_id,
                    f"Story {analysis.story_id} has no child tasks to learn from",
                ))
            else:
                accepted.append(analysis)

        for entry in skipped:
            logger.warning("Skipping story %s: %s", entry.story_id, entry.reason)

        if not accepted:
            raise NoAnalyzableStoriesError(skipped)

        patterns = self.pattern_detector.detect(accepted)
        merged_tasks = self.task_merger.merge(accepted, patterns)
        outliers = self.outlier_detector.detect(accepted, patterns)
        confidence = self.scorer.score(accepted, patterns, merged_tasks, outliers)

        merged_template = self.build_merged_template(accepted, [merged.task for merged in merged_tasks])

        logger.info(
            "Learned %d tasks from %d stories (confidence %d, %s)",
            len(merged_tasks), len(accepted), confidence.overall, confidence.level.value,
        )

        return MultiStoryLearningResult(
            analyses=accepted,
            skipped=skipped,
            merged_template=merged_template,
            patterns=patterns,
            confidence=confidence,
            suggestions=self.generate_suggestions(accepted, patterns, merged_tasks, confidence, outliers),
            variations=self.generate_variations(accepted, patterns, merged_tasks),
            outliers=outliers,
            merged_tasks=merged_tasks,
        )

    def build_merged_template(
        self,
        analyses: Sequence[StoryAnalysis],
        tasks: Sequence[TaskDefinition],
        name: Optional[str] = None,
    ) -> TaskTemplate:
        """Consensus template: given tasks plus filters unioned across stories."""
        story_ids = [analysis.story_id for analysis in analyses]
        work_item_types: Dict[str, None] = {}
        tags: Dict[str, None] = {}
        for analysis in analyses:
            for work_item_type in analysis.template.filter.work_item_types:
                work_item_types.setdefault(work_item_type, None)
            for tag in analysis.template.filter.tags_include:
                tags.setdefault(tag, None)

        estimations = [
            analysis.story.estimation for analysis in analyses
            if analysis.story.estimation and analysis.story.estimation > 0
        ]

        return TaskTemplate(
            name=name or f"Template learned from {len(analyses)} stories",
            description=f"Merged template based on stories: {', '.join(story_ids)}",
            author=analyses[0].template.author if analyses else None,
            filter=FilterCriteria(
                work_item_types=list(work_item_types),
                tags_include=list(tags),
            ),
            tasks=list(tasks),
            estimation=EstimationConfig(
                default_parent_estimation=round(mean(estimations), 2) if estimations else None,
            ),
            metadata={'examples': story_ids},
        )

    def generate_suggestions(
        self,
        analyses: Sequence[StoryAnalysis],
        patterns: PatternDetectionResult,
        merged_tasks: Sequence[MergedTask],
        confidence: ConfidenceScore,
        outliers: Sequence[Outlier],
    ) -> List[TemplateSuggestion]:
        """Human-readable hints for improving the learned template."""
        suggestions = []

        if confidence.level == ConfidenceLevel.LOW and len(analyses) < MIN_RECOMMENDED_STORIES:
            suggestions.append(TemplateSuggestion(
                kind=SuggestionKind.ADD_STORIES,
                message=(
                    f"Only {len(analyses)} {'story was' if len(analyses) == 1 else 'stories were'} analyzed. "
                    f"Add at least {MIN_RECOMMENDED_STORIES} examples for a more reliable template."
                ),
                severity=SuggestionSeverity.IMPORTANT,
            ))

        if not patterns.estimation_pattern.is_consistent:
            suggestions.append(TemplateSuggestion(
                kind=SuggestionKind.ADJUST_ESTIMATION,
                message=(
                    "Stories use different estimation styles. Standardize estimation "
                    "(hours, points or percentages) so task shares are comparable."
                ),
                severity=SuggestionSeverity.WARNING,
            ))

        for outlier in outliers:
            if outlier.kind != OutlierKind.EXTRA_TASK:
                continue
            suggestions.append(TemplateSuggestion(
                kind=SuggestionKind.REMOVE_TASK,
                message=(
                    f'Consider removing "{outlier.task_title}": it only appears '
                    f"in story {outlier.story_id}."
                ),
                severity=SuggestionSeverity.INFO,
                task_id=self._task_id_for_title(outlier.task_title, merged_tasks),
            ))

        for outlier in outliers:
            if outlier.kind != OutlierKind.MISSING_TASK:
                continue
            suggestions.append(TemplateSuggestion(
                kind=SuggestionKind.ADD_TASK,
                message=(
                    f'Story {outlier.story_id} has no "{outlier.task_title}" task; '
                    f"check whether it was forgotten."
                ),
                severity=SuggestionSeverity.INFO,
                task_id=self._task_id_for_title(outlier.task_title, merged_tasks),
            ))

        for pattern in patterns.common_tasks:
            if len(pattern.title_variants) > NAMING_VARIANT_LIMIT and pattern.frequency_ratio >= NAMING_FREQUENCY_RATIO:
                variants = ", ".join(f'"{variant}"' for variant in pattern.title_variants)
                suggestions.append(TemplateSuggestion(
                    kind=SuggestionKind.IMPROVE_NAMING,
                    message=f'Standardize naming for "{pattern.canonical_title}" (seen as {variants}).',
                    severity=SuggestionSeverity.INFO,
                    task_id=self._task_id_for_title(pattern.canonical_title, merged_tasks),
                ))

        universal = [
            pattern for pattern in patterns.common_tasks
            if pattern.frequency_ratio >= self.common_task_threshold
        ]
        design = [pattern for pattern in universal if pattern.activity == "Design"]
        development = [pattern for pattern in universal if pattern.activity == "Development"]
        if design and development:
            suggestions.append(TemplateSuggestion(
                kind=SuggestionKind.ADD_DEPENDENCY,
                message=(
                    f'Consider adding an explicit dependency: "{development[0].canonical_title}" '
                    f'usually follows "{design[0].canonical_title}".'
                ),
                severity=SuggestionSeverity.INFO,
                task_id=self._task_id_for_title(development[0].canonical_title, merged_tasks),
            ))

        return suggestions

    def generate_variations(
        self,
        analyses: Sequence[StoryAnalysis],
        patterns: PatternDetectionResult,
        merged_tasks: Sequence[MergedTask],
    ) -> List[TemplateVariation]:
        """Core (broadly shared tasks only) and comprehensive (every task) templates."""
        total = len(analyses)
        core = [merged for merged in merged_tasks if merged.story_count >= self.core_ratio * total]

        core_tasks = [dataclasses.replace(merged.task) for merged in core]
        normalize_percentages(core_tasks)

        return [
            TemplateVariation(
                name="core",
                description=(
                    f"Tasks found in at least {self.core_ratio:.0%} of stories, "
                    f"shares rescaled to 100%"
                ),
                template=self.build_merged_template(analyses, core_tasks, name="Core template"),
                confidence=self._score_subset(analyses, patterns, core),
            ),
            TemplateVariation(
                name="comprehensive",
                description="Every merged task from all stories",
                template=self.build_merged_template(
                    analyses, [merged.task for merged in merged_tasks], name="Comprehensive template"
                ),
                confidence=self._score_subset(analyses, patterns, merged_tasks),
            ),
        ]

    def _score_subset(
        self,
        analyses: Sequence[StoryAnalysis],
        patterns: PatternDetectionResult,
        subset: Sequence[MergedTask],
    ) -> ConfidenceScore:
        # Only the patterns the subset still contains count towards its score
        titles = {source.task_title for merged in subset for source in merged.sources}
        kept = [
            pattern for pattern in patterns.common_tasks
            if titles.intersection(pattern.title_variants)
        ]
        subset_patterns = dataclasses.replace(patterns, common_tasks=kept)
        outliers = self.outlier_detector.detect(analyses, subset_patterns)
        return self.scorer.score(analyses, subset_patterns, subset, outliers)

    @staticmethod
    def _task_id_for_title(title: str, merged_tasks: Sequence[MergedTask]) -> Optional[str]:
        for merged in merged_tasks:
            if merged.task.title == title or any(source.task_title == title for source in merged.sources):
                return merged.task.id
        return None
