"""Merges equivalent tasks from several stories into one task list."""

import logging
from typing import Dict, List, Optional, Sequence

from ..models.learning import MergedTask, PatternDetectionResult, TaskSource
from ..models.story import StoryAnalysis, TaskDefinition
from ..utils.stats import mean, round_half_up
from ..utils.text import slugify_task_id
from .pattern_detector import flatten_tasks, most_common_activity, pick_canonical_title
from .similarity import SimilarityEngine

logger = logging.getLogger(__name__)

DEFAULT_CONSOLIDATION_THRESHOLD = 0.45


class TaskMerger:
    """Reclusters raw tasks at a looser threshold and averages each cluster."""

    def __init__(self, config: Optional[Dict] = None, engine: Optional[SimilarityEngine] = None):
        """Initialize merger with configuration."""
        self.config = config or {}
        self.engine = engine or SimilarityEngine(self.config)
        self.threshold = self.config.get('similarity', {}).get(
            'consolidation_threshold', DEFAULT_CONSOLIDATION_THRESHOLD
        )

    def merge(
        self,
        analyses: Sequence[StoryAnalysis],
        patterns: Optional[PatternDetectionResult] = None,
    ) -> List[MergedTask]:
        """Build one merged task per cluster, broadest first.

        ``patterns`` is accepted for interface symmetry; clustering is
        independent of the detector's reporting clusters.
        """
        if not analyses:
            return []

        occurrences = flatten_tasks(analyses, self.engine)
        clusters = self.engine.cluster_items(
            occurrences, lambda occurrence: occurrence.normalized_title, self.threshold
        )

        merged_tasks = []
        used_ids = set()
        for index, cluster in enumerate(clusters):
            tasks = [occurrence.task for occurrence in cluster]
            canonical_title = pick_canonical_title([task.title for task in tasks])
            priorities = [task.priority for task in tasks if task.priority is not None]
            tags = self._merge_tags([task.tags or [] for task in tasks])

            task = TaskDefinition(
                id=self._unique_id(slugify_task_id(canonical_title, index), used_ids),
                title=canonical_title,
                estimation_percent=int(round_half_up(mean(
                    [occurrence.estimation_percent for occurrence in cluster]
                ))),
                activity=most_common_activity([occurrence.activity for occurrence in cluster]),
                tags=tags or None,
                priority=int(round_half_up(mean(priorities))) if priorities else None,
            )

            merged_tasks.append(MergedTask(
                task=task,
                sources=[
                    TaskSource(story_id=occurrence.story_id, task_title=occurrence.original_title)
                    for occurrence in cluster
                ],
                similarity=self.engine.group_similarity(
                    [occurrence.normalized_title for occurrence in cluster]
                ),
            ))

        logger.debug(
            "Merged %d tasks into %d", len(occurrences), len(merged_tasks)
        )

        return self.order(merged_tasks)

    @staticmethod
    def order(merged_tasks: List[MergedTask]) -> List[MergedTask]:
        """Most stories first, then largest share; stable for full ties."""
        return sorted(
            merged_tasks,
            key=lambda merged: (-merged.story_count, -(merged.task.estimation_percent or 0)),
        )

    @staticmethod
    def _merge_tags(tag_lists: Sequence[Sequence[str]]) -> List[str]:
        merged: Dict[str, None] = {}
        for tags in tag_lists:
            for tag in tags:
                merged.setdefault(tag, None)
        return list(merged)

    @staticmethod
    def _unique_id(task_id: str, used_ids: set) -> str:
        candidate = task_id
        suffix = 2
        while candidate in used_ids:
            candidate = f"{task_id}-{suffix}"
            suffix += 1
        used_ids.add(candidate)
        return candidate
