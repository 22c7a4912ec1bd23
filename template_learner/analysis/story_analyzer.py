"""Converts a story and its child tasks into a single-story template."""

import logging
import re
from typing import Dict, List, Optional, Sequence

from ..errors import EmptyStoryError
from ..models.story import (
    EstimationConfig,
    FilterCriteria,
    StoryAnalysis,
    TaskDefinition,
    TaskTemplate,
    WorkItem,
)
from ..utils.stats import round_half_up
from ..utils.text import slugify_task_id

logger = logging.getLogger(__name__)

TEMPLATE_AUTHOR = "template-learner"

_STORY_ID_PATTERN = re.compile(r"(?:Story-|#|STORY-)(\d+)", re.IGNORECASE)

# First match wins
ACTIVITY_KEYWORDS = [
    ("Design", re.compile(r"design|architect|plan|spec", re.IGNORECASE)),
    ("Testing", re.compile(r"test|qa|verify|validation", re.IGNORECASE)),
    ("Deployment", re.compile(r"deploy|release|publish", re.IGNORECASE)),
    ("Documentation", re.compile(r"document|readme|wiki", re.IGNORECASE)),
    ("Documentation", re.compile(r"review|\bpr\b", re.IGNORECASE)),
]


def extract_title_pattern(task_title: str, story_title: str) -> str:
    """Replace the parent's title or id inside a task title with placeholders."""
    if story_title and story_title in task_title:
        return task_title.replace(story_title, "${story.title}", 1)
    return _STORY_ID_PATTERN.sub("${story.id}", task_title)


def detect_activity(title: str, description: Optional[str] = None) -> str:
    """Guess the activity of a task from keywords in its text."""
    text = f"{title} {description or ''}"
    for activity, pattern in ACTIVITY_KEYWORDS:
        if pattern.search(text):
            return activity
    return "Development"


def normalize_percentages(tasks: List[TaskDefinition]) -> None:
    """Scale task shares in place so they sum to exactly 100."""
    if not tasks:
        return

    total = sum(task.estimation_percent or 0 for task in tasks)

    if total == 0:
        share = 100 // len(tasks)
        remainder = 100 - share * len(tasks)
        for index, task in enumerate(tasks):
            task.estimation_percent = share + remainder if index == 0 else share
    elif total != 100:
        scale = 100 / total
        running = 0
        for index, task in enumerate(tasks):
            if index == len(tasks) - 1:
                # Last task absorbs rounding drift
                task.estimation_percent = 100 - running
            else:
                scaled = int(round_half_up((task.estimation_percent or 0) * scale))
                task.estimation_percent = scaled
                running += scaled


class StoryAnalyzer:
    """Builds the per-story task list every learning step consumes."""

    def __init__(self, config: Optional[Dict] = None):
        """Initialize analyzer with configuration."""
        self.config = config or {}
        self.normalize = self.config.get('learning', {}).get('normalize_percentages', True)

    def analyze(self, story: WorkItem, tasks: Sequence[WorkItem]) -> StoryAnalysis:
        """Analyze one story; raises EmptyStoryError when it has no tasks."""
        if not tasks:
            raise EmptyStoryError(story.id)

        warnings = []
        story_estimation = story.estimation or 0

        if story_estimation <= 0:
            warnings.append(f"Story {story.id} has no estimation; task shares cannot be derived")

        unestimated = [task.id for task in tasks if not task.estimation]
        if story_estimation > 0 and unestimated:
            warnings.append(f"{len(unestimated)} task(s) have no estimation: {', '.join(unestimated)}")

        definitions = [
            self._task_definition(story, task, index, story_estimation)
            for index, task in enumerate(tasks)
        ]

        raw_total = sum(definition.estimation_percent or 0 for definition in definitions)
        if story_estimation > 0 and raw_total != 100:
            warnings.append(f"Task estimations add up to {raw_total:g}% of the story")

        if self.normalize:
            normalize_percentages(definitions)
        else:
            logger.debug("Skipping percentage normalization for story %s", story.id)

        template = TaskTemplate(
            name=f"Template learned from {story.id}",
            description=f"Auto-generated template based on {story.type}: {story.title}",
            author=TEMPLATE_AUTHOR,
            filter=FilterCriteria(
                work_item_types=[story.type],
                tags_include=list(story.tags),
            ),
            tasks=definitions,
            estimation=EstimationConfig(default_parent_estimation=story_estimation),
        )

        logger.debug("Analyzed story %s: %d tasks, %d warnings", story.id, len(tasks), len(warnings))

        return StoryAnalysis(story=story, tasks=list(tasks), template=template, warnings=warnings)

    def _task_definition(
        self,
        story: WorkItem,
        task: WorkItem,
        index: int,
        story_estimation: float,
    ) -> TaskDefinition:
        estimation_percent = 0
        if story_estimation > 0:
            estimation_percent = int(round_half_up((task.estimation or 0) / story_estimation * 100))

        return TaskDefinition(
            id=slugify_task_id(task.title, index),
            title=extract_title_pattern(task.title, story.title),
            description=task.description,
            estimation_percent=estimation_percent,
            activity=detect_activity(task.title, task.description),
            tags=list(task.tags) or None,
            priority=task.priority,
        )
