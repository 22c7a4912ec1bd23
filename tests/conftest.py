"""Shared builders for template learner tests."""

import pytest

from template_learner.analysis.story_analyzer import StoryAnalyzer
from template_learner.models.story import WorkItem
from template_learner.utils.config import get_default_config, merge_config


@pytest.fixture
def config():
    """Default configuration with exact (unnormalized) task shares."""
    return merge_config(get_default_config(), {'learning': {'normalize_percentages': False}})


@pytest.fixture
def make_story():
    """Factory: make_story('S1', [('Write tests', 4)], estimation=8) -> (story, tasks)."""

    def _make(story_id, tasks, estimation=None, title=None, tags=None):
        story = WorkItem(
            id=story_id,
            title=title or f"Story {story_id} feature",
            estimation=estimation,
            tags=list(tags or []),
        )
        children = []
        for position, entry in enumerate(tasks):
            task_title, task_estimation = entry[0], entry[1]
            priority = entry[2] if len(entry) > 2 else None
            children.append(WorkItem(
                id=f"{story_id}-T{position + 1}",
                title=task_title,
                type="Task",
                estimation=task_estimation,
                priority=priority,
                parent_id=story_id,
            ))
        return story, children

    return _make


@pytest.fixture
def analyze(config, make_story):
    """Factory returning a StoryAnalysis built with the test config."""
    analyzer = StoryAnalyzer(config)

    def _analyze(story_id, tasks, estimation=None, **kwargs):
        story, children = make_story(story_id, tasks, estimation=estimation, **kwargs)
        return analyzer.analyze(story, children)

    return _analyze


@pytest.fixture
def one_off_batch(analyze):
    """Three consistent hour-estimated stories; the third has one extra task."""
    return [
        analyze("S1", [("Implement API", 4), ("Write tests", 4)], estimation=8),
        analyze("S2", [("Implement API", 4), ("Write tests", 4)], estimation=8),
        analyze("S3", [("Implement API", 4), ("Write tests", 4), ("Fix typo", 0.4)], estimation=8),
    ]
