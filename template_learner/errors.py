"""Exceptions raised by the template learner."""


class TemplateLearningError(Exception):
    """Base class for template learning failures."""


class ConfigurationError(TemplateLearningError):
    """Invalid or unreadable configuration."""


class StoryNotFoundError(TemplateLearningError):
    """A requested story does not exist in the source."""

    def __init__(self, story_id: str):
        super().__init__(f"Story {story_id} not found")
        self.story_id = story_id


class EmptyStoryError(TemplateLearningError):
    """A story has no child tasks to learn from."""

    def __init__(self, story_id: str):
        super().__init__(f"Story {story_id} has no child tasks to learn from")
        self.story_id = story_id


class NoAnalyzableStoriesError(TemplateLearningError):
    """Every requested story was skipped."""

    def __init__(self, skipped):
        reasons = "; ".join(f"{s.story_id}: {s.reason}" for s in skipped)
        super().__init__(f"No stories could be analyzed ({reasons})" if reasons else "No stories to analyze")
        self.skipped = list(skipped)
