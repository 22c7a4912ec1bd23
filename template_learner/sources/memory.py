"""Dictionary-backed work-item source."""

import logging
from typing import Any, Dict, Iterable, List, Optional

from ..models.story import WorkItem
from .base import WorkItemSource

logger = logging.getLogger(__name__)


def parse_stories(records: Iterable[Dict[str, Any]]) -> Dict[str, tuple]:
    """Map story id -> (story, children) from records with nested 'children'."""
    stories = {}
    for record in records:
        record = dict(record)
        children = record.pop('children', None) or []
        story = WorkItem.from_dict(record)
        tasks = []
        for child in children:
            task = WorkItem.from_dict({'type': 'Task', **child})
            if task.parent_id is None:
                task.parent_id = story.id
            tasks.append(task)
        stories[story.id] = (story, tasks)
    return stories


class InMemorySource(WorkItemSource):
    """Serves stories held in memory; used by tests and the demo command."""

    def __init__(self, stories: Optional[Dict[str, tuple]] = None):
        """Initialize with a mapping of story id -> (story, children)."""
        self.stories: Dict[str, tuple] = dict(stories or {})

    @classmethod
    def from_records(cls, records: Iterable[Dict[str, Any]]) -> "InMemorySource":
        return cls(parse_stories(records))

    def add_story(self, story: WorkItem, children: List[WorkItem]) -> None:
        self.stories[story.id] = (story, list(children))

    def story_ids(self) -> List[str]:
        return list(self.stories)

    async def get_work_item(self, item_id: str) -> Optional[WorkItem]:
        entry = self.stories.get(item_id)
        if entry is None:
            logger.warning("%s: work item %s not found", self.get_source_name(), item_id)
            return None
        return entry[0]

    async def get_children(self, item_id: str) -> List[WorkItem]:
        entry = self.stories.get(item_id)
        return list(entry[1]) if entry else []

    def get_source_name(self) -> str:
        return "memory"
