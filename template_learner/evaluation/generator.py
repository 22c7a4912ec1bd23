"""Synthetic story generator for demos and evaluation."""

import random
from typing import Dict, List, Optional, Tuple

from ..models.story import WorkItem

# (canonical title, wording variants, share of the story, inclusion probability)
TASK_CATALOG = [
    ("Design API contract", ["Design API contract", "Design: API contract", "API contract design"], 0.15, 0.9),
    ("Implement backend endpoint", ["Implement backend endpoint", "Implement backend endpoints", "Build backend endpoint"], 0.35, 1.0),
    ("Implement frontend form", ["Implement frontend form", "Create frontend form"], 0.2, 0.8),
    ("Write unit tests", ["Write unit tests", "Write unit test", "Unit tests"], 0.15, 1.0),
    ("Code review", ["Code review", "Code review and fixes"], 0.1, 0.7),
    ("Deploy to staging", ["Deploy to staging", "Deploy on staging"], 0.05, 0.6),
]

ONE_OFF_TASKS = [
    "Fix typo in onboarding email",
    "Migrate legacy feature flags",
    "Spike: evaluate charting library",
    "Update vendor SDK",
]

STORY_TITLES = [
    "User login",
    "Profile page",
    "Payment checkout",
    "Search filters",
    "Notification settings",
    "Order history",
    "Password reset",
    "Team invitations",
]

POINT_SCALE = [1, 2, 3, 5, 8, 13]


class StoryGenerator:
    """Generates deterministic example stories with realistic noise."""

    def __init__(self, seed: int = 42, config: dict = None):
        """Initialize generator with seed for reproducibility."""
        self.seed = seed
        self.random = random.Random(seed)
        self.config = config or {}

    def generate_story(self, index: int, style: str = "hours") -> Tuple[WorkItem, List[WorkItem]]:
        """Generate one story and its child tasks in the given estimation style."""
        story_id = f"STORY-{index + 1:03d}"
        title = STORY_TITLES[index % len(STORY_TITLES)]
        story_hours = self.random.choice([8, 13, 16, 20, 24])

        picked = [entry for entry in TASK_CATALOG if self.random.random() < entry[3]]
        if not picked:
            picked = [TASK_CATALOG[1]]

        one_off = self.random.choice(ONE_OFF_TASKS) if self.random.random() < 0.3 else None

        total_share = sum(entry[2] for entry in picked)
        planned = []
        for _, variants, share, _ in picked:
            hours = max(0.5, round(story_hours * share / total_share * 2) / 2)
            planned.append((self.random.choice(variants), hours, self.random.randint(1, 4)))
        if one_off:
            planned.append((one_off, 1.0, None))

        total_hours = sum(hours for _, hours, _ in planned)
        children = []
        for position, (task_title, hours, priority) in enumerate(planned):
            children.append(WorkItem(
                id=f"{story_id}-T{position + 1}",
                title=task_title,
                type="Task",
                estimation=self._estimate(hours, total_hours, style),
                parent_id=story_id,
                priority=priority,
            ))

        if style == "percentage":
            estimation = 1.0
        else:
            estimation = sum(child.estimation or 0 for child in children)

        story = WorkItem(
            id=story_id,
            title=title,
            type="User Story",
            estimation=estimation,
            tags=self.random.sample(["backend", "frontend", "api", "ui"], 2),
        )
        return story, children

    def _estimate(self, hours: float, total_hours: float, style: str) -> float:
        if style == "percentage":
            return round(hours / total_hours, 2)
        if style == "points":
            return min(POINT_SCALE, key=lambda point: abs(point - hours))
        return hours

    def generate_story_set(
        self,
        count: int = 5,
        styles: Optional[List[str]] = None,
    ) -> Dict[str, Tuple[WorkItem, List[WorkItem]]]:
        """Generate several stories; styles cycle through the given list."""
        styles = styles or [self.config.get('evaluation', {}).get('estimation_style', 'hours')]
        stories = {}
        for index in range(count):
            story, children = self.generate_story(index, styles[index % len(styles)])
            stories[story.id] = (story, children)
        return stories

    def to_records(self, stories: Dict[str, Tuple[WorkItem, List[WorkItem]]]) -> List[dict]:
        """Plain records in the story-file layout."""
        records = []
        for story, children in stories.values():
            record = _work_item_record(story)
            record['children'] = [_work_item_record(child) for child in children]
            records.append(record)
        return records


def _work_item_record(item: WorkItem) -> dict:
    record = {
        'id': item.id,
        'title': item.title,
        'type': item.type,
        'state': item.state,
    }
    if item.estimation is not None:
        record['estimation'] = item.estimation
    if item.tags:
        record['tags'] = list(item.tags)
    if item.priority is not None:
        record['priority'] = item.priority
    if item.description:
        record['description'] = item.description
    return record
