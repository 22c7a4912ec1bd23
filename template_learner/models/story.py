"""Work item, task definition and template data models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass
class WorkItem:
    """A story or task as returned by a work-item source."""

    id: str
    title: str
    type: str = "User Story"
    state: str = "New"
    estimation: Optional[float] = None
    tags: List[str] = field(default_factory=list)
    description: Optional[str] = None
    priority: Optional[int] = None
    parent_id: Optional[str] = None
    area_path: Optional[str] = None
    iteration: Optional[str] = None

    def __post_init__(self):
        """Ids are compared as strings; story files often hold bare numbers."""
        self.id = str(self.id)
        if self.parent_id is not None:
            self.parent_id = str(self.parent_id)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkItem":
        """Build a work item from a plain mapping, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if known.get('tags') is None:
            known['tags'] = []
        return cls(**known)


@dataclass
class TaskDefinition:
    """A task entry of a template, estimated as a share of the parent."""

    title: str
    id: Optional[str] = None
    description: Optional[str] = None
    estimation_percent: Optional[float] = None
    activity: Optional[str] = None
    tags: Optional[List[str]] = None
    priority: Optional[int] = None
    depends_on: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary, dropping unset fields."""
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'estimationPercent': self.estimation_percent,
            'activity': self.activity,
            'tags': self.tags,
            'priority': self.priority,
            'dependsOn': self.depends_on,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class FilterCriteria:
    """Which work items a template applies to."""

    work_item_types: List[str] = field(default_factory=list)
    states: List[str] = field(default_factory=lambda: ["New", "Active", "Approved"])
    tags_include: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'workItemTypes': list(self.work_item_types),
            'states': list(self.states),
        }
        if self.tags_include:
            data['tags'] = {'include': list(self.tags_include)}
        return data


@dataclass
class EstimationConfig:
    """How task estimations are derived from the parent's estimation."""

    strategy: str = "percentage"
    rounding: str = "none"
    minimum_task_points: float = 0
    default_parent_estimation: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'strategy': self.strategy,
            'rounding': self.rounding,
            'minimumTaskPoints': self.minimum_task_points,
        }
        if self.default_parent_estimation is not None:
            data['defaultParentEstimation'] = self.default_parent_estimation
        return data


@dataclass
class TaskTemplate:
    """A reusable breakdown of a story into tasks."""

    name: str
    filter: FilterCriteria
    tasks: List[TaskDefinition]
    version: str = "1.0"
    description: Optional[str] = None
    author: Optional[str] = None
    created: Optional[str] = None
    estimation: EstimationConfig = field(default_factory=EstimationConfig)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Initialize default creation timestamp if not provided."""
        if self.created is None:
            self.created = datetime.now().isoformat()

    def total_estimation_percent(self) -> float:
        """Sum of the task shares."""
        return sum(task.estimation_percent or 0 for task in self.tasks)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the human-editable template layout."""
        data: Dict[str, Any] = {
            'version': self.version,
            'name': self.name,
        }
        if self.description:
            data['description'] = self.description
        if self.author:
            data['author'] = self.author
        data['created'] = self.created
        data['filter'] = self.filter.to_dict()
        data['tasks'] = [task.to_dict() for task in self.tasks]
        data['estimation'] = self.estimation.to_dict()
        if self.metadata:
            data['metadata'] = dict(self.metadata)
        return data


@dataclass(frozen=True)
class StoryAnalysis:
    """One example story, its child tasks and the template derived from it."""

    story: WorkItem
    tasks: List[WorkItem]
    template: TaskTemplate
    warnings: List[str] = field(default_factory=list)

    @property
    def story_id(self) -> str:
        return self.story.id


@dataclass(frozen=True)
class SkippedStory:
    """A requested story that was excluded from learning."""

    story_id: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {'storyId': self.story_id, 'reason': self.reason}
