"""Result models produced by multi-story learning."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .story import SkippedStory, StoryAnalysis, TaskDefinition, TaskTemplate


class EstimationStyle(str, Enum):
    """How child task estimations were expressed in the examples."""

    PERCENTAGE = "percentage"
    HOURS = "hours"
    POINTS = "points"
    MIXED = "mixed"


class OutlierKind(str, Enum):
    ESTIMATION = "estimation"
    TASK_COUNT = "task-count"
    MISSING_TASK = "missing-task"
    EXTRA_TASK = "extra-task"


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SuggestionKind(str, Enum):
    ADD_STORIES = "add-stories"
    ADD_TASK = "add-task"
    REMOVE_TASK = "remove-task"
    ADJUST_ESTIMATION = "adjust-estimation"
    ADD_DEPENDENCY = "add-dependency"
    IMPROVE_NAMING = "improve-naming"


class SuggestionSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    IMPORTANT = "important"


@dataclass
class TaskOccurrence:
    """A task of one example, flattened for clustering."""

    normalized_title: str
    original_title: str
    estimation_percent: float
    activity: str
    story_id: str
    task: Optional[TaskDefinition] = None


@dataclass(frozen=True)
class CommonTaskPattern:
    """A task that recurs across examples under similar titles."""

    canonical_title: str
    title_variants: List[str]
    frequency: int
    frequency_ratio: float
    average_estimation_percent: float
    estimation_std_dev: float
    activity: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'canonicalTitle': self.canonical_title,
            'titleVariants': list(self.title_variants),
            'frequency': self.frequency,
            'frequencyRatio': self.frequency_ratio,
            'averageEstimationPercent': self.average_estimation_percent,
            'estimationStdDev': self.estimation_std_dev,
            'activity': self.activity,
        }


@dataclass(frozen=True)
class EstimationPattern:
    """Estimation convention detected across examples."""

    detected_style: EstimationStyle
    average_total_estimation: float
    is_consistent: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'detectedStyle': self.detected_style.value,
            'averageTotalEstimation': self.average_total_estimation,
            'isConsistent': self.is_consistent,
        }


@dataclass(frozen=True)
class PatternDetectionResult:
    """Patterns and statistics detected across all examples."""

    common_tasks: List[CommonTaskPattern]
    activity_distribution: Dict[str, float]
    average_task_count: float
    task_count_std_dev: float
    estimation_pattern: EstimationPattern

    def to_dict(self) -> Dict[str, Any]:
        return {
            'commonTasks': [pattern.to_dict() for pattern in self.common_tasks],
            'activityDistribution': dict(self.activity_distribution),
            'averageTaskCount': self.average_task_count,
            'taskCountStdDev': self.task_count_std_dev,
            'estimationPattern': self.estimation_pattern.to_dict(),
        }


@dataclass(frozen=True)
class TaskSource:
    """Where a merged task came from."""

    story_id: str
    task_title: str


@dataclass
class MergedTask:
    """One consolidated task with its provenance."""

    task: TaskDefinition
    sources: List[TaskSource]
    similarity: float

    def source_story_ids(self) -> List[str]:
        """Distinct example ids, in first-seen order."""
        return list(dict.fromkeys(source.story_id for source in self.sources))

    @property
    def story_count(self) -> int:
        return len(self.source_story_ids())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'task': self.task.to_dict(),
            'sources': [
                {'storyId': source.story_id, 'taskTitle': source.task_title}
                for source in self.sources
            ],
            'similarity': self.similarity,
        }


@dataclass(frozen=True)
class Outlier:
    """An advisory anomaly report; never raised."""

    kind: OutlierKind
    story_id: str
    message: str
    value: float
    expected_range: Tuple[float, float]
    severity: float
    task_title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'type': self.kind.value,
            'storyId': self.story_id,
            'message': self.message,
            'value': self.value,
            'expectedRange': list(self.expected_range),
            'severity': self.severity,
        }
        if self.task_title:
            data['taskTitle'] = self.task_title
        return data


@dataclass(frozen=True)
class ConfidenceFactor:
    name: str
    score: float
    weight: float
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'score': self.score,
            'weight': self.weight,
            'description': self.description,
        }


@dataclass(frozen=True)
class ConfidenceScore:
    """Overall 0-100 confidence with the factors behind it."""

    overall: int
    factors: List[ConfidenceFactor]
    level: ConfidenceLevel

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overall': self.overall,
            'factors': [factor.to_dict() for factor in self.factors],
            'level': self.level.value,
        }


@dataclass(frozen=True)
class TemplateSuggestion:
    kind: SuggestionKind
    message: str
    severity: SuggestionSeverity
    task_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'type': self.kind.value,
            'message': self.message,
            'severity': self.severity.value,
        }
        if self.task_id:
            data['taskId'] = self.task_id
        return data


@dataclass
class TemplateVariation:
    """An alternative template built from a subset of merged tasks."""

    name: str
    description: str
    template: TaskTemplate
    confidence: ConfidenceScore

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'description': self.description,
            'template': self.template.to_dict(),
            'confidence': self.confidence.to_dict(),
        }


@dataclass
class MultiStoryLearningResult:
    """Everything learned from a batch of example stories."""

    analyses: List[StoryAnalysis]
    skipped: List[SkippedStory]
    merged_template: TaskTemplate
    patterns: PatternDetectionResult
    confidence: ConfidenceScore
    suggestions: List[TemplateSuggestion] = field(default_factory=list)
    variations: List[TemplateVariation] = field(default_factory=list)
    outliers: List[Outlier] = field(default_factory=list)
    merged_tasks: List[MergedTask] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for JSON export."""
        return {
            'stories': [analysis.story_id for analysis in self.analyses],
            'skipped': [skipped.to_dict() for skipped in self.skipped],
            'mergedTemplate': self.merged_template.to_dict(),
            'mergedTasks': [merged.to_dict() for merged in self.merged_tasks],
            'patterns': self.patterns.to_dict(),
            'confidence': self.confidence.to_dict(),
            'suggestions': [suggestion.to_dict() for suggestion in self.suggestions],
            'variations': [variation.to_dict() for variation in self.variations],
            'outliers': [outlier.to_dict() for outlier in self.outliers],
        }

    def to_human_readable(self) -> str:
        """Generate human-readable report format."""
        lines = [
            f"=== Learned Template: {self.merged_template.name} ===",
            f"Stories analyzed: {', '.join(a.story_id for a in self.analyses)}",
        ]

        if self.skipped:
            lines.append("Skipped:")
            for skipped in self.skipped:
                lines.append(f"  {skipped.story_id}: {skipped.reason}")

        lines.extend([
            "",
            f"Confidence: {self.confidence.overall}/100 ({self.confidence.level.value})",
        ])
        for factor in self.confidence.factors:
            lines.append(
                f"  {factor.name:<24} {factor.score:>5.0f}  x{factor.weight:.2f}  {factor.description}"
            )

        lines.extend([
            "",
            "Tasks:",
        ])
        for merged in self.merged_tasks:
            task = merged.task
            lines.append(
                f"  [{task.id}] {task.title}: {task.estimation_percent:.0f}% "
                f"({task.activity}, {merged.story_count}/{len(self.analyses)} stories, "
                f"cohesion {merged.similarity:.2f})"
            )

        pattern = self.patterns.estimation_pattern
        lines.extend([
            "",
            "Patterns:",
            f"  Estimation style: {pattern.detected_style.value}"
            f" ({'consistent' if pattern.is_consistent else 'inconsistent'})",
            f"  Average task count: {self.patterns.average_task_count}"
            f" (std dev {self.patterns.task_count_std_dev})",
        ])
        for common in self.patterns.common_tasks:
            lines.append(
                f"  {common.canonical_title}: {common.frequency_ratio:.0%} of stories,"
                f" avg {common.average_estimation_percent}%"
            )

        if self.outliers:
            lines.extend(["", "Outliers:"])
            for outlier in self.outliers:
                lines.append(f"  [{outlier.kind.value}] {outlier.message} (severity {outlier.severity})")

        if self.suggestions:
            lines.extend(["", "Suggestions:"])
            for suggestion in self.suggestions:
                lines.append(f"  ({suggestion.severity.value}) {suggestion.message}")

        if self.variations:
            lines.extend(["", "Variations:"])
            for variation in self.variations:
                lines.append(
                    f"  {variation.name}: {len(variation.template.tasks)} tasks,"
                    f" confidence {variation.confidence.overall} ({variation.confidence.level.value})"
                )

        lines.append("=" * 50)

        return "\n".join(lines)
