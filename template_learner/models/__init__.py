"""Data models."""

from .learning import (
    CommonTaskPattern,
    ConfidenceFactor,
    ConfidenceLevel,
    ConfidenceScore,
    EstimationPattern,
    EstimationStyle,
    MergedTask,
    MultiStoryLearningResult,
    Outlier,
    OutlierKind,
    PatternDetectionResult,
    SuggestionKind,
    SuggestionSeverity,
    TaskOccurrence,
    TaskSource,
    TemplateSuggestion,
    TemplateVariation,
)
from .story import (
    EstimationConfig,
    FilterCriteria,
    SkippedStory,
    StoryAnalysis,
    TaskDefinition,
    TaskTemplate,
    WorkItem,
)

__all__ = [
    'CommonTaskPattern', 'ConfidenceFactor', 'ConfidenceLevel', 'ConfidenceScore',
    'EstimationConfig', 'EstimationPattern', 'EstimationStyle', 'FilterCriteria',
    'MergedTask', 'MultiStoryLearningResult', 'Outlier', 'OutlierKind',
    'PatternDetectionResult', 'SkippedStory', 'StoryAnalysis', 'SuggestionKind',
    'SuggestionSeverity', 'TaskDefinition', 'TaskOccurrence', 'TaskSource',
    'TaskTemplate', 'TemplateSuggestion', 'TemplateVariation', 'WorkItem',
]
