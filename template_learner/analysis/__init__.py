"""Per-story analysis."""

from .story_analyzer import StoryAnalyzer, detect_activity, extract_title_pattern, normalize_percentages

__all__ = ['StoryAnalyzer', 'detect_activity', 'extract_title_pattern', 'normalize_percentages']
