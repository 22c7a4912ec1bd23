"""Work-item sources."""

from .base import WorkItemSource
from .file_source import FileSource
from .memory import InMemorySource

__all__ = ['WorkItemSource', 'InMemorySource', 'FileSource']
