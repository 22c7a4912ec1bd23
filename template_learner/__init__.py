"""Multi-story template learning engine."""

__version__ = "0.1.0"
