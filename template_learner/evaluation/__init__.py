"""Synthetic data for demos and evaluation."""

from .generator import StoryGenerator

__all__ = ['StoryGenerator']
