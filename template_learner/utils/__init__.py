"""Utility functions."""

from .config import get_default_config, load_config, merge_config
from .logging_setup import configure_logging

__all__ = ['load_config', 'get_default_config', 'merge_config', 'configure_logging']
