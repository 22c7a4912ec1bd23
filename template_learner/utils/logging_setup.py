"""Logging configuration for command-line runs."""

import logging
from typing import Any, Dict


def configure_logging(config: Dict[str, Any], verbose: bool = False) -> None:
    """Configure root logging from the 'logging' config section."""
    logging_config = config.get('logging', {})
    level_name = 'DEBUG' if verbose else str(logging_config.get('level', 'INFO')).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format=logging_config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s'),
    )
