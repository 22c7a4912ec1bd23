"""Configuration management."""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..errors import ConfigurationError


def load_config(config_path: str) -> Dict[str, Any]:
    """Load configuration from YAML or JSON file, layered over the defaults."""
    path = Path(config_path)

    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, 'r') as f:
        if path.suffix.lower() in ['.yaml', '.yml']:
            try:
                overrides = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc
        elif path.suffix.lower() == '.json':
            try:
                overrides = json.load(f)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"Invalid JSON in {config_path}: {exc}") from exc
        else:
            raise ConfigurationError(f"Unsupported config file format: {path.suffix}")

    if overrides is None:
        overrides = {}
    if not isinstance(overrides, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    return merge_config(get_default_config(), overrides)


def merge_config(base: Dict[str, Any], overrides: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Deep-merge overrides into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in (overrides or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        'similarity': {
            'bigram_weight': 0.6,
            'word_weight': 0.4,
            'reporting_threshold': 0.6,
            'consolidation_threshold': 0.45,
        },
        'outliers': {
            'z_threshold': 3.5,
            'common_task_threshold': 0.8,
            'rare_task_threshold': 0.2,
            'singleton_min_stories': 3,
            'match_threshold': 0.5,
            'weight_severity_by_share': False,
        },
        'confidence': {
            'weights': {
                'sample_size': 0.25,
                'estimation_consistency': 0.15,
                'pattern_strength': 0.25,
                'outlier_density': 0.15,
                'merge_quality': 0.1,
                'estimation_coverage': 0.1,
            },
            'sample_saturation': 5,
            'inconsistent_estimation_score': 30,
            'small_sample_penalty': {1: 0.5, 2: 0.25, 3: 0.1, 4: 0.05},
            'high_threshold': 80,
            'medium_threshold': 50,
        },
        'variations': {
            'core_ratio': 0.6,
        },
        'learning': {
            'normalize_percentages': True,
            'fetch_timeout_seconds': None,
        },
        'evaluation': {
            'estimation_style': 'hours',
        },
        'logging': {
            'level': 'INFO',
            'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        },
    }
