"""Tests for configuration loading."""

import pytest

from template_learner.errors import ConfigurationError
from template_learner.utils.config import get_default_config, load_config, merge_config


def test_defaults():
    config = get_default_config()
    assert config['similarity']['reporting_threshold'] == 0.6
    assert config['similarity']['consolidation_threshold'] == 0.45
    assert config['outliers']['z_threshold'] == 3.5
    assert sum(config['confidence']['weights'].values()) == pytest.approx(1.0)


def test_merge_is_deep_and_does_not_mutate():
    base = get_default_config()
    merged = merge_config(base, {'outliers': {'z_threshold': 3.0}})
    assert merged['outliers']['z_threshold'] == 3.0
    assert merged['outliers']['common_task_threshold'] == 0.8
    assert base['outliers']['z_threshold'] == 3.5


def test_load_yaml_overrides(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("similarity:\n  reporting_threshold: 0.7\n")

    config = load_config(str(path))

    assert config['similarity']['reporting_threshold'] == 0.7
    assert config['similarity']['bigram_weight'] == 0.6


def test_load_json_overrides(tmp_path):
    path = tmp_path / "config.json"
    path.write_text('{"learning": {"normalize_percentages": false}}')
    assert load_config(str(path))['learning']['normalize_percentages'] is False


def test_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yml"
    path.write_text("")
    assert load_config(str(path)) == get_default_config()


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.yaml"))


@pytest.mark.parametrize("name, content", [
    ("config.toml", "a = 1"),
    ("config.yaml", "- not\n- a mapping\n"),
    ("config.yaml", "similarity: [unclosed"),
    ("config.json", "{not json"),
])
def test_invalid_files(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content)
    with pytest.raises(ConfigurationError):
        load_config(str(path))
