"""Tests for the command-line entry point."""

import pytest

import main


def test_count_is_parsed_as_int():
    args = main.build_parser().parse_args(['demo', '--count', '3'])
    assert args.count == 3
    assert args.stories is None


def test_count_defaults_to_five():
    assert main.build_parser().parse_args(['generate-stories']).count == 5


def test_non_integer_count_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main.main(['demo', '--count', 'abc'])

    assert exc_info.value.code == 2
    assert "--count" in capsys.readouterr().err


def test_learn_ids_stay_separate_from_count():
    args = main.build_parser().parse_args(
        ['learn', '--input', 'stories.yaml', '--stories', 'US-1', 'US-2']
    )
    assert args.stories == ['US-1', 'US-2']
    assert args.count == 5


def test_generate_then_learn(tmp_path):
    missing_config = str(tmp_path / "absent.yaml")
    stories_path = tmp_path / "stories.yaml"
    results_dir = tmp_path / "results"

    main.main(['generate-stories', '--count', '3', '--seed', '7',
               '--output', str(stories_path), '--config', missing_config])
    assert stories_path.exists()

    main.main(['learn', '--input', str(stories_path),
               '--output', str(results_dir), '--config', missing_config])

    assert (results_dir / "learned_template.yaml").exists()
    assert (results_dir / "learning_result.json").exists()
    assert (results_dir / "learning_report.txt").exists()


def test_missing_input_file_exits_with_error(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main.main(['learn', '--input', str(tmp_path / "nope.yaml"),
                   '--config', str(tmp_path / "absent.yaml")])

    assert exc_info.value.code == 1
    assert "Error:" in capsys.readouterr().err
