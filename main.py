"""Main entry point for the Task Template Learner."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import yaml

from template_learner.engine.learner import MultiStoryLearner
from template_learner.errors import TemplateLearningError
from template_learner.evaluation.generator import StoryGenerator
from template_learner.sources.file_source import FileSource
from template_learner.sources.memory import InMemorySource
from template_learner.utils.config import get_default_config, load_config
from template_learner.utils.logging_setup import configure_logging

logger = logging.getLogger(__name__)


def _load_config(config_path: str):
    return load_config(config_path) if Path(config_path).exists() else get_default_config()


def save_result(result, output_dir: str) -> Path:
    """Write the learned template, the full result and a readable report."""
    results_dir = Path(output_dir)
    results_dir.mkdir(parents=True, exist_ok=True)

    template_path = results_dir / "learned_template.yaml"
    with open(template_path, 'w') as f:
        yaml.safe_dump(result.merged_template.to_dict(), f, sort_keys=False)

    with open(results_dir / "learning_result.json", 'w') as f:
        json.dump(result.to_dict(), f, indent=2, default=str)

    with open(results_dir / "learning_report.txt", 'w') as f:
        f.write(result.to_human_readable())

    return template_path


def run_learning(input_path: str, story_ids, config: dict, output_dir: str):
    """Learn a template from stories in a YAML or JSON story file."""
    source = FileSource(input_path)
    if not story_ids:
        story_ids = source.load().story_ids()

    learner = MultiStoryLearner(source, config)
    result = asyncio.run(learner.learn_from_multiple(story_ids))

    print(result.to_human_readable())
    template_path = save_result(result, output_dir)
    print(f"\nTemplate saved to: {template_path}")
    print(f"Full result saved to: {Path(output_dir) / 'learning_result.json'}")

    return result


def run_demo(seed: int, count: int, config: dict):
    """Learn from seeded synthetic stories and print the report."""
    generator = StoryGenerator(seed=seed, config=config)
    stories = generator.generate_story_set(count)
    source = InMemorySource(stories)

    learner = MultiStoryLearner(source, config)
    result = asyncio.run(learner.learn_from_multiple(source.story_ids()))

    print(result.to_human_readable())
    return result


def run_generate(seed: int, count: int, config: dict, output_path: str):
    """Write a generated story file usable by the learn command."""
    generator = StoryGenerator(seed=seed, config=config)
    records = generator.to_records(generator.generate_story_set(count))

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        if path.suffix.lower() == '.json':
            json.dump({'stories': records}, f, indent=2)
        else:
            yaml.safe_dump({'stories': records}, f, sort_keys=False)

    print(f"Generated {len(records)} stories")
    print(f"Stories saved to: {path}")
    return records


def build_parser():
    parser = argparse.ArgumentParser(
        description="Learn reusable task templates from example stories"
    )
    parser.add_argument(
        'command',
        choices=['learn', 'demo', 'generate-stories'],
        help='Command to run'
    )
    parser.add_argument(
        '--config',
        type=str,
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '--input',
        type=str,
        help='Story file (YAML or JSON) to learn from'
    )
    parser.add_argument(
        '--stories',
        nargs='*',
        default=None,
        help='Story ids to learn from (learn; default: every story in the file)'
    )
    parser.add_argument(
        '--output',
        type=str,
        default=None,
        help='Output directory (learn) or story file (generate-stories)'
    )
    parser.add_argument(
        '--count',
        type=int,
        default=5,
        help='Number of stories to generate (demo, generate-stories; default: 5)'
    )
    parser.add_argument(
        '--seed',
        type=int,
        default=42,
        help='Random seed for generated stories (default: 42)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    return parser


def main(argv=None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = _load_config(args.config)
        configure_logging(config, args.verbose)

        if args.command == 'learn':
            if not args.input:
                parser.error("learn requires --input")
            run_learning(args.input, args.stories, config, args.output or 'results')
        elif args.command == 'demo':
            run_demo(args.seed, args.count, config)
        else:
            run_generate(args.seed, args.count, config, args.output or 'results/generated_stories.yaml')
    except (TemplateLearningError, FileNotFoundError) as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
