"""Tests for work-item sources."""

import json

import pytest
import yaml

from template_learner.engine.learner import MultiStoryLearner
from template_learner.errors import ConfigurationError
from template_learner.sources.file_source import FileSource, read_story_file
from template_learner.sources.memory import InMemorySource, parse_stories

RECORDS = [
    {
        'id': "S1",
        'title': "User login",
        'estimation': 8,
        'tags': ["backend"],
        'children': [
            {'id': "T1", 'title': "Implement API", 'estimation': 5},
            {'id': "T2", 'title': "Write tests", 'estimation': 3, 'type': "Bug"},
        ],
    },
    {'id': "S2", 'title': "Profile page", 'estimation': 5},
]


def test_parse_stories_links_children():
    stories = parse_stories(RECORDS)

    story, children = stories["S1"]
    assert story.tags == ["backend"]
    assert [child.type for child in children] == ["Task", "Bug"]
    assert {child.parent_id for child in children} == {"S1"}
    assert stories["S2"][1] == []


@pytest.mark.asyncio
async def test_in_memory_source():
    source = InMemorySource.from_records(RECORDS)

    assert source.story_ids() == ["S1", "S2"]
    assert (await source.get_work_item("S1")).title == "User login"
    assert len(await source.get_children("S1")) == 2
    assert await source.get_work_item("NOPE") is None
    assert await source.get_children("NOPE") == []


@pytest.mark.asyncio
async def test_file_source_reads_yaml_mapping(tmp_path):
    path = tmp_path / "stories.yaml"
    path.write_text(yaml.safe_dump({'stories': RECORDS}))
    source = FileSource(str(path))

    children = await source.get_children("S1")

    assert [child.title for child in children] == ["Implement API", "Write tests"]
    assert source.get_source_name() == "file:stories.yaml"


def test_file_source_sync_load_from_json_list(tmp_path):
    path = tmp_path / "stories.json"
    path.write_text(json.dumps(RECORDS))
    assert FileSource(str(path)).load().story_ids() == ["S1", "S2"]


def test_read_story_file_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_story_file(tmp_path / "absent.yaml")

    unsupported = tmp_path / "stories.csv"
    unsupported.write_text("id,title\n")
    with pytest.raises(ConfigurationError):
        read_story_file(unsupported)

    scalar = tmp_path / "stories.yaml"
    scalar.write_text("just text\n")
    with pytest.raises(ConfigurationError):
        read_story_file(scalar)


@pytest.mark.asyncio
async def test_numeric_ids_in_story_file(tmp_path):
    records = [
        {
            'id': story_id,
            'title': title,
            'estimation': 8,
            'children': [
                {'id': story_id * 10 + 1, 'title': "Implement API", 'estimation': 4},
                {'id': story_id * 10 + 2, 'title': "Write tests", 'estimation': 4},
            ],
        }
        for story_id, title in [(101, "User login"), (102, "Profile page")]
    ]
    path = tmp_path / "stories.yaml"
    path.write_text(yaml.safe_dump({'stories': records}))
    source = FileSource(str(path)).load()

    assert source.story_ids() == ["101", "102"]
    children = await source.get_children("101")
    assert [(child.id, child.parent_id) for child in children] == [("1011", "101"), ("1012", "101")]

    learner = MultiStoryLearner(source)
    result = await learner.learn_from_multiple(source.story_ids())
    assert result.merged_template.metadata == {'examples': ["101", "102"]}

    by_id = await learner.learn_from_multiple([101])
    assert [analysis.story_id for analysis in by_id.analyses] == ["101"]
