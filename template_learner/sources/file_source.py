"""Work-item source reading stories from a YAML or JSON file."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..errors import ConfigurationError
from ..models.story import WorkItem
from .memory import InMemorySource, parse_stories

logger = logging.getLogger(__name__)


def read_story_file(path: Path) -> List[Dict[str, Any]]:
    """Read story records from a file holding a list or a {'stories': [...]} mapping."""
    if not path.exists():
        raise FileNotFoundError(f"Story file not found: {path}")

    with open(path, 'r') as f:
        if path.suffix.lower() in ['.yaml', '.yml']:
            data = yaml.safe_load(f)
        elif path.suffix.lower() == '.json':
            data = json.load(f)
        else:
            raise ConfigurationError(f"Unsupported story file format: {path.suffix}")

    if isinstance(data, dict):
        data = data.get('stories', [])
    if not isinstance(data, list):
        raise ConfigurationError(f"Story file {path} must contain a list of stories")

    return data


class FileSource(InMemorySource):
    """Loads the story file once, off the event loop, on first access."""

    def __init__(self, path: str):
        """Initialize source for a story file path."""
        super().__init__()
        self.path = Path(path)
        self._loaded = False
        self._lock: Optional[asyncio.Lock] = None

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._loaded:
                return
            records = await asyncio.to_thread(read_story_file, self.path)
            self.stories = parse_stories(records)
            self._loaded = True
            logger.info("Loaded %d stories from %s", len(self.stories), self.path)

    def load(self) -> "FileSource":
        """Load synchronously, for callers outside an event loop."""
        if not self._loaded:
            self.stories = parse_stories(read_story_file(self.path))
            self._loaded = True
        return self

    async def get_work_item(self, item_id: str) -> Optional[WorkItem]:
        await self._ensure_loaded()
        return await super().get_work_item(item_id)

    async def get_children(self, item_id: str) -> List[WorkItem]:
        await self._ensure_loaded()
        return await super().get_children(item_id)

    def get_source_name(self) -> str:
        return f"file:{self.path.name}"
