"""Base work-item source interface."""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..models.story import WorkItem


class WorkItemSource(ABC):
    """Abstract base class for anything that can supply example stories."""

    @abstractmethod
    async def get_work_item(self, item_id: str) -> Optional[WorkItem]:
        """Return the work item, or None if it does not exist."""
        pass

    @abstractmethod
    async def get_children(self, item_id: str) -> List[WorkItem]:
        """Return the child tasks of a work item."""
        pass

    @abstractmethod
    def get_source_name(self) -> str:
        """Return the name of this source."""
        pass
