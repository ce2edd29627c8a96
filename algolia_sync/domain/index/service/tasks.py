"""Task tracker - remembers the latest remote task per index."""

import logging
from dataclasses import dataclass

from algolia_sync.domain.index.port.search_client import IndexHandle, SearchClient, TaskId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingTask:
    """Highest task id seen for an index, with the handle used to wait on it.

    Keeping the handle means waiting never has to look the index up again,
    which could otherwise re-create an index we are waiting to see deleted.
    """

    index: IndexHandle
    task_id: TaskId


class TaskTracker:
    """Tracks outstanding asynchronous tasks, one entry per index.

    Remote task ids grow monotonically per index, so once the highest
    recorded task is published every earlier one is too.
    """

    def __init__(self, client: SearchClient) -> None:
        self._client = client
        self._handles: dict[str, IndexHandle] = {}
        self._pending: dict[str, PendingTask] = {}

    def index(self, name: str) -> IndexHandle:
        """Memoized index handle lookup."""
        handle = self._handles.get(name)
        if handle is None:
            handle = self._handles[name] = self._client.init_index(name)
        return handle

    def forget(self, name: str) -> None:
        """Drop the cached handle of a deleted index."""
        self._handles.pop(name, None)

    def record(self, index_name: str, task_id: TaskId | None) -> None:
        if task_id is None:
            return
        current = self._pending.get(index_name)
        if current is None or task_id > current.task_id:
            self._pending[index_name] = PendingTask(index=self.index(index_name), task_id=task_id)

    def wait_all(self) -> None:
        """Block until every recorded task is published."""
        for index_name in list(self._pending):
            pending = self._pending[index_name]
            logger.debug(f"Waiting for task {pending.task_id} on index '{index_name}'")
            pending.index.wait_task(pending.task_id)
            del self._pending[index_name]

    def pending(self) -> dict[str, TaskId]:
        return {name: pending.task_id for name, pending in self._pending.items()}

    def __len__(self) -> int:
        return len(self._pending)
