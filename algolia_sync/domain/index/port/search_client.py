"""Remote search index ports."""

from collections.abc import Iterator
from typing import Any, Protocol

# Identifier of an asynchronous remote task. Ids grow monotonically per index.
TaskId = int


class IndexHandle(Protocol):
    """One remote index."""

    @property
    def name(self) -> str: ...

    def save_objects(self, objects: list[dict[str, Any]]) -> TaskId:
        """Create or fully replace objects (each carries an ``objectID``)."""
        ...

    def partial_update_objects(self, objects: list[dict[str, Any]]) -> TaskId:
        """Patch only the given attributes of existing objects."""
        ...

    def delete_objects(self, object_ids: list[str]) -> TaskId: ...

    def clear_objects(self) -> TaskId: ...

    def get_settings(self) -> dict[str, Any] | None:
        """Current settings, or None if the index does not exist remotely."""
        ...

    def set_settings(self, settings: dict[str, Any]) -> TaskId: ...

    def wait_task(self, task_id: TaskId) -> None:
        """Block until the task is published."""
        ...

    def search(self, query: str, params: dict[str, Any] | None = None) -> dict[str, Any]: ...

    def browse_object_ids(self) -> Iterator[str]:
        """Iterate over every object id stored in the index."""
        ...


class SearchClient(Protocol):
    """Factory for index handles plus index-level operations."""

    def init_index(self, name: str) -> IndexHandle:
        """Get a handle. Does not create anything remotely."""
        ...

    def delete_index(self, name: str) -> TaskId: ...
