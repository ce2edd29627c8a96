"""Local entity store port used by manual reindexing and hydrated search."""

from collections.abc import Iterator, Sequence
from typing import Any, Protocol


class EntityStore(Protocol):
    """Read access to the transactional store."""

    def entity_classes(self) -> Sequence[type]:
        """Every entity class the store knows about."""
        ...

    def iter_batches(self, entity_class: type, batch_size: int) -> Iterator[list[Any]]:
        """Iterate over all entities of a class, ``batch_size`` at a time."""
        ...

    def find(self, entity_class: type, key: dict[str, Any]) -> Any | None:
        """Load one entity by its identifier values."""
        ...

    def is_entity(self, value: Any) -> bool:
        """Whether ``value`` is an instance of a store-managed class."""
        ...
