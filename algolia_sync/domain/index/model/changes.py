"""Pending changes of a unit of work, as handed over by the store adapter."""

from typing import Any

from algolia_sync.domain.mapping.model.metadata import ChangeSet


class PendingChanges:
    """Insertions, updates and deletions scheduled in one local transaction.

    Entities are tracked by identity. Recording the same entity several times
    (once per flush) merges the records so that the set always describes the
    net effect of the transaction:

    - inserted then updated stays an insertion;
    - inserted then deleted disappears;
    - updated twice keeps the first old value and the last new value;
    - updated then deleted becomes a deletion with the original values.
    """

    def __init__(self) -> None:
        self._insertions: dict[int, Any] = {}
        self._updates: dict[int, tuple[Any, ChangeSet]] = {}
        self._deletions: dict[int, tuple[Any, dict[str, Any]]] = {}

    def insert(self, entity: Any) -> None:
        self._insertions[id(entity)] = entity

    def update(self, entity: Any, change_set: ChangeSet) -> None:
        key = id(entity)
        if key in self._insertions or key in self._deletions or not change_set:
            return

        if key in self._updates:
            _, merged = self._updates[key]
            merged = dict(merged)
            for name, (old, new) in change_set.items():
                first_old = merged[name][0] if name in merged else old
                merged[name] = (first_old, new)
            change_set = merged

        self._updates[key] = (entity, dict(change_set))

    def delete(self, entity: Any, original_values: dict[str, Any]) -> None:
        key = id(entity)
        if self._insertions.pop(key, None) is not None:
            return

        original = dict(original_values)
        if key in self._updates:
            _, change_set = self._updates.pop(key)
            original.update({name: old for name, (old, _new) in change_set.items()})

        self._deletions[key] = (entity, original)

    @property
    def insertions(self) -> list[Any]:
        return list(self._insertions.values())

    @property
    def updates(self) -> list[tuple[Any, ChangeSet]]:
        return list(self._updates.values())

    @property
    def deletions(self) -> list[tuple[Any, dict[str, Any]]]:
        return list(self._deletions.values())

    def clear(self) -> None:
        self._insertions.clear()
        self._updates.clear()
        self._deletions.clear()

    def __len__(self) -> int:
        return len(self._insertions) + len(self._updates) + len(self._deletions)

    def __bool__(self) -> bool:
        return len(self) > 0
