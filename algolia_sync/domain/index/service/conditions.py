"""Conditional indexing - evaluates IndexIf predicates of an entity."""

from typing import Any

from algolia_sync.domain.mapping.model.metadata import ChangeSet
from algolia_sync.domain.mapping.model.registry import MetadataRegistry
from algolia_sync.domain.shared.service import Service


class ConditionalIndexing(Service):
    """Decides whether an entity belongs in its index."""

    registry: MetadataRegistry

    def should_index_for_creation_or_deletion(self, entity: Any) -> bool:
        """True if every predicate holds for the entity's current state."""
        metadata = self.registry.get(type(entity))
        return all(index_if.evaluate(entity) for index_if in metadata.index_ifs)

    def should_index_for_update(self, entity: Any, change_set: ChangeSet) -> tuple[bool, bool]:
        """Return ``(needs_indexing_now, was_indexed_before)``.

        Every predicate is diffed: stopping at the first false new value would
        leave ``was_indexed_before`` computed from a subset of predicates.
        """
        needs_indexing = True
        was_indexed = True

        for index_if in self.registry.get(type(entity)).index_ifs:
            new_value, old_value = index_if.diff(entity, change_set)
            needs_indexing = needs_indexing and new_value
            was_indexed = was_indexed and old_value

        return needs_indexing, was_indexed

    def should_have_been_indexed(self, entity: Any, original_values: dict[str, Any]) -> bool:
        """True if every predicate held when the entity had ``original_values``."""
        metadata = self.registry.get(type(entity))
        return all(index_if.evaluate_with(entity, original_values) for index_if in metadata.index_ifs)
