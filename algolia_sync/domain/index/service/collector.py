"""Change collector - detect phase of the sync pipeline.

Runs while the local transaction is still open. Turns the transaction's
pending changes into staged records, applying conditional indexing to decide
whether each entity is created, updated, deleted or skipped remotely.
"""

import logging
from typing import Any

from algolia_sync.domain.index.model.changes import PendingChanges
from algolia_sync.domain.index.model.staged import (
    StagedCreation,
    StagedDeletion,
    StagedUpdate,
)
from algolia_sync.domain.index.service.conditions import ConditionalIndexing
from algolia_sync.domain.index.service.extractor import FieldExtractor
from algolia_sync.domain.index.service.naming import IndexNamer
from algolia_sync.domain.mapping.model.metadata import ChangeSet
from algolia_sync.domain.mapping.model.registry import MetadataRegistry

logger = logging.getLogger(__name__)


class ChangeCollector:
    """Stages remote operations for one unit of work."""

    def __init__(
        self,
        registry: MetadataRegistry,
        conditions: ConditionalIndexing,
        extractor: FieldExtractor,
        namer: IndexNamer,
    ) -> None:
        self._registry = registry
        self._conditions = conditions
        self._extractor = extractor
        self._namer = namer

        self.creations: list[StagedCreation] = []
        self.updates: list[StagedUpdate] = []
        self.deletions: list[StagedDeletion] = []

    def collect(self, changes: PendingChanges) -> None:
        """Stage the pending changes of a transaction about to commit.

        Records left over from an earlier cycle are discarded first: a
        transaction rolled back after detection must not leak into this one.
        """
        self.clear()

        for entity in changes.insertions:
            if self.is_auto_index(entity):
                self.schedule_creation(entity)

        for entity, change_set in changes.updates:
            if self.is_auto_index(entity):
                self.schedule_update(entity, change_set)

        for entity, original_values in changes.deletions:
            if self.is_auto_index(entity):
                self.schedule_deletion(entity, original_values)

        if self:
            logger.debug(
                f"Staged {len(self.creations)} creations, {len(self.updates)} updates, "
                f"{len(self.deletions)} deletions"
            )

    def is_auto_index(self, entity: Any) -> bool:
        metadata = self._registry.resolve(type(entity))
        return metadata is not None and metadata.index.auto_index

    def schedule_creation(
        self, entity: Any, index_name: str | None = None, check_should_index: bool = True
    ) -> None:
        if check_should_index and not self._conditions.should_index_for_creation_or_deletion(
            entity
        ):
            return

        # The whole entity is kept: its key may only be assigned by the flush.
        self.creations.append(StagedCreation(entity=entity, index_name=index_name))

    def schedule_update(self, entity: Any, change_set: ChangeSet) -> None:
        should_index, was_indexed = self._conditions.should_index_for_update(entity, change_set)

        if should_index:
            if was_indexed:
                self.updates.append(StagedUpdate(entity=entity, change_set=dict(change_set)))
            else:
                self.schedule_creation(entity, check_should_index=False)
        elif was_indexed:
            self.schedule_deletion(entity, change_set=change_set)

    def schedule_deletion(
        self,
        entity: Any,
        original_values: dict[str, Any] | None = None,
        change_set: ChangeSet | None = None,
    ) -> None:
        if original_values is not None and not self._conditions.should_have_been_indexed(
            entity, original_values
        ):
            return

        # The key has to be read now, it is gone from the entity after commit.
        object_id, old_object_id = self._extractor.extract_primary_key(entity, change_set)
        if old_object_id is not None:
            # Leaving the index while changing identity: the remote copy has the old id.
            object_id = old_object_id
        self.deletions.append(
            StagedDeletion(object_id=object_id, index_name=self._namer.index_name(entity))
        )

    def clear(self) -> None:
        self.creations = []
        self.updates = []
        self.deletions = []

    def __len__(self) -> int:
        return len(self.creations) + len(self.updates) + len(self.deletions)

    def __bool__(self) -> bool:
        return len(self) > 0
