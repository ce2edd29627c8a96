"""ManualIndexer - bulk reindexing, clearing and hydrated search over a store."""

import logging
from typing import Any

import logfire

from algolia_sync.domain.index.model.result import SearchResult
from algolia_sync.domain.index.port.store import EntityStore
from algolia_sync.domain.index.service.conditions import ConditionalIndexing
from algolia_sync.domain.index.service.extractor import FieldExtractor, deserialize_key
from algolia_sync.domain.index.service.naming import IndexNamer
from algolia_sync.domain.index.service.processor import OBJECT_ID
from algolia_sync.domain.index.service.tasks import TaskTracker
from algolia_sync.domain.mapping.model.registry import MetadataRegistry
from algolia_sync.domain.shared.error import NotAnAlgoliaEntity, UnknownEntity
from algolia_sync.domain.shared.service import Service

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 1000

ClassFilter = type | str | None


def matches(entity_class: type, class_filter: ClassFilter) -> bool:
    """Match a class against a class, a class name or a dotted path."""
    if class_filter is None:
        return True
    if isinstance(class_filter, type):
        return entity_class is class_filter
    qualified = f"{entity_class.__module__}.{entity_class.__qualname__}"
    return class_filter in (entity_class.__name__, entity_class.__qualname__, qualified)


class ManualIndexer(Service):
    """Operations driven by an operator rather than by store events."""

    registry: MetadataRegistry
    conditions: ConditionalIndexing
    extractor: FieldExtractor
    namer: IndexNamer
    tasks: TaskTracker
    store: EntityStore

    def indexable_classes(self, class_filter: ClassFilter = None) -> list[type]:
        """Indexable store classes matching the filter.

        Raises:
            UnknownEntity: If a filter is given and no indexable class matches it.
        """
        classes = [
            entity_class
            for entity_class in self.store.entity_classes()
            if matches(entity_class, class_filter) and self.registry.has(entity_class)
        ]
        if class_filter is not None and not classes:
            raise UnknownEntity(class_filter)
        return classes

    def reindex_all(
        self,
        class_filter: ClassFilter = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        safe: bool = True,
    ) -> int:
        """Resend every indexable entity, one index at a time.

        Returns:
            Number of entities sent.
        """
        with logfire.span("ReindexAll", safe=safe, batch_size=batch_size):
            by_index: dict[str, list[type]] = {}
            for entity_class in self.indexable_classes(class_filter):
                by_index.setdefault(self.namer.index_name(entity_class), []).append(entity_class)

            return sum(
                self._reindex_index(index_name, classes, batch_size, safe)
                for index_name, classes in by_index.items()
            )

    def reindex(
        self, entity_class: type, batch_size: int = DEFAULT_BATCH_SIZE, safe: bool = True
    ) -> int:
        """Resend every indexable entity of a class.

        With ``safe`` set, objects present remotely but not sent during this
        pass (deleted or no longer indexable locally) are removed afterwards,
        and other classes sharing the index are resent with it. Without it
        records are only upserted.
        """
        index_name = self.namer.index_name(entity_class)
        return self._reindex_index(index_name, [entity_class], batch_size, safe)

    def _classes_sharing(self, index_name: str) -> list[type]:
        """Indexable store classes whose records go to ``index_name``."""
        return [
            entity_class
            for entity_class in self.indexable_classes()
            if self.namer.index_name(entity_class) == index_name
        ]

    def _reindex_index(
        self, index_name: str, classes: list[type], batch_size: int, safe: bool
    ) -> int:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        if safe:
            # The stale sweep cannot tell records of different classes apart,
            # so every class writing to this index is resent.
            siblings = [c for c in self._classes_sharing(index_name) if c not in classes]
            classes = [*classes, *siblings]

        index = self.tasks.index(index_name)
        sent: set[str] = set()

        for entity_class in classes:
            count = 0
            for batch in self.store.iter_batches(entity_class, batch_size):
                objects = []
                for entity in batch:
                    if not self.conditions.should_index_for_creation_or_deletion(entity):
                        continue
                    object_id, _ = self.extractor.extract_primary_key(entity)
                    fields = self.extractor.extract_fields(entity)
                    if not fields:
                        continue
                    fields[OBJECT_ID] = object_id
                    objects.append(fields)
                    sent.add(object_id)

                if objects:
                    self.tasks.record(index_name, index.save_objects(objects))
                    count += len(objects)

            logger.info(f"Reindexed {count} {entity_class.__name__} entities into '{index_name}'")

        if safe:
            stale = [object_id for object_id in index.browse_object_ids() if object_id not in sent]
            for start in range(0, len(stale), batch_size):
                self.tasks.record(index_name, index.delete_objects(stale[start : start + batch_size]))
            if stale:
                logger.info(f"Removed {len(stale)} outdated objects from '{index_name}'")

        return len(sent)

    def clear(self, class_filter: ClassFilter = None) -> int:
        """Remove every object from the indexes of the matching classes.

        Returns:
            Number of entity classes whose index was cleared.
        """
        cleared = 0
        with logfire.span("ClearIndexes"):
            for entity_class in self.indexable_classes(class_filter):
                index_name = self.namer.index_name(entity_class)
                self.tasks.record(index_name, self.tasks.index(index_name).clear_objects())
                logger.info(f"Cleared index '{index_name}'")
                cleared += 1
        return cleared

    def search(
        self, entity_class: type, query: str, params: dict[str, Any] | None = None
    ) -> SearchResult:
        """Search the class's index and load the matching entities from the store.

        Hits whose entity no longer exists locally hydrate to None.
        """
        if not self.registry.has(entity_class):
            raise NotAnAlgoliaEntity(
                f"Can't search, entity of class `{entity_class.__qualname__}` is not "
                "recognized as an Algolia enriched entity."
            )

        response = self.tasks.index(self.namer.index_name(entity_class)).search(query, params)
        entities = [
            self.store.find(entity_class, deserialize_key(hit[OBJECT_ID]))
            for hit in response.get("hits", [])
        ]
        return SearchResult.from_response(query, response, entities=entities)
