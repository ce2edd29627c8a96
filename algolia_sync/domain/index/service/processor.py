"""Commit processor - commit phase of the sync pipeline.

Runs once the local transaction has durably committed. Turns staged records
into at most three batched remote calls per index.
"""

import logging
from collections import defaultdict
from typing import Any

from algolia_sync.domain.index.model.result import CommitSummary
from algolia_sync.domain.index.service.collector import ChangeCollector
from algolia_sync.domain.index.service.extractor import FieldExtractor
from algolia_sync.domain.index.service.naming import IndexNamer
from algolia_sync.domain.index.service.tasks import TaskTracker

logger = logging.getLogger(__name__)

OBJECT_ID = "objectID"

Batches = dict[str, list[Any]]


class CommitProcessor:
    """Sends staged records to the remote indexes."""

    def __init__(self, extractor: FieldExtractor, tasks: TaskTracker, namer: IndexNamer) -> None:
        self._extractor = extractor
        self._tasks = tasks
        self._namer = namer

    def process(self, collector: ChangeCollector) -> CommitSummary:
        """Send everything the collector staged, then clear it.

        The collector is cleared even if building a batch or a remote call
        fails, so a failed cycle never leaks into the next one.
        """
        try:
            creations, updates, deletions = self.partition(collector)
            self._send(creations, "save_objects")
            self._send(updates, "partial_update_objects")
            self._send(deletions, "delete_objects")
        finally:
            collector.clear()

        return CommitSummary(
            created=sum(len(objects) for objects in creations.values()),
            updated=sum(len(objects) for objects in updates.values()),
            deleted=sum(len(ids) for ids in deletions.values()),
        )

    def partition(self, collector: ChangeCollector) -> tuple[Batches, Batches, Batches]:
        """Group staged records into (creations, updates, deletions) per index name."""
        creations: Batches = defaultdict(list)
        updates: Batches = defaultdict(list)
        deletions: Batches = defaultdict(list)

        for creation in collector.creations:
            index_name = creation.index_name or self._namer.index_name(creation.entity)
            object_id, _ = self._extractor.extract_primary_key(creation.entity)
            fields = self._extractor.extract_fields(creation.entity)
            if fields:
                fields[OBJECT_ID] = object_id
                creations[index_name].append(fields)

        for update in collector.updates:
            index_name = self._namer.index_name(update.entity)
            object_id, old_object_id = self._extractor.extract_primary_key(
                update.entity, update.change_set
            )

            if old_object_id is not None:
                # A partial update cannot change an object's identity:
                # drop the old object and send the full new one.
                deletions[index_name].append(old_object_id)
                fields = self._extractor.extract_fields(update.entity)
                if fields:
                    fields[OBJECT_ID] = object_id
                    creations[index_name].append(fields)
            else:
                fields = self._extractor.extract_fields(update.entity, update.change_set)
                if fields:
                    fields[OBJECT_ID] = object_id
                    updates[index_name].append(fields)

        for deletion in collector.deletions:
            deletions[deletion.index_name].append(deletion.object_id)

        return dict(creations), dict(updates), dict(deletions)

    def _send(self, batches: Batches, operation: str) -> None:
        for index_name, payload in batches.items():
            if not payload:
                continue
            index = self._tasks.index(index_name)
            task_id = getattr(index, operation)(payload)
            self._tasks.record(index_name, task_id)
            logger.debug(f"{operation}: {len(payload)} objects to '{index_name}' (task {task_id})")
