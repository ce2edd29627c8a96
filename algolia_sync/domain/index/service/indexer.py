"""Indexer - entry point wiring the sync components around one remote client."""

import logging
from collections.abc import Callable
from typing import Any

import logfire

from algolia_sync.domain.index.model.result import SearchResult
from algolia_sync.domain.index.port.search_client import IndexHandle, SearchClient
from algolia_sync.domain.index.port.store import EntityStore
from algolia_sync.domain.index.service.collector import ChangeCollector
from algolia_sync.domain.index.service.conditions import ConditionalIndexing
from algolia_sync.domain.index.service.extractor import FieldExtractor
from algolia_sync.domain.index.service.manual import ManualIndexer
from algolia_sync.domain.index.service.naming import IndexNamer
from algolia_sync.domain.index.service.pipeline import SyncPipeline
from algolia_sync.domain.index.service.processor import CommitProcessor
from algolia_sync.domain.index.service.settings import SettingsDiff, SettingsReconciler
from algolia_sync.domain.index.service.tasks import TaskTracker
from algolia_sync.domain.mapping.model.metadata import IndexMetadata
from algolia_sync.domain.mapping.model.registry import MetadataRegistry
from algolia_sync.domain.mapping.port.loader import MetadataLoader

logger = logging.getLogger(__name__)


class Indexer:
    """Owns the metadata registry, extraction and task tracking for one client.

    Automatic synchronization goes through ``new_pipeline()`` (one pipeline
    per unit of work). Manual operations (reindex, clear, hydrated search) go
    through ``manual(store)``.

    Args:
        client: Remote search client.
        loader: Mapping loader used to resolve entity classes.
        is_entity: Tells store-managed instances (relations) apart from plain values.
        index_name_prefix: Prepended to every index name as ``prefix_``.
        environment: Suffix for indexes declared per environment.
        catch_and_log_exceptions: Passed to every pipeline.
    """

    def __init__(
        self,
        client: SearchClient,
        loader: MetadataLoader,
        is_entity: Callable[[Any], bool],
        *,
        index_name_prefix: str | None = None,
        environment: str | None = None,
        catch_and_log_exceptions: bool = False,
    ) -> None:
        self.client = client
        self.registry = MetadataRegistry(loader)
        self.namer = IndexNamer(
            registry=self.registry, prefix=index_name_prefix, environment=environment
        )
        self.conditions = ConditionalIndexing(registry=self.registry)
        self.extractor = FieldExtractor(self.registry, is_entity)
        self.tasks = TaskTracker(client)
        self.settings = SettingsReconciler(registry=self.registry, tasks=self.tasks, namer=self.namer)
        self.catch_and_log_exceptions = catch_and_log_exceptions

    def new_pipeline(self) -> SyncPipeline:
        collector = ChangeCollector(self.registry, self.conditions, self.extractor, self.namer)
        processor = CommitProcessor(self.extractor, self.tasks, self.namer)
        return SyncPipeline(collector, processor, self.catch_and_log_exceptions)

    def manual(self, store: EntityStore) -> ManualIndexer:
        return ManualIndexer(
            registry=self.registry,
            conditions=self.conditions,
            extractor=self.extractor,
            namer=self.namer,
            tasks=self.tasks,
            store=store,
        )

    def get_index_metadata(self, entity_class: type) -> IndexMetadata:
        return self.registry.get(entity_class)

    def index_name(self, entity_or_class: Any) -> str:
        return self.namer.index_name(entity_or_class)

    def get_index(self, index_name: str) -> IndexHandle:
        return self.tasks.index(index_name)

    def discover(self, entity_classes: list[type]) -> list[IndexMetadata]:
        return self.registry.discover(entity_classes)

    # --- Settings ---

    def diff_settings(self) -> dict[str, SettingsDiff]:
        """Compare local and remote settings of every discovered index."""
        return self.settings.diff_all()

    def push_settings(self, confirmed: bool) -> list[str]:
        """Push local settings of every dirty index.

        Nothing is written unless ``confirmed`` is set.

        Returns:
            Names of the indexes whose settings were pushed.
        """
        local = self.settings.compute_local_settings()
        dirty = [name for name, diff in self.diff_settings().items() if diff.dirty]
        if not confirmed or not dirty:
            return []

        with logfire.span("PushSettings", indexes=dirty):
            for index_name in dirty:
                self.settings.push(index_name, local[index_name])
        return dirty

    def set_index_settings(
        self,
        index_name: str,
        settings: dict[str, Any],
        per_environment: bool = True,
        adapt_index_name: bool = True,
    ) -> None:
        if adapt_index_name:
            index_name = self.namer.make_env_index_name(index_name, per_environment)
        self.settings.push(index_name, settings)

    # --- Raw index access ---

    def raw_search(
        self,
        index_name: str,
        query: str,
        params: dict[str, Any] | None = None,
        per_environment: bool = True,
        adapt_index_name: bool = True,
    ) -> SearchResult:
        """Search the remote index only; the local store is not involved."""
        if adapt_index_name:
            index_name = self.namer.make_env_index_name(index_name, per_environment)

        response = self.get_index(index_name).search(query, params)
        return SearchResult.from_response(query, response)

    def search(
        self,
        index_or_class: str | type,
        query: str,
        params: dict[str, Any] | None = None,
        store: EntityStore | None = None,
    ) -> SearchResult:
        """Search by index name (raw hits) or by entity class (hydrated hits).

        Hydrating requires the store the entities are loaded from.
        """
        if isinstance(index_or_class, type):
            if store is None:
                raise ValueError("A store is required to search by entity class")
            return self.manual(store).search(index_or_class, query, params)
        return self.raw_search(index_or_class, query, params)

    def delete_index(
        self, index_name: str, per_environment: bool = True, adapt_index_name: bool = True
    ) -> None:
        if adapt_index_name:
            index_name = self.namer.make_env_index_name(index_name, per_environment)

        task_id = self.client.delete_index(index_name)
        self.tasks.record(index_name, task_id)
        self.tasks.forget(index_name)

    def wait_all(self) -> None:
        """Block until every remote task issued so far is published."""
        self.tasks.wait_all()
