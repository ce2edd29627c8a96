"""DI provider for the Algolia client and the indexer."""

from typing import Iterable

import httpx
from dishka import Provider, provide

from algolia_sync.config import Config
from algolia_sync.domain.index.port.search_client import SearchClient
from algolia_sync.domain.index.service.indexer import Indexer
from algolia_sync.infrastructure.algolia.client import AlgoliaClient, create_http_client
from algolia_sync.infrastructure.mapping.loader import DeclarativeLoader
from algolia_sync.infrastructure.persistence.store import is_mapped_instance, mapped_classes
from algolia_sync.util.di.scope import Scope


class AlgoliaProvider(Provider):
    """Provides the remote client and the application-wide Indexer."""

    @provide(scope=Scope.APP)
    def get_http_client(self, config: Config) -> Iterable[httpx.Client]:
        client = create_http_client(config.algolia)
        yield client
        client.close()

    @provide(scope=Scope.APP)
    def get_search_client(self, config: Config, http: httpx.Client) -> SearchClient:
        return AlgoliaClient(config.algolia, http=http)

    @provide(scope=Scope.APP)
    def get_indexer(self, config: Config, client: SearchClient) -> Indexer:
        """Build the Indexer and resolve the configured entity classes up front."""
        indexer = Indexer(
            client,
            DeclarativeLoader(),
            is_mapped_instance,
            index_name_prefix=config.algolia.index_name_prefix,
            environment=config.algolia.environment,
            catch_and_log_exceptions=config.algolia.catch_and_log_exceptions,
        )
        indexer.discover(mapped_classes(config.entities))
        return indexer
