"""Global test fixtures."""

from collections.abc import Iterator

import pytest
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from algolia_sync.config import DatabaseConfig
from algolia_sync.domain.index.service.indexer import Indexer
from algolia_sync.infrastructure.mapping.loader import DeclarativeLoader
from algolia_sync.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
)
from algolia_sync.infrastructure.persistence.session import SessionSynchronizer, synchronize
from algolia_sync.infrastructure.persistence.store import is_mapped_instance
from support import Base, FakeSearchClient, is_plain_entity


@pytest.fixture
def client() -> FakeSearchClient:
    return FakeSearchClient()


@pytest.fixture
def indexer(client: FakeSearchClient) -> Indexer:
    return Indexer(client, DeclarativeLoader(), is_mapped_instance)


@pytest.fixture
def plain_indexer(client: FakeSearchClient) -> Indexer:
    """Indexer over the plain (unmapped) test entities."""
    return Indexer(client, DeclarativeLoader(), is_plain_entity)


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_db_engine(DatabaseConfig(url="sqlite://"))
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine):
    return create_session_factory(engine)


@pytest.fixture
def synchronizer(session_factory, indexer: Indexer) -> Iterator[SessionSynchronizer]:
    with session_factory() as session:
        synchronizer = synchronize(session, indexer.new_pipeline())
        yield synchronizer
        synchronizer.unregister()


@pytest.fixture
def session(synchronizer: SessionSynchronizer) -> Session:
    return synchronizer.session
