from typing import Iterable

from dishka import Provider, provide
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from algolia_sync.config import Config
from algolia_sync.domain.index.port.store import EntityStore
from algolia_sync.domain.index.service.indexer import Indexer
from algolia_sync.domain.index.service.manual import ManualIndexer
from algolia_sync.infrastructure.persistence.database import (
    create_db_engine,
    create_session_factory,
)
from algolia_sync.infrastructure.persistence.session import synchronize
from algolia_sync.infrastructure.persistence.store import SqlAlchemyEntityStore
from algolia_sync.util.di.scope import Scope


class PersistenceProvider(Provider):
    # APP-scoped factories
    @provide(scope=Scope.APP)
    def get_engine(self, config: Config) -> Iterable[Engine]:
        engine = create_db_engine(config.database)
        yield engine
        engine.dispose()

    @provide(scope=Scope.APP)
    def get_session_factory(self, engine: Engine) -> sessionmaker[Session]:
        return create_session_factory(engine)

    # UOW-scoped session (one per unit of work), synchronized with Algolia
    @provide(scope=Scope.UOW)
    def get_session(
        self, session_factory: sessionmaker[Session], indexer: Indexer
    ) -> Iterable[Session]:
        with session_factory() as session:
            synchronizer = synchronize(session, indexer.new_pipeline())
            yield session
            session.commit()
            synchronizer.unregister()

    @provide(scope=Scope.UOW)
    def get_store(self, session: Session, indexer: Indexer) -> EntityStore:
        return SqlAlchemyEntityStore(session, list(indexer.registry))

    @provide(scope=Scope.UOW)
    def get_manual_indexer(self, indexer: Indexer, store: EntityStore) -> ManualIndexer:
        return indexer.manual(store)
