"""SQLAlchemy session adapter feeding the sync pipeline.

Listens to session events and turns the unit of work's pending changes into
``PendingChanges``:

- ``before_flush``: capture new, dirty and deleted instances and run the
  detect phase over everything captured since the transaction began;
- ``after_commit``: note that the transaction committed;
- ``after_transaction_end`` of the root transaction: run the commit phase;
- ``after_rollback`` / ``after_soft_rollback``: drop whatever was captured.

The commit phase runs once the committed transaction is closed, so reading a
relationship that is not loaded yet starts a new transaction on the session.
Instances must not be expired on commit, otherwise every staged entity would
be refreshed one query at a time.
"""

import logging
from typing import Any

from sqlalchemy import event, inspect as sa_inspect
from sqlalchemy.orm import Session, SessionTransaction

from algolia_sync.domain.index.model.changes import PendingChanges
from algolia_sync.domain.index.service.pipeline import SyncPipeline
from algolia_sync.domain.mapping.model.metadata import ChangeSet
from algolia_sync.domain.shared.error import ConfigurationError

logger = logging.getLogger(__name__)


def change_set_of(instance: Any) -> ChangeSet:
    """Changed attributes of a persistent instance as ``{name: (old, new)}``."""
    state = sa_inspect(instance)
    change_set: ChangeSet = {}

    for attr in state.attrs:
        history = attr.history
        if not history.has_changes():
            continue

        relationship = state.mapper.relationships.get(attr.key)
        if relationship is not None and relationship.uselist:
            old = [*history.unchanged, *history.deleted]
            new = [*history.unchanged, *history.added]
        else:
            if not history.deleted:
                # The previous value was never loaded
                history = attr.load_history()
            old = history.deleted[0] if history.deleted else None
            new = history.added[0] if history.added else None

        change_set[attr.key] = (old, new)

    return change_set


def original_values_of(instance: Any) -> dict[str, Any]:
    """Column values an instance had when it was loaded."""
    state = sa_inspect(instance)
    values: dict[str, Any] = {}

    for column_attr in state.mapper.column_attrs:
        history = state.attrs[column_attr.key].history
        if history.deleted:
            values[column_attr.key] = history.deleted[0]
        elif history.unchanged:
            values[column_attr.key] = history.unchanged[0]

    return values


class SessionSynchronizer:
    """Binds one SyncPipeline to one Session.

    Changes are merged across every flush of a transaction. Each flush reruns
    the detect phase over the merged set, which the pipeline treats as a
    fresh detection, so records are never staged twice.
    """

    def __init__(self, session: Session, pipeline: SyncPipeline) -> None:
        if session.expire_on_commit:
            raise ConfigurationError(
                "Sessions synchronized with Algolia must be created with expire_on_commit=False"
            )
        self._session = session
        self._pipeline = pipeline
        self._changes = PendingChanges()
        self._committed = False
        self._registered = False

    @property
    def session(self) -> Session:
        return self._session

    @property
    def pipeline(self) -> SyncPipeline:
        return self._pipeline

    @property
    def changes(self) -> PendingChanges:
        return self._changes

    def register(self) -> "SessionSynchronizer":
        if not self._registered:
            event.listen(self._session, "before_flush", self._before_flush)
            event.listen(self._session, "after_commit", self._after_commit)
            event.listen(self._session, "after_transaction_end", self._after_transaction_end)
            event.listen(self._session, "after_rollback", self._after_rollback)
            event.listen(self._session, "after_soft_rollback", self._after_soft_rollback)
            self._registered = True
        return self

    def unregister(self) -> None:
        if self._registered:
            event.remove(self._session, "before_flush", self._before_flush)
            event.remove(self._session, "after_commit", self._after_commit)
            event.remove(self._session, "after_transaction_end", self._after_transaction_end)
            event.remove(self._session, "after_rollback", self._after_rollback)
            event.remove(self._session, "after_soft_rollback", self._after_soft_rollback)
            self._registered = False

    def capture(self, session: Session) -> None:
        """Merge the session's current pending changes into the transaction's."""
        for instance in session.new:
            self._changes.insert(instance)

        for instance in session.dirty:
            if session.is_modified(instance, include_collections=True):
                self._changes.update(instance, change_set_of(instance))

        for instance in session.deleted:
            self._changes.delete(instance, original_values_of(instance))

    def _before_flush(self, session: Session, flush_context: Any, instances: Any) -> None:
        self.capture(session)
        # Also run when the merged set became empty: records staged by an
        # earlier flush must go.
        self._pipeline.on_before_commit(self._changes)

    def _after_commit(self, session: Session) -> None:
        # No SQL can be emitted until the transaction is closed.
        self._committed = True

    def _after_transaction_end(self, session: Session, transaction: SessionTransaction) -> None:
        if transaction.parent is not None or not self._committed:
            return

        self._committed = False
        try:
            self._pipeline.on_after_commit()
        finally:
            self._changes.clear()

    def _after_rollback(self, session: Session) -> None:
        self._committed = False
        if self._changes or self._pipeline.collector:
            logger.debug("Transaction rolled back, discarding staged Algolia records")
        self._changes.clear()
        self._pipeline.discard()

    def _after_soft_rollback(self, session: Session, previous_transaction: SessionTransaction) -> None:
        # Savepoint rollbacks leave the outer transaction alive.
        if previous_transaction.parent is None:
            self._after_rollback(session)


def synchronize(session: Session, pipeline: SyncPipeline) -> SessionSynchronizer:
    """Register a pipeline on a session and return the synchronizer."""
    return SessionSynchronizer(session, pipeline).register()
