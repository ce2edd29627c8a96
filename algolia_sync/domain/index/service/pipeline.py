"""SyncPipeline - two-phase hooks between a local transaction and the remote index."""

import logging
from enum import Enum

from algolia_sync.domain.index.model.changes import PendingChanges
from algolia_sync.domain.index.model.result import CommitSummary
from algolia_sync.domain.index.service.collector import ChangeCollector
from algolia_sync.domain.index.service.processor import CommitProcessor

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    COMMITTING = "committing"


class SyncPipeline:
    """Coordinates the detect and commit phases for one unit of work.

    A store adapter calls ``on_before_commit`` while the transaction can still
    be read (pending changes known) and ``on_after_commit`` once it has durably
    committed. Nothing is sent remotely unless the local commit succeeded.

    Not thread-safe: use one pipeline per unit of work.

    Args:
        collector: Stages records during detection.
        processor: Sends staged records after commit.
        catch_and_log_exceptions: Log sync failures instead of raising them,
            keeping the primary data path unaffected by the remote index.
    """

    def __init__(
        self,
        collector: ChangeCollector,
        processor: CommitProcessor,
        catch_and_log_exceptions: bool = False,
    ) -> None:
        self._collector = collector
        self._processor = processor
        self._catch_and_log_exceptions = catch_and_log_exceptions
        self.state = PipelineState.IDLE

    @property
    def collector(self) -> ChangeCollector:
        return self._collector

    def on_before_commit(self, changes: PendingChanges) -> None:
        """Detect phase: stage remote operations for the pending changes."""
        self.state = PipelineState.DETECTING
        try:
            self._collector.collect(changes)
        except Exception as e:
            # A partially detected cycle is never sent.
            self._collector.clear()
            self._handle(e, "detect")
        finally:
            self.state = PipelineState.IDLE

    def on_after_commit(self) -> CommitSummary | None:
        """Commit phase: send staged records to the remote indexes."""
        if not self._collector:
            return CommitSummary()

        self.state = PipelineState.COMMITTING
        try:
            summary = self._processor.process(self._collector)
            logger.info(
                f"Synchronized {summary.total} objects "
                f"({summary.created} created, {summary.updated} updated, "
                f"{summary.deleted} deleted)"
            )
            return summary
        except Exception as e:
            self._handle(e, "commit")
            return None
        finally:
            self.state = PipelineState.IDLE

    def discard(self) -> None:
        """Drop staged records, e.g. after the local transaction rolled back."""
        self._collector.clear()

    def _handle(self, error: Exception, phase: str) -> None:
        if not self._catch_and_log_exceptions:
            raise error
        logger.error(f"AlgoliaSearch: {phase} phase failed: {error}", exc_info=True)
