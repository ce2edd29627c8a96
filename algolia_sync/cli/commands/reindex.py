"""Reindex command."""

import sys

import cyclopts

from algolia_sync.cli.console import count_message, get_console
from algolia_sync.cli.util import unit_of_work
from algolia_sync.domain.index.service.indexer import Indexer
from algolia_sync.domain.index.service.manual import DEFAULT_BATCH_SIZE, ManualIndexer
from algolia_sync.domain.shared.error import SyncError

app = cyclopts.App(name="reindex", help="Reindex all entities or just those of a specified type.")


@app.default
def reindex(
    entity: str | None = None,
    /,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    unsafe: bool = False,
    sync: bool = False,
) -> None:
    """Send every indexable entity to Algolia.

    Args:
        entity: Class name (or dotted path) of the entities to reindex. All if omitted.
        batch_size: Number of entities loaded and sent per request.
        unsafe: Index in place, without deleting outdated records.
        sync: Wait for the remote operations to complete before returning.
    """
    console = get_console()

    if batch_size < 1:
        console.warning(f"Invalid batch size specified, assuming {DEFAULT_BATCH_SIZE}.")
        batch_size = DEFAULT_BATCH_SIZE

    try:
        with unit_of_work() as uow:
            manual = uow.get(ManualIndexer)
            indexed = manual.reindex_all(entity, batch_size=batch_size, safe=not unsafe)
            if sync:
                with console.status("Waiting for Algolia tasks..."):
                    uow.get(Indexer).wait_all()
    except SyncError as e:
        console.error(e.message)
        sys.exit(1)

    console.print(count_message(indexed, "indexed"))
