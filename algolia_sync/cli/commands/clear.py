"""Clear command."""

import sys

import cyclopts

from algolia_sync.cli.console import count_message, get_console
from algolia_sync.cli.util import unit_of_work
from algolia_sync.domain.index.service.manual import ManualIndexer
from algolia_sync.domain.shared.error import SyncError

app = cyclopts.App(name="clear", help="Clear the index related to an entity.")


@app.default
def clear(entity: str | None = None, /) -> None:
    """Remove every object from the indexes of the matching entity classes.

    Args:
        entity: Class name (or dotted path) whose index to clear. All if omitted.
    """
    console = get_console()

    try:
        with unit_of_work() as uow:
            cleared = uow.get(ManualIndexer).clear(entity)
    except SyncError as e:
        console.error(e.message)
        sys.exit(1)

    console.print(count_message(cleared, "cleared"))
