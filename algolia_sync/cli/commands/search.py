"""Search command."""

import sys

import cyclopts

from algolia_sync.cli.console import get_console
from algolia_sync.cli.util import unit_of_work
from algolia_sync.domain.index.service.indexer import Indexer
from algolia_sync.domain.shared.error import SyncError

app = cyclopts.App(name="search", help="Search an Algolia index")


@app.default
def search(
    index: str,
    query: str,
    /,
    limit: int = 20,
    exact_name: bool = False,
) -> None:
    """Search an index by name.

    Args:
        index: Index name, without the environment suffix unless --exact-name is set.
        query: Search query.
        limit: Maximum number of hits.
        exact_name: Use the index name as given.
    """
    console = get_console()

    try:
        with unit_of_work() as uow:
            result = uow.get(Indexer).raw_search(
                index,
                query,
                {"hitsPerPage": limit},
                adapt_index_name=not exact_name,
            )
    except SyncError as e:
        console.error(e.message)
        sys.exit(1)

    console.search_hits(result.hits, result.total, index)
