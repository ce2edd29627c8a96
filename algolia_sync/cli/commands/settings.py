"""Settings command."""

import sys

import cyclopts

from algolia_sync.cli.console import get_console
from algolia_sync.cli.util import unit_of_work
from algolia_sync.domain.index.service.indexer import Indexer
from algolia_sync.domain.shared.error import SyncError

app = cyclopts.App(
    name="settings",
    help="Push the Algolia index settings defined in your project to the Algolia servers.",
)


@app.default
def settings(*, push: bool = False, force: bool = False) -> None:
    """Compare local index settings with the remote ones, optionally pushing them.

    Args:
        push: Push the local settings to the remote Algolia servers.
        force: Do not ask for confirmation.
    """
    console = get_console()
    console.info("Computing differences between local and remote indexes...")

    try:
        with unit_of_work() as uow:
            indexer = uow.get(Indexer)
            diffs = indexer.diff_settings()
            for diff in diffs.values():
                console.settings_diff(diff)

            dirty = [diff for diff in diffs.values() if diff.dirty]
            if not dirty:
                console.success("Your local index settings seem to be in sync with the Algolia servers!")
                return

            console.print(f"\n[cyan]We found {len(dirty)} index(es) that may need updating.[/cyan]")
            if not push:
                console.info(
                    "Run this command with --push if you want to push the new local settings to Algolia."
                )
                return

            confirmed = force or console.confirm(
                "Are you sure you want to update the remote Algolia settings? "
                "This operation cannot be undone!"
            )
            if not confirmed:
                console.print("\nOk, changing nothing.")
                return

            indexer.push_settings(confirmed=True)
            console.success(
                "Done updating the settings! "
                "(but the tasks may not have completed on Algolia's side yet)."
            )
            indexer.wait_all()
    except SyncError as e:
        console.error(e.message)
        sys.exit(1)
