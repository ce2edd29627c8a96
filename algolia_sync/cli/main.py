"""Main CLI application using Cyclopts."""

import cyclopts

from algolia_sync.cli.commands import clear, reindex, search, settings

app = cyclopts.App(
    name="algolia-sync",
    help="Keep Algolia indexes in sync with SQLAlchemy entities",
)

app.command(reindex.app, name="reindex")
app.command(clear.app, name="clear")
app.command(settings.app, name="settings")
app.command(search.app, name="search")


def main() -> None:
    app()
