"""Console output for the CLI.

Provides a Console class that wraps rich for consistent output.
All CLI output should go through this module.
"""

import json
from typing import Any

from rich.console import Console as RichConsole
from rich.table import Table

from algolia_sync.domain.index.service.settings import SettingsDiff


def count_message(count: int, verb: str) -> str:
    """``No entity indexed``, ``1 entity indexed``, ``3 entities indexed``..."""
    if count == 0:
        return f"No entity {verb}"
    if count == 1:
        return f"[green]1[/green] entity {verb}"
    return f"[green]{count}[/green] entities {verb}"


def _format_value(value: Any) -> str:
    if isinstance(value, (list, dict)):
        return json.dumps(value, indent=4, ensure_ascii=False)
    return str(value)


class Console:
    """CLI output manager wrapping rich."""

    def __init__(
        self,
        *,
        force_terminal: bool | None = None,
        quiet: bool = False,
    ) -> None:
        self._console = RichConsole(force_terminal=force_terminal, stderr=False)
        self._err_console = RichConsole(force_terminal=force_terminal, stderr=True)
        self._quiet = quiet

    # -------------------------------------------------------------------------
    # Status messages
    # -------------------------------------------------------------------------

    def success(self, message: str) -> None:
        """Print a success message."""
        self._console.print(f"[green]✓[/green] {message}")

    def error(self, message: str, *, hint: str | None = None) -> None:
        """Print an error message to stderr."""
        self._err_console.print(f"[red]✗[/red] {message}")
        if hint:
            self._err_console.print(f"  [dim]{hint}[/dim]")

    def warning(self, message: str) -> None:
        """Print a warning message."""
        self._console.print(f"[yellow]⚠[/yellow] {message}")

    def info(self, message: str) -> None:
        """Print an info message (suppressed in quiet mode)."""
        if not self._quiet:
            self._console.print(f"[dim]{message}[/dim]")

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Print to console (pass-through to rich)."""
        self._console.print(*args, **kwargs)

    def confirm(self, question: str) -> bool:
        answer = self._console.input(f"{question} (y/N) ")
        return answer.strip().lower() in ("y", "yes")

    def status(self, message: str):
        """Return a status context manager for long operations."""
        return self._console.status(message)

    # -------------------------------------------------------------------------
    # Settings diffs
    # -------------------------------------------------------------------------

    def settings_diff(self, diff: SettingsDiff) -> None:
        """Print what differs between the local and remote settings of an index."""
        name = diff.index_name
        if diff.is_new_index:
            self._console.print(f"Found a new local index [green]{name}[/green].")
            return

        for change in diff.changes:
            if change.is_new:
                self._console.print(
                    f"Parameter [green]{change.key}[/green] is new in the local "
                    f"definition of [yellow]{name}[/yellow]."
                )
                self._console.print(f"New value for {change.key}:")
                self._console.print(_format_value(change.local), style="yellow", markup=False)
            else:
                self._console.print(
                    f"\nParameter [yellow]{change.key}[/yellow] is different in the local "
                    f"definition of [yellow]{name}[/yellow]."
                )
                self._console.print(f"Local {change.key}:")
                self._console.print(_format_value(change.local), style="yellow", markup=False)
                self._console.print(f"Remote {change.key}:")
                self._console.print(_format_value(change.remote), style="blue", markup=False)
            self._console.print()

    # -------------------------------------------------------------------------
    # Search results
    # -------------------------------------------------------------------------

    def search_hits(self, hits: list[dict[str, Any]], total: int, index: str) -> None:
        """Print raw hits, one row per object."""
        if not hits:
            self.warning(f"No results found in index '{index}'")
            return

        self._console.print(f"Found {total} result{'s' if total != 1 else ''} in '{index}':\n")

        columns = sorted({key for hit in hits for key in hit if not key.startswith("_")})
        table = Table(show_header=True, header_style="bold")
        table.add_column("#", style="dim", width=3)
        for column in columns:
            table.add_column(column)
        for i, hit in enumerate(hits, 1):
            table.add_row(str(i), *(_format_value(hit.get(column, "")) for column in columns))
        self._console.print(table)


# Module-level default instance for convenience
_default: Console | None = None


def get_console() -> Console:
    """Get the default console instance."""
    global _default
    if _default is None:
        _default = Console()
    return _default
