"""Rich terminal rendering — diffs with selection keys, patches, the log."""

from __future__ import annotations

from typing import List, Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from linestage.git.models import FileDiff, Origin
from linestage.history.oplog import OperationLogEntry
from linestage.patch.serializer import Patch
from linestage.selection.state import SelectionState

_ORIGIN_STYLE = {
    Origin.CONTEXT: "dim",
    Origin.ADDITION: "green",
    Origin.DELETION: "red",
}

_HUNK_STATE_ICON = {
    "none": "[ ]",
    "partial": "[~]",
    "all": "[x]",
}


def _lineno(value: Optional[int]) -> str:
    return str(value) if value is not None else ""


def render_diff(
    diff: FileDiff,
    selection: Optional[SelectionState] = None,
    *,
    show_line_numbers: bool = True,
    console: Optional[Console] = None,
) -> None:
    """Print every hunk of *diff*, keying each selectable line as ``h:l``."""
    console = console or Console(stderr=True)

    if not diff.hunks:
        console.print(Text(f"No unstaged changes in {diff.path}.", style="dim"))
        return

    title = Text(diff.path, style="bold")
    if diff.is_new_file:
        title.append("  (new file)", style="cyan")
    title.append(f"  {diff.changed_line_count} changed line(s)", style="dim")
    console.print(title)

    for h_index, hunk in enumerate(diff.hunks):
        state = selection.hunk_state(h_index) if selection is not None else "none"
        console.print()
        console.print(
            Text(f"{_HUNK_STATE_ICON[state]} hunk {h_index}  ", style="bold")
            + Text(hunk.header, style="bold blue")
        )

        table = Table(show_header=False, box=None, pad_edge=False, padding=(0, 1))
        table.add_column("Key", style="cyan", justify="right", no_wrap=True)
        table.add_column("Sel", no_wrap=True)
        if show_line_numbers:
            table.add_column("Old", style="dim", justify="right")
            table.add_column("New", style="dim", justify="right")
        table.add_column("Line", overflow="fold")

        for l_index, line in enumerate(hunk.lines):
            key = Text(f"{h_index}:{l_index}" if line.is_change else "")
            if not line.is_change:
                mark = Text("")
            elif selection is not None and selection.is_selected(h_index, l_index):
                mark = Text("[x]", style="bold green")
            else:
                mark = Text("[ ]")
            body = Text(line.origin.prefix + line.content, style=_ORIGIN_STYLE[line.origin])
            row: List = [key, mark]
            if show_line_numbers:
                row += [_lineno(line.old_lineno), _lineno(line.new_lineno)]
            table.add_row(*row, body)

        console.print(table)


def render_patch(patch: Patch, *, console: Optional[Console] = None) -> None:
    """Print the patch with diff highlighting."""
    console = console or Console(stderr=True)
    if patch.is_empty:
        console.print("[yellow]Nothing selected — the patch would contain no hunks.[/yellow]")
        return
    console.print(Syntax(patch.text, "diff", theme="ansi_dark", word_wrap=True))


def render_log(entries: List[OperationLogEntry], *, console: Optional[Console] = None) -> None:
    console = console or Console(stderr=True)
    if not entries:
        console.print("[dim]No operations recorded.[/dim]")
        return

    table = Table(title="Operations", show_lines=False, title_style="bold", border_style="dim")
    table.add_column("Time", style="dim", no_wrap=True)
    table.add_column("Operation", style="cyan")
    table.add_column("Details")
    table.add_column("Result", justify="center")

    for entry in entries:
        result = Text("ok", style="green") if entry.success else Text(
            f"failed: {entry.error or ''}".strip(), style="red"
        )
        table.add_row(entry.timestamp, entry.operation, Text(entry.details), result)

    console.print(table)
