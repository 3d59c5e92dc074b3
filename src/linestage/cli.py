"""linestage CLI — Typer application with show, patch, stage, log, and init commands."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from linestage import __version__

app = typer.Typer(
    name="linestage",
    help="Stage individual lines of a file's changes.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(stderr=True)

_KEY_RE = re.compile(r"^(\d+):(\d+)$")


def _resolve_repo_root() -> Path:
    """Find the git repo root, exit 2 on failure."""
    from linestage.git.adapter import GitError, get_repo_root

    try:
        return get_repo_root()
    except GitError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc


def _load_config(root: Path, config: Optional[str], format: Optional[str]):
    from linestage.config.loader import ConfigError, load_config
    from linestage.config.schema import OUTPUT_FORMATS

    try:
        cfg = load_config(root, config)
    except ConfigError as exc:
        console.print(f"[bold red]Config error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    if format:
        if format not in OUTPUT_FORMATS:
            console.print(f"[bold red]Invalid format:[/bold red] {escape(format)}")
            raise typer.Exit(code=2)
        cfg.output.format = format  # type: ignore[assignment]
    return cfg


def _open_session(path: str, diff_file: Optional[str], repo_root: Optional[Path]):
    """Build a StagingSession from a snapshot file or the repository."""
    from linestage.git.adapter import GitError, relative_path
    from linestage.git.provider import GitDiffProvider, SnapshotDiffProvider, SnapshotError
    from linestage.stage.coordinator import StagingSession

    try:
        if diff_file:
            provider = SnapshotDiffProvider.from_file(Path(diff_file))
        elif repo_root is not None:
            provider = GitDiffProvider(repo_root)
            path = relative_path(repo_root, path)
        else:
            console.print("[bold red]Error:[/bold red] not in a git repository and no --diff-file given")
            raise typer.Exit(code=2)
        return StagingSession(path, provider)
    except (GitError, SnapshotError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc


def _parse_keys(keys: List[str]) -> List[Tuple[int, int]]:
    parsed = []
    for key in keys:
        m = _KEY_RE.match(key.strip())
        if m is None:
            console.print(f"[bold red]Invalid line key:[/bold red] {escape(repr(key))} (expected HUNK:LINE)")
            raise typer.Exit(code=2)
        parsed.append((int(m.group(1)), int(m.group(2))))
    return parsed


def _apply_selectors(session, lines: List[str], hunks: List[int], select_all: bool) -> None:
    from linestage.selection.state import SelectionError

    selection = session.selection
    try:
        if select_all:
            selection.select_all()
        for hunk_index in hunks:
            selection.set_hunk_selection(hunk_index, True)
        for hunk_index, line_index in _parse_keys(lines):
            if not selection.is_selected(hunk_index, line_index):
                selection.toggle_line(hunk_index, line_index)
    except SelectionError as exc:
        console.print(f"[bold red]Selection error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc


# ── show ──────────────────────────────────────────────────────────────────────


@app.command()
def show(
    path: str = typer.Argument(..., help="File whose unstaged changes to show"),
    diff_file: Optional[str] = typer.Option(None, "--diff-file", help="Read the diff from a YAML/JSON snapshot instead of git"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .linestage.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
) -> None:
    """Show a file's unstaged changes with the HUNK:LINE key of every changed line."""
    from linestage.output import json_report, terminal

    repo_root = None if diff_file else _resolve_repo_root()
    cfg = _load_config(repo_root or Path.cwd(), config, format)
    session = _open_session(path, diff_file, repo_root)

    if cfg.output.format == "json":
        print(json_report.render_diff(session.diff, session.selection))
    else:
        terminal.render_diff(
            session.diff,
            session.selection,
            show_line_numbers=cfg.output.show_line_numbers,
            console=console,
        )


# ── patch ─────────────────────────────────────────────────────────────────────


@app.command()
def patch(
    path: str = typer.Argument(..., help="File to build a patch for"),
    line: Optional[List[str]] = typer.Option(None, "--line", "-l", help="Select a changed line by HUNK:LINE key (repeatable)"),
    hunk: Optional[List[int]] = typer.Option(None, "--hunk", "-H", help="Select every changed line of a hunk (repeatable)"),
    all_lines: bool = typer.Option(False, "--all", "-a", help="Select every changed line in the file"),
    diff_file: Optional[str] = typer.Option(None, "--diff-file", help="Read the diff from a YAML/JSON snapshot instead of git"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .linestage.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
) -> None:
    """Print the patch that staging the selected lines would apply."""
    from linestage.output import json_report
    from linestage.patch.reconstructor import PatchError
    from linestage.patch.serializer import build_patch

    repo_root = None if diff_file else _resolve_repo_root()
    cfg = _load_config(repo_root or Path.cwd(), config, format)
    session = _open_session(path, diff_file, repo_root)
    _apply_selectors(session, line or [], hunk or [], all_lines)

    try:
        result = build_patch(session.diff, session.selection, cfg.patch)
    except PatchError as exc:
        console.print(f"[bold red]Patch error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    if cfg.output.format == "json":
        print(json_report.render_patch(result))
    elif not result.is_empty:
        print(result.text, end="")

    if result.is_empty:
        if cfg.output.format == "terminal":
            console.print("[yellow]Nothing selected — no patch to stage.[/yellow]")
        raise typer.Exit(code=1)


# ── stage ─────────────────────────────────────────────────────────────────────


@app.command()
def stage(
    path: str = typer.Argument(..., help="File whose selected lines to stage"),
    line: Optional[List[str]] = typer.Option(None, "--line", "-l", help="Select a changed line by HUNK:LINE key (repeatable)"),
    hunk: Optional[List[int]] = typer.Option(None, "--hunk", "-H", help="Select every changed line of a hunk (repeatable)"),
    all_lines: bool = typer.Option(False, "--all", "-a", help="Select every changed line in the file"),
    diff_file: Optional[str] = typer.Option(None, "--diff-file", help="Read the diff from a YAML/JSON snapshot instead of git"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .linestage.toml"),
) -> None:
    """Apply the selected lines to the index, leaving the working tree untouched."""
    from linestage.git.adapter import GitError
    from linestage.history.oplog import OperationLog
    from linestage.patch.reconstructor import PatchError
    from linestage.stage.applier import GitIndexApplier
    from linestage.stage.coordinator import ApplyCoordinator, StageError

    repo_root = _resolve_repo_root()
    cfg = _load_config(repo_root, config, None)
    session = _open_session(path, diff_file, repo_root)
    _apply_selectors(session, line or [], hunk or [], all_lines)

    coordinator = ApplyCoordinator(
        GitIndexApplier(repo_root, timeout=cfg.apply.timeout, extra_args=cfg.apply.extra_args),
        options=cfg.patch,
        oplog=OperationLog(repo_root, cfg.log.directory) if cfg.log.enabled else None,
    )

    try:
        outcome = asyncio.run(coordinator.stage_selected(session))
    except StageError as exc:
        console.print(f"[yellow]{escape(str(exc))}[/yellow]")
        raise typer.Exit(code=1) from exc
    except PatchError as exc:
        console.print(f"[bold red]Patch error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc
    except GitError as exc:
        console.print(f"[bold red]Git error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=2) from exc

    if not outcome.success:
        console.print(f"[bold red]✗ git apply rejected the patch:[/bold red]\n{escape(outcome.error or '')}")
        raise typer.Exit(code=1)

    console.print(f"[green]✓[/green] Staged {outcome.staged_lines} line(s) of {escape(outcome.path)}")
    if outcome.refresh_error:
        console.print(f"[yellow]Could not reload the diff:[/yellow] {escape(outcome.refresh_error)}")
        return
    remaining = session.diff.changed_line_count
    if remaining:
        console.print(f"[dim]{remaining} changed line(s) remain unstaged.[/dim]")


# ── log ───────────────────────────────────────────────────────────────────────


@app.command()
def log(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of entries to show"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to .linestage.toml"),
    format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: terminal | json"),
) -> None:
    """Show recent staging operations for this repository."""
    from linestage.history.oplog import OperationLog
    from linestage.output import terminal

    repo_root = _resolve_repo_root()
    cfg = _load_config(repo_root, config, format)
    entries = OperationLog(repo_root, cfg.log.directory).get_operation_logs(limit)

    if cfg.output.format == "json":
        print(json.dumps([asdict(e) for e in entries], indent=2))
    else:
        terminal.render_log(entries, console=console)


# ── init ──────────────────────────────────────────────────────────────────────


@app.command()
def init() -> None:
    """Generate a starter .linestage.toml in the repo root."""
    from linestage.config.defaults import DEFAULT_TOML
    from linestage.config.loader import CONFIG_FILENAME

    repo_root = _resolve_repo_root()
    config_path = repo_root / CONFIG_FILENAME

    if config_path.exists():
        console.print(f"[yellow]⚠[/yellow]  {CONFIG_FILENAME} already exists at {escape(str(config_path))}")
        raise typer.Exit(code=1)

    config_path.write_text(DEFAULT_TOML, encoding="utf-8")
    console.print(f"[green]✓[/green] Created {escape(str(config_path))}")


# ── version / logging ─────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        print(f"linestage {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V", callback=_version_callback,
        is_eager=True, help="Show version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    debug: bool = typer.Option(False, "--debug", help="Debug output including git commands"),
) -> None:
    """linestage — stage selected lines without touching the working tree."""
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, show_time=debug)],
        force=True,
    )
