"""Rich UI helpers for terminal output."""

from __future__ import annotations

import os

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .models import TreeAIConfig, WorktreeRecord
from .report import FinishReport

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

_verbose = bool(os.environ.get("TREEAI_DEBUG"))


def set_verbose(enabled: bool) -> None:
    global _verbose
    _verbose = enabled or bool(os.environ.get("TREEAI_DEBUG"))


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[cyan]ℹ[/cyan] {escape(message)}")


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {escape(message)}")


def warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[yellow]⚠[/yellow] {escape(message)}")


def error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[red]✗[/red] {escape(message)}", style="red")


def debug(message: str) -> None:
    if _verbose:
        err_console.print(f"[dim]debug: {escape(message)}[/dim]")


def raw(message: str) -> None:
    console.print(escape(message))


def show_config_summary(config: TreeAIConfig) -> None:
    info(f"Default repository: {config.default_repo or 'not set'}")
    info(f"Default AI tool: {config.default_ai_tool or 'not set'}")
    if config.recent_repos:
        info("Recent repositories:")
        for repo in config.recent_repos:
            raw(f"  - {repo}")
    if config.history:
        info("Recent tasks:")
        for task in config.history:
            raw(f"  - {task.name} ({task.branch}) @ {task.repo}")


def show_worktrees(records: list[WorktreeRecord]) -> None:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Branch", no_wrap=True)
    table.add_column("Head", no_wrap=True)
    table.add_column("Path")
    for record in records:
        branch = record.branch or ("(bare)" if record.is_bare else "(detached)")
        table.add_row(escape(branch), (record.head_commit or "")[:12], escape(str(record.path)))
    console.print(table)


def show_finish_report(report: FinishReport) -> None:
    """Print the pipeline of completed steps, the unperformed ones and the verdict."""

    if report.performed:
        info("Steps performed: " + " → ".join(report.performed_labels()))
    if report.not_performed:
        details = ", ".join(
            f"{outcome.label} ({outcome.status})" for outcome in report.not_performed
        )
        warning(f"Steps not performed: {details}")
    if report.complete:
        success(f"Finished: {report.branch}")
    else:
        warning(f"Finished: {report.branch} (some steps were not performed; resolve them and run finish again)")
    info(f"To pick the task up again run: treeai start {report.branch}")
