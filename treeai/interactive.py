"""Interactive prompt helpers built on InquirerPy."""

from __future__ import annotations

import sys
from typing import Any, Sequence

from InquirerPy import inquirer
from InquirerPy.base.control import Choice

from .exceptions import UserAbort, ValidationError
from .models import FinishAction, TaskHistoryEntry, WorktreeRecord


def _ensure_tty() -> None:
    if not sys.stdin.isatty():
        raise ValidationError(
            "Interactive mode requires a TTY. Provide the missing arguments or pass --non-interactive."
        )


def _execute(prompt: Any) -> Any:
    try:
        return prompt.execute()
    except KeyboardInterrupt as exc:  # pragma: no cover - user cancel
        raise UserAbort("User cancelled the prompt.") from exc


def text_input(message: str, default: str | None = None) -> str:
    _ensure_tty()
    return _execute(inquirer.text(message=message, default=default or "")).strip()


def confirm(message: str, default: bool = True) -> bool:
    _ensure_tty()
    return bool(_execute(inquirer.confirm(message=message, default=default)))


def select_repo(recent_repos: Sequence[str], default: str | None = None) -> str | None:
    if not recent_repos:
        return None
    _ensure_tty()
    choices = [Choice(value=repo, name=repo) for repo in recent_repos]
    selected_default = default if default in recent_repos else None
    return _execute(inquirer.select(message="Select a git repository", choices=choices, default=selected_default))


def select_base_branch(candidates: Sequence[str], default: str) -> str:
    if not candidates:
        return default
    _ensure_tty()
    choices = build_choices(candidates, highlight=[default])
    return str(_execute(inquirer.fuzzy(message="Select base branch", choices=choices)))


def select_history_task(tasks: Sequence[TaskHistoryEntry]) -> str | None:
    if not tasks:
        return None
    _ensure_tty()
    new_task = "__new__"
    choices = [Choice(value=task.name, name=f"{task.name} ({task.branch})") for task in tasks]
    choices.append(Choice(value=new_task, name="Start a new task…"))
    selection = _execute(inquirer.select(message="Pick a recent task", choices=choices))
    if selection == new_task:
        return None
    return str(selection)


def select_worktree(records: Sequence[WorktreeRecord], message: str = "Select worktree to finish") -> WorktreeRecord:
    _ensure_tty()
    choices, lookup = build_worktree_choice_data(records)
    selection = _execute(inquirer.fuzzy(message=message, choices=choices))
    try:
        return lookup[str(selection)]
    except KeyError as exc:
        raise ValidationError("Selected worktree could not be resolved.") from exc


def select_finish_actions(
    options: Sequence[tuple[FinishAction, str]],
    defaults: frozenset[FinishAction],
) -> frozenset[FinishAction]:
    _ensure_tty()
    choices = [Choice(value=action, name=label, enabled=action in defaults) for action, label in options]
    selected = _execute(inquirer.checkbox(message="Select the finishing steps to run", choices=choices))
    return frozenset(FinishAction(value) for value in selected)


def build_choices(options: Sequence[str], *, highlight: Sequence[str] | None = None) -> list[Choice]:
    """Return Choice objects with highlighted defaults placed first."""

    highlight = highlight or []
    result: list[Choice] = []
    seen: set[str] = set()
    for item in list(highlight) + list(options):
        if not item or item in seen:
            continue
        seen.add(item)
        result.append(Choice(value=item, name=item))
    return result


def build_worktree_choice_data(
    records: Sequence[WorktreeRecord],
) -> tuple[list[Choice], dict[str, WorktreeRecord]]:
    """Return the choice list used for prompts plus a lookup keyed by path."""

    lookup: dict[str, WorktreeRecord] = {}
    choices: list[Choice] = []
    for record in records:
        key = str(record.path)
        if key in lookup:
            raise ValidationError(f"Duplicate worktree path detected: {key}")
        lookup[key] = record
        choices.append(Choice(value=key, name=record.label))
    return choices, lookup
