"""Pick the worktree a finish run operates on."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

from .exceptions import AmbiguousTargetError, NoWorktreesError, UnresolvedBranchError
from .models import WorktreeRecord
from .tasks import normalize_task_name, to_branch_name

WorktreePicker = Callable[[Sequence[WorktreeRecord]], WorktreeRecord]


def _normalize(path: Path | str) -> Path:
    return Path(path).resolve()


def finish_candidates(worktrees: Sequence[WorktreeRecord], main_repo: Path) -> list[WorktreeRecord]:
    """Drop bare entries and the main checkout; what remains can be finished."""

    main = _normalize(main_repo)
    return [wt for wt in worktrees if not wt.is_bare and _normalize(wt.path) != main]


def match_hint(hint: str, worktrees: Sequence[WorktreeRecord]) -> WorktreeRecord | None:
    for wt in worktrees:
        if wt.branch == hint:
            return wt
    branch_candidate = to_branch_name(normalize_task_name(hint))
    for wt in worktrees:
        if wt.branch == branch_candidate:
            return wt
    hint_path = _normalize(hint)
    for wt in worktrees:
        if _normalize(wt.path) == hint_path:
            return wt
    return None


def match_directory(
    current_dir: Path | None,
    worktrees: Sequence[WorktreeRecord],
    main_repo: Path,
) -> WorktreeRecord | None:
    if current_dir is None:
        return None
    current = _normalize(current_dir)
    if current == _normalize(main_repo):
        return None
    for wt in worktrees:
        if _normalize(wt.path) == current:
            return wt
    return None


def resolve_target(
    hint: str | None,
    worktrees: Sequence[WorktreeRecord],
    *,
    current_dir: Path | None,
    main_repo: Path,
    interactive: bool,
    picker: WorktreePicker | None = None,
) -> WorktreeRecord:
    """Resolve the finish target.

    Order: the hint (branch, then normalized task branch, then path), the
    worktree containing ``current_dir``, then an interactive pick. Without a
    way to prompt, an unmatched request raises ``AmbiguousTargetError``.
    ``current_dir`` is expected to be the top level of the checkout the
    command was started from.
    """

    candidates = finish_candidates(worktrees, main_repo)
    if not candidates:
        raise NoWorktreesError("This repository has no worktrees to finish.")

    target = match_hint(hint, candidates) if hint else None
    if target is None:
        target = match_directory(current_dir, candidates, main_repo)
    if target is None:
        if not interactive or picker is None:
            if hint:
                raise AmbiguousTargetError(
                    f"No worktree matches '{hint}'. Pass an existing branch, task name or worktree path."
                )
            raise AmbiguousTargetError(
                "A task name, branch or worktree path is required in non-interactive mode."
            )
        target = picker(candidates)

    if not target.branch:
        raise UnresolvedBranchError(
            f"Worktree {target.path} has a detached HEAD; there is no branch to merge or delete."
        )
    return target
