"""VCS backend used by the finish state machine."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from . import git
from .models import WorktreeRecord


class VcsBackend(Protocol):
    """Protocol for the git primitives a finish run relies on.

    Mutating operations act on the main repository checkout and raise
    ``GitCommandError`` when the underlying command fails.
    """

    def list_worktrees(self) -> list[WorktreeRecord]:
        ...

    def current_branch(self, path: Path) -> str | None:
        ...

    def is_clean(self, path: Path) -> bool:
        ...

    def is_ancestor(self, branch: str, of_branch: str) -> bool:
        ...

    def checkout(self, branch: str) -> None:
        ...

    def merge(self, branch: str) -> None:
        ...

    def abort_merge(self) -> None:
        ...

    def remove_worktree(self, path: Path, force: bool = False) -> None:
        ...

    def delete_branch(self, branch: str, force: bool = False) -> None:
        ...


@dataclass
class GitBackend:
    """``VcsBackend`` implementation that shells out to the git binary."""

    repo_path: Path

    def list_worktrees(self) -> list[WorktreeRecord]:
        return git.worktree_list(self.repo_path)

    def current_branch(self, path: Path) -> str | None:
        return git.current_branch(path)

    def is_clean(self, path: Path) -> bool:
        return git.is_clean(path)

    def is_ancestor(self, branch: str, of_branch: str) -> bool:
        return git.is_ancestor(self.repo_path, branch, of_branch)

    def checkout(self, branch: str) -> None:
        git.checkout(self.repo_path, branch)

    def merge(self, branch: str) -> None:
        git.merge(self.repo_path, branch)

    def abort_merge(self) -> None:
        git.abort_merge(self.repo_path)

    def remove_worktree(self, path: Path, force: bool = False) -> None:
        git.worktree_remove(self.repo_path, path, force=force)

    def delete_branch(self, branch: str, force: bool = False) -> None:
        git.branch_delete(self.repo_path, branch, force=force)
