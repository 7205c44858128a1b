"""High-level orchestration for creating and listing task worktrees."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from . import git
from .config import get_worktree_root
from .models import TreeAIConfig, WorktreeRecord
from .resolver import finish_candidates
from .tasks import build_worktree_path


@dataclass
class WorktreeService:
    repo_path: Path
    config: TreeAIConfig

    def list_worktrees(self) -> list[WorktreeRecord]:
        return git.worktree_list(self.repo_path)

    def task_worktrees(self) -> list[WorktreeRecord]:
        """Linked worktrees, without bare entries or the main checkout."""

        return finish_candidates(self.list_worktrees(), self.repo_path)

    def find_by_branch(self, branch: str) -> WorktreeRecord | None:
        for record in self.list_worktrees():
            if record.branch == branch:
                return record
        return None

    def local_branches(self) -> list[str]:
        return git.list_local_branches(self.repo_path)

    def default_base_branch(self) -> str | None:
        return git.detect_default_base_branch(self.repo_path)

    def target_path(self, branch: str, override: Path | None = None) -> Path:
        if override is not None:
            return override.expanduser().resolve()
        return build_worktree_path(get_worktree_root(self.config, self.repo_path), branch)

    def create_worktree(self, branch: str, target: Path, base_branch: str) -> Path:
        target.parent.mkdir(parents=True, exist_ok=True)
        git.worktree_add(self.repo_path, target, branch, base_branch)
        return target


def is_directory_empty(path: Path) -> bool:
    try:
        return not any(path.iterdir())
    except OSError:
        return False


def remove_directory(path: Path) -> None:
    shutil.rmtree(path)
