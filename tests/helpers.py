"""Shared fixtures for the test suite: an in-memory VCS backend and git repo builders."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path

from treeai.exceptions import GitCommandError
from treeai.models import WorktreeRecord

HAS_GIT = shutil.which("git") is not None


class FakeBackend:
    """Records every call and mimics just enough git behaviour for the finish flow."""

    def __init__(
        self,
        *,
        worktrees: list[WorktreeRecord] | None = None,
        head: str | None = "main",
        merged: set[tuple[str, str]] | None = None,
        dirty: set[Path] | None = None,
        merge_fails: bool = False,
        merge_lands: bool = True,
        abort_fails: bool = False,
        remove_fails: bool = False,
        delete_fails: bool = False,
        checkout_fails: set[str] | None = None,
    ) -> None:
        self.worktrees = list(worktrees or [])
        self.head = head
        self.merged = set(merged or set())
        self.dirty = set(dirty or set())
        self.merge_fails = merge_fails
        self.merge_lands = merge_lands
        self.abort_fails = abort_fails
        self.remove_fails = remove_fails
        self.delete_fails = delete_fails
        self.checkout_fails = set(checkout_fails or set())
        self.calls: list[tuple] = []

    def called(self, name: str) -> list[tuple]:
        return [call for call in self.calls if call[0] == name]

    def list_worktrees(self) -> list[WorktreeRecord]:
        self.calls.append(("list_worktrees",))
        return list(self.worktrees)

    def current_branch(self, path: Path) -> str | None:
        self.calls.append(("current_branch", path))
        return self.head

    def is_clean(self, path: Path) -> bool:
        self.calls.append(("is_clean", path))
        return path not in self.dirty

    def is_ancestor(self, branch: str, of_branch: str) -> bool:
        self.calls.append(("is_ancestor", branch, of_branch))
        return (branch, of_branch) in self.merged

    def checkout(self, branch: str) -> None:
        self.calls.append(("checkout", branch))
        if branch in self.checkout_fails:
            raise GitCommandError(["git", "checkout", branch], 1, stderr="checkout failed")
        self.head = branch

    def merge(self, branch: str) -> None:
        self.calls.append(("merge", branch, self.head))
        if self.merge_fails:
            raise GitCommandError(["git", "merge", "--no-edit", branch], 1, stdout="CONFLICT (content)")
        if self.merge_lands:
            self.merged.add((branch, self.head))

    def abort_merge(self) -> None:
        self.calls.append(("abort_merge",))
        if self.abort_fails:
            raise GitCommandError(["git", "merge", "--abort"], 128, stderr="no merge to abort")

    def remove_worktree(self, path: Path, force: bool = False) -> None:
        self.calls.append(("remove_worktree", path, force))
        if self.remove_fails:
            raise GitCommandError(["git", "worktree", "remove", str(path)], 128, stderr="cannot remove")

    def delete_branch(self, branch: str, force: bool = False) -> None:
        self.calls.append(("delete_branch", branch, force))
        if self.delete_fails:
            raise GitCommandError(["git", "branch", "-d", branch], 1, stderr="not fully merged")


def git(repo: Path, *args: str) -> str:
    proc = subprocess.run(
        ["git", "-c", "commit.gpgsign=false", *args],
        cwd=str(repo),
        capture_output=True,
        text=True,
        check=True,
    )
    return proc.stdout.strip()


def init_repo(path: Path) -> Path:
    """Create a repository on ``main`` with a single commit."""

    path.mkdir(parents=True, exist_ok=True)
    git(path, "init", "-q")
    git(path, "symbolic-ref", "HEAD", "refs/heads/main")
    git(path, "config", "user.email", "tests@example.com")
    git(path, "config", "user.name", "Tests")
    commit_file(path, "README.md", "hello\n", "initial commit")
    return path.resolve()


def commit_file(repo: Path, name: str, content: str, message: str) -> None:
    (repo / name).write_text(content, encoding="utf-8")
    git(repo, "add", name)
    git(repo, "commit", "-q", "-m", message)


def add_task_worktree(repo: Path, branch: str, target: Path) -> Path:
    git(repo, "worktree", "add", "-q", "-b", branch, str(target), "main")
    return target.resolve()
