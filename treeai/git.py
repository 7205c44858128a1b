"""Thin wrappers around git CLI commands."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Iterable

from .exceptions import GitCommandError
from .models import WorktreeRecord

BASE_BRANCH_PRIORITIES = ("main", "master", "develop", "dev")


def run_git(
    args: Iterable[str],
    *,
    cwd: Path,
    raise_on_error: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Execute a git command and optionally raise on failure."""

    cmd = ["git", *args]
    proc = subprocess.run(
        cmd,
        cwd=str(cwd),
        capture_output=True,
        text=True,
        check=False,
    )
    if raise_on_error and proc.returncode != 0:
        raise GitCommandError(cmd, proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
    return proc


def rev_parse_toplevel(path: Path) -> Path:
    proc = run_git(["rev-parse", "--show-toplevel"], cwd=path)
    return Path(proc.stdout.strip())


def resolve_repo_root(path: Path) -> Path | None:
    """Return the top level of the checkout containing ``path``, if any."""

    if not path.is_dir():
        return None
    proc = run_git(["rev-parse", "--show-toplevel"], cwd=path, raise_on_error=False)
    if proc.returncode != 0:
        return None
    return Path(proc.stdout.strip()).resolve()


def resolve_main_repo_path(path: Path) -> Path | None:
    """Return the main checkout for ``path``, even from inside a linked worktree."""

    if not path.is_dir():
        return None
    proc = run_git(["rev-parse", "--git-common-dir"], cwd=path, raise_on_error=False)
    if proc.returncode != 0:
        return None
    common_dir = Path(proc.stdout.strip())
    if not common_dir.is_absolute():
        common_dir = path / common_dir
    return common_dir.resolve().parent


def current_branch(path: Path) -> str | None:
    proc = run_git(["symbolic-ref", "--short", "-q", "HEAD"], cwd=path, raise_on_error=False)
    if proc.returncode == 0:
        return proc.stdout.strip() or None
    return None


def branch_exists(path: Path, branch: str) -> bool:
    proc = run_git(
        ["show-ref", "--verify", "--quiet", f"refs/heads/{branch}"],
        cwd=path,
        raise_on_error=False,
    )
    return proc.returncode == 0


def list_local_branches(path: Path) -> list[str]:
    proc = run_git(["branch", "--format", "%(refname:short)"], cwd=path)
    return [line.strip() for line in proc.stdout.splitlines() if line.strip()]


def detect_default_base_branch(path: Path) -> str | None:
    branches = list_local_branches(path)
    for candidate in BASE_BRANCH_PRIORITIES:
        if candidate in branches:
            return candidate
    return current_branch(path)


def is_clean(path: Path) -> bool:
    proc = run_git(["status", "--porcelain"], cwd=path)
    return not proc.stdout.strip()


def is_ancestor(path: Path, branch: str, of_branch: str) -> bool:
    proc = run_git(
        ["merge-base", "--is-ancestor", branch, of_branch],
        cwd=path,
        raise_on_error=False,
    )
    return proc.returncode == 0


def checkout(path: Path, branch: str) -> None:
    run_git(["checkout", branch], cwd=path)


def merge(path: Path, branch: str) -> None:
    run_git(["merge", "--no-edit", branch], cwd=path)


def abort_merge(path: Path) -> None:
    run_git(["merge", "--abort"], cwd=path)


def worktree_list(path: Path) -> list[WorktreeRecord]:
    proc = run_git(["worktree", "list", "--porcelain"], cwd=path)
    return parse_worktree_porcelain(proc.stdout)


def parse_worktree_porcelain(output: str) -> list[WorktreeRecord]:
    items: list[dict] = []
    current: dict | None = None
    for raw_line in output.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        key, _, value = line.partition(" ")
        if key == "worktree":
            if current:
                items.append(current)
            current = {"path": Path(value.strip())}
        elif not current:
            continue
        elif key == "branch":
            branch = value.strip()
            if branch.startswith("refs/heads/"):
                branch = branch[len("refs/heads/"):]
            current["branch"] = branch
        elif key == "HEAD":
            current["head_commit"] = value.strip()
        elif key == "bare":
            current["is_bare"] = True
        elif key == "detached":
            current["branch"] = None
    if current:
        items.append(current)
    return [WorktreeRecord(**item) for item in items]


def worktree_add(path: Path, target: Path, branch: str, base_branch: str | None = None) -> None:
    args = ["worktree", "add"]
    create = base_branch is not None and not branch_exists(path, branch)
    if create:
        args.extend(["-b", branch])
    args.append(str(target))
    args.append(base_branch if create else branch)
    run_git(args, cwd=path)


def worktree_remove(path: Path, target: Path, force: bool = False) -> None:
    args = ["worktree", "remove"]
    if force:
        args.append("--force")
    args.append(str(target))
    run_git(args, cwd=path)


def branch_delete(path: Path, branch: str, force: bool = False) -> None:
    run_git(["branch", "-D" if force else "-d", branch], cwd=path)
