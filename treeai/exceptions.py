"""Custom exception hierarchy for treeai."""

from __future__ import annotations


class TreeAIError(Exception):
    """Base error for all custom exceptions."""


class GitCommandError(TreeAIError):
    """Raised when a git invocation fails."""

    def __init__(
        self,
        command: list[str],
        returncode: int,
        *,
        stdout: str | None = None,
        stderr: str | None = None,
    ):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        message = "Git command failed"
        if command:
            message = f"Git command failed (exit {returncode}): {' '.join(command)}"
        details = "\n".join(
            section
            for section in (self.stdout.strip(), self.stderr.strip())
            if section
        )
        if details:
            message = f"{message}\n{details}"
        super().__init__(message)


class ValidationError(TreeAIError):
    """Raised when user input or persisted data is invalid."""


class UserAbort(TreeAIError):
    """Raised when the user cancels an interactive flow."""


class RepoNotFoundError(TreeAIError):
    """Raised when no git repository can be determined."""


class NoWorktreesError(TreeAIError):
    """Raised when a repository has no linked worktrees to operate on."""


class AmbiguousTargetError(TreeAIError):
    """Raised when a finish target cannot be picked without prompting."""


class UnresolvedBranchError(TreeAIError):
    """Raised when the selected worktree has a detached HEAD."""


class DirtyWorktreeError(TreeAIError):
    """Raised when a worktree has uncommitted changes and force was not given."""


__all__ = [
    "TreeAIError",
    "GitCommandError",
    "ValidationError",
    "UserAbort",
    "RepoNotFoundError",
    "NoWorktreesError",
    "AmbiguousTargetError",
    "UnresolvedBranchError",
    "DirtyWorktreeError",
]
