"""Dataclasses shared across modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .exceptions import UnresolvedBranchError


@dataclass(frozen=True)
class WorktreeRecord:
    """Represents a single worktree tracked by git."""

    path: Path
    branch: str | None = None
    head_commit: str | None = None
    is_bare: bool = False

    @property
    def label(self) -> str:
        return f"{self.branch or '(detached)'} · {self.path}"


class FinishAction(str, Enum):
    """Steps a finish run may perform, declared in execution order."""

    CHECKOUT_BASE = "checkout-base"
    REMOVE_WORKTREE = "remove-worktree"
    DELETE_BRANCH = "delete-branch"

    @classmethod
    def ordered(cls, actions: set["FinishAction"] | frozenset["FinishAction"]) -> list["FinishAction"]:
        return [action for action in cls if action in actions]


CLEANUP_ACTIONS = frozenset({FinishAction.REMOVE_WORKTREE, FinishAction.DELETE_BRANCH})


@dataclass
class FinishSession:
    """Mutable state of a single finish invocation. Never persisted."""

    target: WorktreeRecord
    repo_path: Path
    base_branch: str
    original_branch: str | None
    requested: frozenset[FinishAction]
    force: bool = False
    current_branch: str | None = None
    performed: set[FinishAction] = field(default_factory=set)
    skipped: set[FinishAction] = field(default_factory=set)
    cleanup_allowed: bool = True

    def __post_init__(self) -> None:
        if self.current_branch is None:
            self.current_branch = self.original_branch

    @property
    def target_branch(self) -> str:
        if self.target.branch is None:
            raise UnresolvedBranchError(f"Worktree {self.target.path} has no branch checked out.")
        return self.target.branch

    @property
    def requests_cleanup(self) -> bool:
        return bool(self.requested & CLEANUP_ACTIONS)

    def mark_performed(self, action: FinishAction) -> None:
        self.performed.add(action)

    def mark_skipped(self, action: FinishAction) -> None:
        self.skipped.add(action)


@dataclass(frozen=True)
class ToolPreset:
    """How to launch one AI assistant."""

    executable: str
    args: tuple[str, ...] = ()


@dataclass(frozen=True)
class TaskHistoryEntry:
    """A task recorded by `start`, patched by `finish`."""

    name: str
    branch: str
    repo: str
    worktree_path: str
    last_used: str
    base_branch: str | None = None


@dataclass
class TreeAIConfig:
    """Persisted user configuration."""

    recent_repos: list[str] = field(default_factory=list)
    default_permission_mode: str = "bypassPermissions"
    default_ai_tool: str | None = "claude"
    tool_presets: dict[str, ToolPreset] = field(default_factory=dict)
    history: list[TaskHistoryEntry] = field(default_factory=list)
    default_repo: str | None = None
    worktree_root: str | None = None
