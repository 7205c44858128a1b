"""Summaries of what a finish run did."""

from __future__ import annotations

from dataclasses import dataclass

from .models import FinishAction, FinishSession

SKIPPED = "skipped"
FAILED = "failed"


def action_label(action: FinishAction, base_branch: str) -> str:
    if action is FinishAction.CHECKOUT_BASE:
        return f"switch to {base_branch}"
    if action is FinishAction.REMOVE_WORKTREE:
        return "remove worktree"
    return "delete branch"


@dataclass(frozen=True)
class ActionOutcome:
    action: FinishAction
    label: str
    status: str


@dataclass(frozen=True)
class FinishReport:
    branch: str
    base_branch: str
    performed: tuple[FinishAction, ...]
    not_performed: tuple[ActionOutcome, ...]

    @property
    def complete(self) -> bool:
        return not self.not_performed

    def performed_labels(self) -> list[str]:
        return [action_label(action, self.base_branch) for action in self.performed]


def build_report(session: FinishSession) -> FinishReport:
    performed = tuple(
        action for action in FinishAction.ordered(session.requested) if action in session.performed
    )
    not_performed = tuple(
        ActionOutcome(
            action=action,
            label=action_label(action, session.base_branch),
            status=SKIPPED if action in session.skipped else FAILED,
        )
        for action in FinishAction.ordered(session.requested)
        if action not in session.performed
    )
    return FinishReport(
        branch=session.target_branch,
        base_branch=session.base_branch,
        performed=performed,
        not_performed=not_performed,
    )
