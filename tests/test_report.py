"""Tests for finish reports."""

from __future__ import annotations

import unittest
from pathlib import Path

from treeai.exceptions import UnresolvedBranchError
from treeai.models import FinishAction, FinishSession, WorktreeRecord
from treeai.report import FAILED, SKIPPED, build_report


class BuildReportTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = FinishSession(
            target=WorktreeRecord(path=Path("/worktrees/feature-x"), branch="feature/x"),
            repo_path=Path("/repos/app"),
            base_branch="main",
            original_branch="main",
            requested=frozenset(FinishAction),
        )

    def test_everything_performed_is_complete(self) -> None:
        for action in (FinishAction.DELETE_BRANCH, FinishAction.CHECKOUT_BASE, FinishAction.REMOVE_WORKTREE):
            self.session.mark_performed(action)

        report = build_report(self.session)

        self.assertTrue(report.complete)
        self.assertEqual(report.performed_labels(), ["switch to main", "remove worktree", "delete branch"])

    def test_skipped_and_failed_are_distinguished(self) -> None:
        self.session.mark_performed(FinishAction.CHECKOUT_BASE)
        self.session.mark_skipped(FinishAction.REMOVE_WORKTREE)

        report = build_report(self.session)

        self.assertFalse(report.complete)
        self.assertEqual(
            [(outcome.label, outcome.status) for outcome in report.not_performed],
            [("remove worktree", SKIPPED), ("delete branch", FAILED)],
        )

    def test_unrequested_actions_are_not_reported(self) -> None:
        self.session.requested = frozenset({FinishAction.CHECKOUT_BASE})
        self.session.mark_performed(FinishAction.CHECKOUT_BASE)

        report = build_report(self.session)

        self.assertTrue(report.complete)
        self.assertEqual(report.performed, (FinishAction.CHECKOUT_BASE,))
        self.assertEqual(report.branch, "feature/x")

    def test_detached_target_has_no_reportable_branch(self) -> None:
        self.session.target = WorktreeRecord(path=Path("/worktrees/detached"), head_commit="abc123")

        with self.assertRaises(UnresolvedBranchError):
            build_report(self.session)


if __name__ == "__main__":
    unittest.main()
