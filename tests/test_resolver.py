"""Tests for finish target resolution."""

from __future__ import annotations

import unittest
from pathlib import Path

from treeai.exceptions import AmbiguousTargetError, NoWorktreesError, UnresolvedBranchError
from treeai.models import WorktreeRecord
from treeai.resolver import finish_candidates, resolve_target

MAIN = Path("/repos/app")


class ResolveTargetTests(unittest.TestCase):
    def setUp(self) -> None:
        self.main = WorktreeRecord(path=MAIN, branch="main")
        self.bare = WorktreeRecord(path=Path("/repos/app.git"), is_bare=True)
        self.login = WorktreeRecord(path=Path("/worktrees/feature-login"), branch="feature/login")
        self.fix = WorktreeRecord(path=Path("/worktrees/bugfix-crash"), branch="bugfix/crash")
        self.detached = WorktreeRecord(path=Path("/worktrees/detached"), branch=None, head_commit="abc123")
        self.worktrees = [self.main, self.bare, self.login, self.fix, self.detached]

    def resolve(self, hint: str | None, **kwargs) -> WorktreeRecord:
        options = {"current_dir": MAIN, "main_repo": MAIN, "interactive": False}
        options.update(kwargs)
        return resolve_target(hint, self.worktrees, **options)

    def test_candidates_exclude_bare_and_main(self) -> None:
        candidates = finish_candidates(self.worktrees, MAIN)
        self.assertNotIn(self.main, candidates)
        self.assertNotIn(self.bare, candidates)
        self.assertIn(self.login, candidates)

    def test_exact_branch_match(self) -> None:
        self.assertIs(self.resolve("bugfix/crash"), self.fix)

    def test_task_name_maps_to_feature_branch(self) -> None:
        self.assertIs(self.resolve("login"), self.login)

    def test_path_match(self) -> None:
        self.assertIs(self.resolve("/worktrees/bugfix-crash/"), self.fix)

    def test_current_directory_selects_worktree(self) -> None:
        self.assertIs(self.resolve(None, current_dir=Path("/worktrees/feature-login")), self.login)

    def test_main_checkout_directory_is_not_a_target(self) -> None:
        with self.assertRaises(AmbiguousTargetError):
            self.resolve(None)

    def test_unmatched_hint_without_prompt_fails(self) -> None:
        with self.assertRaises(AmbiguousTargetError):
            self.resolve("does-not-exist")

    def test_interactive_falls_back_to_picker(self) -> None:
        offered: list[list[WorktreeRecord]] = []

        def picker(candidates):
            offered.append(list(candidates))
            return candidates[1]

        selected = self.resolve(None, interactive=True, picker=picker)

        self.assertIs(selected, self.fix)
        self.assertEqual(offered, [[self.login, self.fix, self.detached]])

    def test_home_relative_hint_for_unknown_user_is_unmatched(self) -> None:
        with self.assertRaises(AmbiguousTargetError):
            self.resolve("~nosuchuser/fix")

    def test_detached_target_is_rejected(self) -> None:
        with self.assertRaises(UnresolvedBranchError):
            self.resolve("/worktrees/detached")

    def test_no_candidates(self) -> None:
        with self.assertRaises(NoWorktreesError):
            resolve_target("x", [self.main, self.bare], current_dir=None, main_repo=MAIN, interactive=True)

    def test_resolution_is_idempotent(self) -> None:
        first = self.resolve("login")
        second = self.resolve("login")
        self.assertEqual(first, second)


if __name__ == "__main__":
    unittest.main()
