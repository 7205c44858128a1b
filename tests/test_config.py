"""Tests for config persistence and task history bookkeeping."""

from __future__ import annotations

import json
import os
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest import mock

from treeai.config import (
    MAX_HISTORY_TASKS,
    MAX_RECENT_REPOS,
    config_path,
    default_config,
    get_worktree_root,
    load_config,
    record_task_history,
    save_config,
    touch_task_history,
    update_recent_repos,
)
from treeai.exceptions import ValidationError

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class ConfigFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.path = Path(self._tmp.name) / "treeai" / "config.json"

    def test_missing_file_is_created_with_defaults(self) -> None:
        config = load_config(self.path)

        self.assertTrue(self.path.exists())
        self.assertEqual(config.default_ai_tool, "claude")
        self.assertIn("codex", config.tool_presets)
        self.assertEqual(config.history, [])

    def test_saved_config_reads_back(self) -> None:
        config = record_task_history(
            update_recent_repos(default_config(), "/repos/app"),
            name="login",
            branch="feature/login",
            repo="/repos/app",
            worktree_path="/trees/feature-login",
            base_branch="main",
            now=T0,
        )
        save_config(config, self.path)

        raw = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(raw["history"]["tasks"][0]["worktreePath"], "/trees/feature-login")
        self.assertEqual(load_config(self.path), config)

    def test_partial_file_falls_back_to_defaults(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text(json.dumps({"defaultAiTool": "codex"}), encoding="utf-8")

        config = load_config(self.path)

        self.assertEqual(config.default_ai_tool, "codex")
        self.assertEqual(config.default_permission_mode, "bypassPermissions")
        self.assertIn("claude", config.tool_presets)

    def test_malformed_file_raises(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json", encoding="utf-8")

        with self.assertRaises(ValidationError):
            load_config(self.path)

    def test_history_of_wrong_shape_raises(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text(json.dumps({"history": [{"name": "login"}]}), encoding="utf-8")

        with self.assertRaises(ValidationError):
            load_config(self.path)

    def test_config_dir_honours_environment(self) -> None:
        with mock.patch.dict(os.environ, {"TREEAI_CONFIG_DIR": self._tmp.name}):
            self.assertEqual(config_path(), Path(self._tmp.name) / "config.json")
        env = {key: value for key, value in os.environ.items() if key != "TREEAI_CONFIG_DIR"}
        env["XDG_CONFIG_HOME"] = self._tmp.name
        with mock.patch.dict(os.environ, env, clear=True):
            self.assertEqual(config_path(), Path(self._tmp.name) / "treeai" / "config.json")


class HistoryTests(unittest.TestCase):
    def record(self, config, name: str, *, repo: str = "/repos/app", now: datetime = T0):
        return record_task_history(
            config,
            name=name,
            branch=f"feature/{name}",
            repo=repo,
            worktree_path=f"/trees/feature-{name}",
            now=now,
        )

    def test_same_task_twice_keeps_one_entry_with_later_timestamp(self) -> None:
        config = self.record(default_config(), "login", now=T0)
        config = self.record(config, "login", now=T0 + timedelta(minutes=5))

        self.assertEqual(len(config.history), 1)
        self.assertEqual(config.history[0].last_used, (T0 + timedelta(minutes=5)).isoformat())

    def test_same_name_in_other_repo_is_separate(self) -> None:
        config = self.record(default_config(), "login")
        config = self.record(config, "login", repo="/repos/other")

        self.assertEqual(len(config.history), 2)
        self.assertEqual(config.history[0].repo, "/repos/other")

    def test_history_is_capped(self) -> None:
        config = default_config()
        for index in range(MAX_HISTORY_TASKS + 2):
            config = self.record(config, f"task{index}", now=T0 + timedelta(minutes=index))

        self.assertEqual(len(config.history), MAX_HISTORY_TASKS)
        self.assertEqual(config.history[0].name, f"task{MAX_HISTORY_TASKS + 1}")

    def test_touch_refreshes_matching_entry_only(self) -> None:
        config = self.record(default_config(), "login", now=T0)
        config = self.record(config, "search", now=T0 + timedelta(minutes=1))

        later = T0 + timedelta(hours=1)
        touched = touch_task_history(
            config,
            repo="/repos/app",
            branch="feature/login",
            worktree_path="/elsewhere/login",
            now=later,
        )

        self.assertEqual([entry.name for entry in touched.history], ["login", "search"])
        self.assertEqual(touched.history[0].last_used, later.isoformat())
        self.assertEqual(touched.history[0].worktree_path, "/elsewhere/login")

    def test_touch_never_creates_entries(self) -> None:
        touched = touch_task_history(
            default_config(), repo="/repos/app", branch="feature/none", worktree_path="/x", now=T0
        )
        self.assertEqual(touched.history, [])

    def test_recent_repos_are_deduplicated_and_capped(self) -> None:
        config = default_config()
        for index in range(MAX_RECENT_REPOS + 1):
            config = update_recent_repos(config, f"/repos/{index}")
        config = update_recent_repos(config, "/repos/3")

        self.assertEqual(config.recent_repos[0], "/repos/3")
        self.assertEqual(len(config.recent_repos), MAX_RECENT_REPOS)
        self.assertEqual(len(set(config.recent_repos)), MAX_RECENT_REPOS)
        self.assertEqual(config.default_repo, "/repos/3")

    def test_worktree_root(self) -> None:
        config = default_config()
        self.assertEqual(get_worktree_root(config, Path("/repos/app")), Path.home() / ".treeai" / "app")
        config.worktree_root = "/trees"
        self.assertEqual(get_worktree_root(config, Path("/repos/app")), Path("/trees"))


if __name__ == "__main__":
    unittest.main()
