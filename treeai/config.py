"""Load and persist the treeai configuration file."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from .exceptions import ValidationError
from .models import TaskHistoryEntry, ToolPreset, TreeAIConfig

CONFIG_DIR_NAME = "treeai"
CONFIG_FILE_NAME = "config.json"
MAX_RECENT_REPOS = 5
MAX_HISTORY_TASKS = 5

_CODEX_ARGS = (
    "-m",
    "gpt-5-codex",
    "-c",
    "model_reasoning_effort=high",
    "-c",
    "model_reasoning_summary_format=experimental",
    "--search",
    "--dangerously-bypass-approvals-and-sandbox",
)

DEFAULT_TOOL_PRESETS = {
    "claude": ToolPreset(executable="claude", args=("--dangerously-skip-permissions",)),
    "codex": ToolPreset(executable="codex", args=_CODEX_ARGS),
    "happy": ToolPreset(executable="happy", args=("--dangerously-skip-permissions",)),
    "happy_codex": ToolPreset(executable="happy", args=("codex", *_CODEX_ARGS)),
    "cursor": ToolPreset(executable="cursor", args=(".",)),
}


def default_config() -> TreeAIConfig:
    return TreeAIConfig(tool_presets=dict(DEFAULT_TOOL_PRESETS))


def config_dir() -> Path:
    override = os.environ.get("TREEAI_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home).expanduser() if config_home else Path.home() / ".config"
    return base / CONFIG_DIR_NAME


def config_path() -> Path:
    return config_dir() / CONFIG_FILE_NAME


def load_config(path: Path | None = None) -> TreeAIConfig:
    """Read the config file, creating it with defaults when absent."""

    path = path or config_path()
    if not path.exists():
        config = default_config()
        save_config(config, path)
        return config
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Config file {path} is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValidationError(f"Config file {path} must contain a JSON object.")
    return config_from_dict(raw)


def save_config(config: TreeAIConfig, path: Path | None = None) -> None:
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config_to_dict(config), indent=2) + "\n", encoding="utf-8")


def config_from_dict(raw: dict[str, Any]) -> TreeAIConfig:
    defaults = default_config()
    presets = dict(defaults.tool_presets)
    for name, preset in (raw.get("toolPresets") or {}).items():
        if not isinstance(preset, dict) or not preset.get("executable"):
            raise ValidationError(f"Tool preset '{name}' needs an executable.")
        presets[name] = ToolPreset(
            executable=preset["executable"],
            args=tuple(preset.get("args") or ()),
        )
    history = [
        TaskHistoryEntry(
            name=item["name"],
            branch=item["branch"],
            repo=item["repo"],
            worktree_path=item.get("worktreePath", ""),
            last_used=item.get("lastUsed", ""),
            base_branch=item.get("baseBranch"),
        )
        for item in _history_items(raw)
        if isinstance(item, dict) and {"name", "branch", "repo"} <= item.keys()
    ]
    return TreeAIConfig(
        recent_repos=list(raw.get("recentRepos") or []),
        default_permission_mode=raw.get("defaultPermissionMode") or defaults.default_permission_mode,
        default_ai_tool=raw.get("defaultAiTool") or defaults.default_ai_tool,
        tool_presets=presets,
        history=history,
        default_repo=raw.get("defaultRepo"),
        worktree_root=raw.get("worktreeRoot"),
    )


def _history_items(raw: dict[str, Any]) -> list[Any]:
    history = raw.get("history") or {}
    if not isinstance(history, dict):
        raise ValidationError("Config key 'history' must be an object with a 'tasks' list.")
    tasks = history.get("tasks") or []
    if not isinstance(tasks, list):
        raise ValidationError("Config key 'history.tasks' must be a list.")
    return tasks


def config_to_dict(config: TreeAIConfig) -> dict[str, Any]:
    data: dict[str, Any] = {
        "recentRepos": list(config.recent_repos),
        "defaultPermissionMode": config.default_permission_mode,
        "defaultAiTool": config.default_ai_tool,
        "toolPresets": {
            name: {"executable": preset.executable, "args": list(preset.args)}
            for name, preset in config.tool_presets.items()
        },
        "history": {"tasks": [_history_to_dict(entry) for entry in config.history]},
    }
    if config.default_repo:
        data["defaultRepo"] = config.default_repo
    if config.worktree_root:
        data["worktreeRoot"] = config.worktree_root
    return data


def _history_to_dict(entry: TaskHistoryEntry) -> dict[str, Any]:
    raw = asdict(entry)
    data = {
        "name": raw["name"],
        "branch": raw["branch"],
        "repo": raw["repo"],
        "worktreePath": raw["worktree_path"],
        "lastUsed": raw["last_used"],
    }
    if entry.base_branch:
        data["baseBranch"] = entry.base_branch
    return data


def _timestamp(now: datetime | None = None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def update_recent_repos(config: TreeAIConfig, repo_path: str) -> TreeAIConfig:
    recent = [repo_path, *(repo for repo in config.recent_repos if repo != repo_path)]
    return replace(config, default_repo=repo_path, recent_repos=recent[:MAX_RECENT_REPOS])


def record_task_history(
    config: TreeAIConfig,
    *,
    name: str,
    branch: str,
    repo: str,
    worktree_path: str,
    base_branch: str | None = None,
    now: datetime | None = None,
) -> TreeAIConfig:
    """Upsert the ``(repo, name)`` entry at the front of the history."""

    entry = TaskHistoryEntry(
        name=name,
        branch=branch,
        repo=repo,
        worktree_path=worktree_path,
        last_used=_timestamp(now),
        base_branch=base_branch,
    )
    others = [item for item in config.history if not (item.name == name and item.repo == repo)]
    return replace(config, history=[entry, *others][:MAX_HISTORY_TASKS])


def touch_task_history(
    config: TreeAIConfig,
    *,
    repo: str,
    branch: str,
    worktree_path: str,
    now: datetime | None = None,
) -> TreeAIConfig:
    """Refresh the entry matching ``(repo, branch)``; never creates one."""

    stamp = _timestamp(now)
    touched = [
        replace(item, worktree_path=worktree_path, last_used=stamp)
        if item.repo == repo and item.branch == branch
        else item
        for item in config.history
    ]
    touched.sort(key=lambda item: item.last_used, reverse=True)
    return replace(config, history=touched[:MAX_HISTORY_TASKS])


def get_worktree_root(config: TreeAIConfig, repo_path: Path) -> Path:
    if config.worktree_root:
        return Path(config.worktree_root).expanduser()
    return Path.home() / ".treeai" / repo_path.name
