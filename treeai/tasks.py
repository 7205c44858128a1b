"""Task name normalization and branch/worktree naming."""

from __future__ import annotations

import re
import secrets
import string
from pathlib import Path

_ID_ALPHABET = string.ascii_lowercase + string.digits
_INVALID_BRANCH_CHARS = re.compile(r"[\x00-\x20~^:?*\[\]]+")
_SEGMENT_SPLIT = re.compile(r"[\\/]+")


def generate_task_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"task-{suffix}"


def _sanitize_segment(segment: str) -> str:
    cleaned = _INVALID_BRANCH_CHARS.sub("-", segment)
    cleaned = re.sub(r"\s+", "-", cleaned)
    cleaned = re.sub(r"-+", "-", cleaned)
    return cleaned.strip("-").strip()


def normalize_task_name(raw: str | None) -> str:
    """Turn free-form input into a git-safe task name.

    Blank input, or input with nothing usable left after cleanup, yields a
    freshly generated ``task-xxxxxx`` id.
    """

    if not raw or not raw.strip():
        return generate_task_id()
    segments = [_sanitize_segment(part) for part in _SEGMENT_SPLIT.split(raw.strip())]
    segments = [segment for segment in segments if segment]
    if not segments:
        return generate_task_id()
    return "/".join(segments)


def to_branch_name(task_name: str) -> str:
    normalized = normalize_task_name(task_name)
    if "/" in normalized:
        return normalized
    return f"feature/{normalized}"


def to_worktree_name(branch: str) -> str:
    return branch.replace("/", "-")


def build_worktree_path(root: Path, branch: str) -> Path:
    return root / to_worktree_name(branch)
