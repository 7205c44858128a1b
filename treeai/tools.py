"""Build and launch AI assistant commands."""

from __future__ import annotations

import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from . import render
from .models import TreeAIConfig

PERMISSION_MODE_ARGS: dict[str, tuple[str, ...]] = {
    "default": (),
    "acceptEdits": ("--permission-mode", "acceptEdits"),
    "bypassPermissions": ("--dangerously-skip-permissions",),
    "sandboxBashMode": ("--permission-mode", "sandboxBashMode"),
    "strict": ("--strict-permissions",),
}


@dataclass(frozen=True)
class ToolCommand:
    executable: str
    args: list[str]


def build_tool_command(
    config: TreeAIConfig,
    *,
    tool_name: str | None = None,
    permission_mode: str | None = None,
    extra_args: Sequence[str] = (),
) -> ToolCommand | None:
    """Combine a preset with the permission mode and any extra arguments.

    Permission arguments are only added when a mode was given explicitly, and
    never duplicate arguments the preset already carries.
    """

    name = tool_name or config.default_ai_tool
    if not name:
        return None
    preset = config.tool_presets.get(name)
    if preset is None:
        render.warning(f"No tool preset named '{name}'; check the toolPresets section of your config.")
        return None
    args = list(preset.args)
    if permission_mode:
        for arg in PERMISSION_MODE_ARGS.get(permission_mode, ()):
            if arg not in args:
                args.append(arg)
    args.extend(extra_args)
    return ToolCommand(executable=preset.executable, args=args)


def resolve_executable(executable: str) -> str | None:
    if not executable:
        return None
    if os.path.isabs(executable) or "/" in executable or "\\" in executable:
        return executable if Path(executable).exists() else None
    return shutil.which(executable)


def launch_tool(
    config: TreeAIConfig,
    *,
    working_directory: Path,
    tool_name: str | None = None,
    permission_mode: str | None = None,
    extra_args: Sequence[str] = (),
    dry_run: bool = False,
) -> bool:
    """Run the configured tool inside ``working_directory`` and wait for it."""

    command = build_tool_command(
        config,
        tool_name=tool_name,
        permission_mode=permission_mode,
        extra_args=extra_args,
    )
    if command is None:
        return False
    cwd = working_directory.expanduser().resolve()
    resolved = resolve_executable(command.executable)
    if resolved is None:
        render.error(
            f"Executable not found: {command.executable}. Install the tool or update its "
            "executable in the treeai config file."
        )
        render.info("Run `treeai status` to see the current configuration.")
        return False
    if dry_run:
        render.info(f"Dry run: {resolved} {' '.join(command.args)}")
        render.info(f"Working directory: {cwd}")
        return True
    render.info(f"Starting {command.executable}...")
    render.debug(f"command={[resolved, *command.args]} cwd={cwd}")
    try:
        subprocess.run([resolved, *command.args], cwd=str(cwd), check=False)
    except OSError as exc:
        render.error(f"Failed to start {command.executable}: {exc}")
        return False
    return True
