"""Typer-based CLI for treeai."""

from __future__ import annotations

from pathlib import Path

import typer

from . import __version__, git, interactive, render
from .config import (
    load_config,
    record_task_history,
    save_config,
    touch_task_history,
    update_recent_repos,
)
from .exceptions import (
    DirtyWorktreeError,
    RepoNotFoundError,
    TreeAIError,
    UserAbort,
    ValidationError,
)
from .finish import requested_actions, run_finish
from .models import FinishAction, FinishSession, TreeAIConfig, WorktreeRecord
from .report import action_label
from .resolver import resolve_target
from .tasks import generate_task_id, normalize_task_name, to_branch_name
from .tools import PERMISSION_MODE_ARGS, launch_tool
from .vcs import GitBackend
from .worktrees import WorktreeService, is_directory_empty, remove_directory

app = typer.Typer(
    help="Run AI coding assistants in disposable git worktrees",
    add_completion=False,
    no_args_is_help=True,
)

REPO_HELP = "Path to the git repository to operate on."
NON_INTERACTIVE_HELP = "Fail instead of prompting when information is missing."
YES_HELP = "Skip confirmation prompts (implies --non-interactive)."


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"treeai {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show additional debug information."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the treeai version and exit.",
    ),
) -> None:
    _ = version  # handled via callback
    render.set_verbose(verbose)


@app.command(help="Create a task worktree and launch an AI tool in it")
def start(
    task: str | None = typer.Argument(None, help="Task name, used to derive the branch and worktree names."),
    repo: Path | None = typer.Option(None, "--repo", help=REPO_HELP, file_okay=False),
    base: str | None = typer.Option(None, "--base", "-b", help="Branch the new task branch starts from."),
    worktree: Path | None = typer.Option(None, "--worktree", help="Custom worktree directory."),
    tool: str | None = typer.Option(None, "--tool", help="Name of the tool preset to launch."),
    tool_arg: list[str] | None = typer.Option(None, "--tool-arg", help="Extra argument for the tool (repeatable)."),
    permission_mode: str | None = typer.Option(
        None, "--permission-mode", help="Permission mode, e.g. acceptEdits or bypassPermissions."
    ),
    yes: bool = typer.Option(False, "--yes", help=YES_HELP),
    non_interactive: bool = typer.Option(False, "--non-interactive", help=NON_INTERACTIVE_HELP),
    skip_launch: bool = typer.Option(False, "--skip-launch", help="Create the worktree without launching a tool."),
    reuse_current: bool | None = typer.Option(
        None,
        "--reuse-current/--no-reuse-current",
        help="Launch the tool in the current directory instead of creating a worktree.",
    ),
) -> None:
    try:
        _validate_permission_mode(permission_mode)
        _start(
            task=task,
            repo=repo,
            base=base,
            worktree=worktree,
            tool=tool,
            tool_args=tool_arg or [],
            permission_mode=permission_mode,
            is_interactive=not (yes or non_interactive),
            skip_launch=skip_launch,
            reuse_current=reuse_current,
        )
    except TreeAIError as err:
        _fail(str(err))


@app.command(help="Switch to an existing task worktree and launch an AI tool in it")
def switch(
    repo: Path | None = typer.Option(None, "--repo", help=REPO_HELP, file_okay=False),
    tool: str | None = typer.Option(None, "--tool", help="Name of the tool preset to launch."),
    tool_arg: list[str] | None = typer.Option(None, "--tool-arg", help="Extra argument for the tool (repeatable)."),
    permission_mode: str | None = typer.Option(
        None, "--permission-mode", help="Permission mode, e.g. acceptEdits or bypassPermissions."
    ),
    yes: bool = typer.Option(False, "--yes", help=YES_HELP),
    non_interactive: bool = typer.Option(False, "--non-interactive", help=NON_INTERACTIVE_HELP),
    skip_launch: bool = typer.Option(False, "--skip-launch", help="Only print the worktree location."),
) -> None:
    is_interactive = not (yes or non_interactive)
    try:
        _validate_permission_mode(permission_mode)
        config = load_config()
        repo_path = _resolve_repo(repo, config, is_interactive=is_interactive)
        service = WorktreeService(repo_path, config)
        records = service.task_worktrees()
        if not records:
            render.warning("This repository has no worktrees yet; create one with `treeai start`.")
            return
        if is_interactive:
            selected = interactive.select_worktree(records, "Select worktree to switch to")
        else:
            selected = records[0]
        render.info(f"Worktree path: {selected.path}")
        render.info(f"Branch: {selected.branch or 'detached'}")
        _launch(
            config,
            selected.path,
            tool=tool,
            tool_args=tool_arg or [],
            permission_mode=permission_mode,
            skip_launch=skip_launch,
        )
        if selected.branch:
            render.raw(f"When you are done run: treeai finish {selected.branch}")
    except TreeAIError as err:
        _fail(str(err))


@app.command(help="Merge a task branch, remove its worktree and delete the branch")
def finish(
    task: str | None = typer.Argument(None, help="Task name, branch name or worktree path."),
    repo: Path | None = typer.Option(None, "--repo", help=REPO_HELP, file_okay=False),
    keep_branch: bool = typer.Option(False, "--keep-branch", help="Keep the branch instead of deleting it."),
    no_cleanup: bool = typer.Option(False, "--no-cleanup", help="Keep the worktree directory; only switch branches."),
    force: bool = typer.Option(
        False, "--force", help="Proceed despite uncommitted changes or an unmerged branch."
    ),
    yes: bool = typer.Option(False, "--yes", help=YES_HELP),
    non_interactive: bool = typer.Option(False, "--non-interactive", help=NON_INTERACTIVE_HELP),
    base: str | None = typer.Option(None, "--base", help="Base branch to merge into and switch to."),
) -> None:
    try:
        _finish(
            task=task,
            repo=repo,
            keep_branch=keep_branch,
            no_cleanup=no_cleanup,
            force=force,
            is_interactive=not (yes or non_interactive),
            base=base,
        )
    except TreeAIError as err:
        _fail(str(err))


@app.command(help="Show configuration, recent tasks and worktrees")
def status(
    repo: Path | None = typer.Option(None, "--repo", help=REPO_HELP, file_okay=False),
) -> None:
    try:
        config = load_config()
    except TreeAIError as err:
        _fail(str(err))
        return
    render.show_config_summary(config)

    candidate: Path | None = repo.expanduser().resolve() if repo else None
    if candidate is None and config.default_repo:
        candidate = Path(config.default_repo)
    if candidate is None:
        candidate = git.resolve_main_repo_path(Path.cwd())
    if candidate is None:
        render.warning("No repository selected; skipping the worktree list.")
        return
    try:
        repo_path = git.rev_parse_toplevel(candidate)
        records = git.worktree_list(repo_path)
    except (TreeAIError, OSError) as err:
        render.error(f"Unable to read repository information: {err}")
        return
    render.info(f"Repository: {repo_path}")
    render.info("Worktrees:")
    render.show_worktrees(records)


def _start(
    *,
    task: str | None,
    repo: Path | None,
    base: str | None,
    worktree: Path | None,
    tool: str | None,
    tool_args: list[str],
    permission_mode: str | None,
    is_interactive: bool,
    skip_launch: bool,
    reuse_current: bool | None,
) -> None:
    config = load_config()
    implicit_reuse = (
        reuse_current is None and is_interactive and not task and not base and worktree is None
    )
    if reuse_current or implicit_reuse:
        repo_path = _resolve_repo(repo, config, is_interactive=False)
        _reuse_current(
            config,
            repo_path,
            task=task,
            base=base,
            worktree=worktree,
            use_repo=repo is not None,
            tool=tool,
            tool_args=tool_args,
            permission_mode=permission_mode,
            skip_launch=skip_launch,
        )
        return

    repo_path = _resolve_repo(repo, config, is_interactive=is_interactive)
    service = WorktreeService(repo_path, config)
    default_base = base or service.default_base_branch()
    if not default_base:
        raise ValidationError("Unable to determine a base branch; pass --base.")
    if base or not is_interactive:
        base_branch = default_base
    else:
        base_branch = interactive.select_base_branch(service.local_branches(), default_base)

    provided = task
    if not provided and is_interactive:
        repo_tasks = [entry for entry in config.history if entry.repo == str(repo_path)]
        provided = interactive.select_history_task(repo_tasks)
    if not provided:
        provided = generate_task_id() if not is_interactive else interactive.text_input("Task name (used for the branch name)")

    task_name = normalize_task_name(provided)
    branch = to_branch_name(task_name)
    target = service.target_path(branch, worktree)

    existing = service.find_by_branch(branch)
    if existing is not None:
        render.warning(f"Branch {branch} already has a worktree: {existing.path}")
        if is_interactive and not interactive.confirm("Use the existing worktree?", default=True):
            raise UserAbort("Operation cancelled.")
        render.info(f"Worktree directory: {existing.path}")
        _launch(
            config,
            existing.path,
            tool=tool,
            tool_args=tool_args,
            permission_mode=permission_mode,
            skip_launch=skip_launch,
        )
        render.raw(f"When you are done run: treeai finish {task_name}")
        return

    if target.exists():
        if is_directory_empty(target):
            render.warning(f"Target directory {target} already exists and is empty; reusing it.")
        elif not is_interactive:
            raise ValidationError(f"Target directory already exists and is not empty: {target}")
        elif interactive.confirm(f"Directory {target} already exists. Delete it and continue?", default=False):
            remove_directory(target)
        else:
            raise UserAbort("Operation cancelled.")

    render.info(f"Creating branch {branch} from {base_branch} ...")
    service.create_worktree(branch, target, base_branch)
    render.success(f"Worktree created: {target}")
    render.info(f"Branch: {branch}")

    config = record_task_history(
        update_recent_repos(config, str(repo_path)),
        name=task_name,
        branch=branch,
        repo=str(repo_path),
        worktree_path=str(target),
        base_branch=base_branch,
    )
    save_config(config)

    _launch(
        config,
        target,
        tool=tool,
        tool_args=tool_args,
        permission_mode=permission_mode,
        skip_launch=skip_launch,
    )
    render.raw(f"When you are done run: treeai finish {task_name}")


def _reuse_current(
    config: TreeAIConfig,
    repo_path: Path,
    *,
    task: str | None,
    base: str | None,
    worktree: Path | None,
    use_repo: bool,
    tool: str | None,
    tool_args: list[str],
    permission_mode: str | None,
    skip_launch: bool,
) -> None:
    if base:
        raise ValidationError("--reuse-current cannot be combined with --base.")
    if task:
        render.warning(f"Ignoring task name {task}; no branch is created in this mode.")
    if worktree is not None:
        working_dir = worktree.expanduser().resolve()
        if not working_dir.exists():
            raise ValidationError(f"Directory does not exist: {working_dir}")
    elif use_repo:
        working_dir = repo_path
    else:
        working_dir = Path.cwd()
    render.info(f"Launching the AI tool in {working_dir} without creating a worktree.")
    config = update_recent_repos(config, str(repo_path))
    save_config(config)
    _launch(
        config,
        working_dir,
        tool=tool,
        tool_args=tool_args,
        permission_mode=permission_mode,
        skip_launch=skip_launch,
    )


def _finish(
    *,
    task: str | None,
    repo: Path | None,
    keep_branch: bool,
    no_cleanup: bool,
    force: bool,
    is_interactive: bool,
    base: str | None,
) -> None:
    config = load_config()
    repo_path = _resolve_repo(repo, config, is_interactive=is_interactive, main_checkout=True)
    base_branch = base or git.detect_default_base_branch(repo_path)
    if not base_branch:
        raise ValidationError("Unable to determine the base branch; pass --base.")

    backend = GitBackend(repo_path)
    target = resolve_target(
        task,
        backend.list_worktrees(),
        current_dir=git.resolve_repo_root(Path.cwd()),
        main_repo=repo_path,
        interactive=is_interactive,
        picker=interactive.select_worktree,
    )
    _check_target_clean(backend, target, force=force, is_interactive=is_interactive)

    actions = requested_actions(no_cleanup=no_cleanup, keep_branch=keep_branch)
    if is_interactive:
        actions = _prompt_finish_actions(target, base_branch, actions)

    session = FinishSession(
        target=target,
        repo_path=repo_path,
        base_branch=base_branch,
        original_branch=backend.current_branch(repo_path),
        requested=actions,
        force=force,
    )
    report = run_finish(backend, session)

    config = touch_task_history(
        update_recent_repos(config, str(repo_path)),
        repo=str(repo_path),
        branch=session.target_branch,
        worktree_path=str(target.path),
    )
    save_config(config)
    render.show_finish_report(report)


def _check_target_clean(
    backend: GitBackend,
    target: WorktreeRecord,
    *,
    force: bool,
    is_interactive: bool,
) -> None:
    if force or not target.path.exists() or backend.is_clean(target.path):
        return
    if not is_interactive:
        raise DirtyWorktreeError(
            f"Worktree {target.path} has uncommitted changes; commit them or use --force."
        )
    if not interactive.confirm(
        f"Worktree {target.path} has uncommitted changes. Continue anyway?", default=False
    ):
        raise UserAbort("Operation cancelled.")


def _prompt_finish_actions(
    target: WorktreeRecord,
    base_branch: str,
    defaults: frozenset[FinishAction],
) -> frozenset[FinishAction]:
    render.info("Available steps:")
    render.raw(f"  - {action_label(FinishAction.CHECKOUT_BASE, base_branch)}: check out {base_branch} in the main worktree.")
    render.raw(f"  - {action_label(FinishAction.REMOVE_WORKTREE, base_branch)}: delete {target.path} to free disk space.")
    render.raw(f"  - {action_label(FinishAction.DELETE_BRANCH, base_branch)}: delete the local branch {target.branch}.")
    options = [
        (FinishAction.CHECKOUT_BASE, f"Switch the main worktree to {base_branch}"),
        (FinishAction.REMOVE_WORKTREE, f"Remove worktree directory {target.path}"),
        (FinishAction.DELETE_BRANCH, f"Delete branch {target.branch}"),
    ]
    return interactive.select_finish_actions(options, defaults)


def _resolve_repo(
    repo: Path | None,
    config: TreeAIConfig,
    *,
    is_interactive: bool,
    main_checkout: bool = False,
) -> Path:
    """Pick the repository: --repo, the current directory, the default, then a prompt."""

    candidate: Path | None
    if repo is not None:
        candidate = repo.expanduser().resolve()
        if not candidate.exists():
            raise RepoNotFoundError(f"Repository path does not exist: {candidate}")
    else:
        cwd = Path.cwd()
        candidate = git.resolve_main_repo_path(cwd) if main_checkout else git.resolve_repo_root(cwd)
        if candidate is None and config.default_repo:
            candidate = Path(config.default_repo)
    if candidate is None:
        if not is_interactive:
            raise RepoNotFoundError("Unable to determine the git repository; pass --repo.")
        selected = interactive.select_repo(config.recent_repos, config.default_repo)
        if not selected:
            raise RepoNotFoundError("No repository selected; pass --repo.")
        candidate = Path(selected)

    if main_checkout:
        candidate = git.resolve_main_repo_path(candidate) or candidate
    root = git.resolve_repo_root(candidate)
    if root is None:
        raise RepoNotFoundError(f"{candidate} is not inside a git repository; pass --repo.")
    return root


def _launch(
    config: TreeAIConfig,
    path: Path,
    *,
    tool: str | None,
    tool_args: list[str],
    permission_mode: str | None,
    skip_launch: bool,
) -> None:
    if skip_launch:
        render.info("Skipped launching the AI tool.")
        render.info(f"You can run: cd {path}")
        return
    if launch_tool(
        config,
        working_directory=path,
        tool_name=tool,
        permission_mode=permission_mode,
        extra_args=tool_args,
    ):
        render.info(f"AI tool session in {path} ended.")


def _validate_permission_mode(mode: str | None) -> None:
    if mode and mode not in PERMISSION_MODE_ARGS:
        choices = ", ".join(PERMISSION_MODE_ARGS)
        raise ValidationError(f"Unknown permission mode '{mode}'. Choose one of: {choices}.")


def _fail(message: str, code: int = 1) -> None:
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(code)


if __name__ == "__main__":
    app()
