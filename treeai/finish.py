"""Task completion: merge safety gate, cleanup actions and their bookkeeping."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from . import render
from .exceptions import GitCommandError
from .models import FinishAction, FinishSession
from .report import FinishReport, build_report
from .vcs import VcsBackend


def requested_actions(*, no_cleanup: bool = False, keep_branch: bool = False) -> frozenset[FinishAction]:
    """Translate CLI flags into the set of actions a finish run should attempt."""

    actions = {FinishAction.CHECKOUT_BASE}
    if not no_cleanup:
        actions.add(FinishAction.REMOVE_WORKTREE)
    if not keep_branch:
        actions.add(FinishAction.DELETE_BRANCH)
    return frozenset(actions)


def checkout_base(backend: VcsBackend, session: FinishSession) -> None:
    if FinishAction.CHECKOUT_BASE not in session.requested:
        return
    try:
        backend.checkout(session.base_branch)
    except GitCommandError as exc:
        render.warning(f"Could not switch to {session.base_branch}: {exc}")
        session.current_branch = backend.current_branch(session.repo_path)
        return
    session.current_branch = session.base_branch
    session.mark_performed(FinishAction.CHECKOUT_BASE)
    render.success(f"Switched the main worktree to {session.base_branch}")


@contextmanager
def temporary_checkout(backend: VcsBackend, session: FinishSession) -> Iterator[None]:
    """Keep the base branch checked out for the duration of the block.

    A switch the user did not ask for is undone on exit, whatever happened
    inside the block. A requested switch counts as the checkout action.
    """

    switched_temporarily = False
    if session.current_branch != session.base_branch:
        backend.checkout(session.base_branch)
        session.current_branch = session.base_branch
        if FinishAction.CHECKOUT_BASE in session.requested:
            session.mark_performed(FinishAction.CHECKOUT_BASE)
        else:
            switched_temporarily = True
            render.info(f"Temporarily switched to {session.base_branch} to merge.")
    try:
        yield
    finally:
        if switched_temporarily:
            _restore_original_branch(backend, session)


def _restore_original_branch(backend: VcsBackend, session: FinishSession) -> None:
    original = session.original_branch
    if not original:
        render.warning("The main worktree was on a detached HEAD before finishing; leaving it on the base branch.")
        return
    if original == session.base_branch:
        return
    try:
        backend.checkout(original)
    except GitCommandError as exc:
        render.warning(f"Could not switch back to {original}: {exc}")
        return
    session.current_branch = original
    render.info(f"Switched back to the original branch {original}.")


def _abort_merge(backend: VcsBackend) -> None:
    try:
        backend.abort_merge()
    except GitCommandError as exc:
        render.warning(f"Could not abort the unfinished merge: {exc}")


def run_safety_gate(backend: VcsBackend, session: FinishSession) -> bool:
    """Decide whether the worktree and branch may be cleaned up.

    Merges the target branch into the base branch when it is not already an
    ancestor of it. A failed merge is aborted and blocks cleanup even in
    force mode; force only overrides a dirty main worktree or an unmerged
    branch.
    """

    if not session.requests_cleanup:
        session.cleanup_allowed = True
        return True

    branch = session.target_branch
    base = session.base_branch
    merged = backend.is_ancestor(branch, base)
    if merged:
        render.debug(f"{branch} is already merged into {base}")
        session.cleanup_allowed = True
        return True

    if not backend.is_clean(session.repo_path):
        if not session.force:
            session.cleanup_allowed = False
            render.error(
                f"The main worktree {session.repo_path} has uncommitted changes; commit them or use --force."
            )
            return False
        render.warning(f"The main worktree {session.repo_path} has uncommitted changes; continuing because of --force.")

    merge_started = False
    try:
        with temporary_checkout(backend, session):
            merge_started = True
            try:
                backend.merge(branch)
            except GitCommandError:
                _abort_merge(backend)
                raise
    except GitCommandError as exc:
        if not merge_started:
            _abort_merge(backend)
        session.cleanup_allowed = False
        render.error(f"Merging {branch} into {base} failed: {exc}")
        return False
    render.success(f"Merged {branch} into {base}.")
    merged = backend.is_ancestor(branch, base)

    if not merged and session.cleanup_allowed:
        if session.force:
            render.warning(f"{branch} is not merged into {base}; cleaning up anyway because of --force.")
        else:
            session.cleanup_allowed = False
            render.warning(f"{branch} is not merged into {base}; cleanup cancelled.")
    return session.cleanup_allowed


def run_cleanup(backend: VcsBackend, session: FinishSession) -> None:
    """Remove the worktree and delete the branch, as requested and allowed."""

    target = session.target
    branch = session.target_branch
    wants_removal = FinishAction.REMOVE_WORKTREE in session.requested
    wants_deletion = FinishAction.DELETE_BRANCH in session.requested

    if not session.cleanup_allowed:
        if wants_removal:
            session.mark_skipped(FinishAction.REMOVE_WORKTREE)
            render.warning(f"Skipped removing worktree {target.path}; it will be removed once the merge succeeds.")
        else:
            render.info(f"Keeping worktree {target.path}")
        if wants_deletion:
            session.mark_skipped(FinishAction.DELETE_BRANCH)
            render.warning(f"Skipped deleting branch {branch}; it will be deleted once the merge succeeds.")
        else:
            render.info(f"Keeping branch {branch}")
        return

    if wants_removal:
        render.info(f"Removing worktree {target.path} ...")
        backend.remove_worktree(target.path, force=session.force)
        session.mark_performed(FinishAction.REMOVE_WORKTREE)
        render.success("Worktree removed.")
    else:
        render.info(f"Keeping worktree {target.path}")

    if wants_deletion:
        # `branch -d` checks against HEAD of the main checkout, which is the
        # original branch again when the base was only checked out to merge.
        render.info(f"Deleting branch {branch} ...")
        try:
            backend.delete_branch(branch, force=session.force)
        except GitCommandError as exc:
            render.warning(f"Could not delete branch {branch}: {exc}")
        else:
            session.mark_performed(FinishAction.DELETE_BRANCH)
            render.success(f"Branch {branch} deleted.")
    else:
        render.info(f"Keeping branch {branch}")


def run_finish(backend: VcsBackend, session: FinishSession) -> FinishReport:
    """Run every requested action in order and report what happened.

    Only a failed worktree removal propagates; every other failure degrades
    the run to a partial result.
    """

    checkout_base(backend, session)
    run_safety_gate(backend, session)
    run_cleanup(backend, session)
    return build_report(session)
