"""Git operations service"""

from pathlib import Path
from typing import Dict, List, Optional

from git_branch_flow.constants import (
    AMBIGUOUS_CHECKOUT_PHRASE,
    NOTES_REFSPEC,
    ORIGIN,
    REMOTE_REF_MISSING_PHRASES,
)
from git_branch_flow.exceptions import CommandError, GitOperationError
from git_branch_flow.logging_config import get_logger
from git_branch_flow.models.branch import TrackedBranch
from git_branch_flow.services.retry import RetryPolicy
from git_branch_flow.services.runner import CommandResult, CommandRunner

logger = get_logger(__name__)

_TRACKING_FORMAT = "%(HEAD)|%(refname:short)|%(upstream:short)|%(upstream:track)"


def command_failure(operation: str, branch: Optional[str], result: CommandResult) -> GitOperationError:
    """GitOperationError for a failed command, chained from its CommandError."""
    error = GitOperationError(operation, branch, result.output)
    error.__cause__ = CommandError(result.args, result.returncode, result.stdout, result.stderr)
    return error


class GitOperations:
    """Thin wrappers around the git verbs the workflows need.

    Network operations (fetch, push, notes transfer, ls-remote) run through
    the retry policy. Failures surface as GitOperationError chained from the
    CommandError that carries the captured stderr.
    """

    def __init__(self, runner: CommandRunner, retry: Optional[RetryPolicy] = None):
        """Initialize the service.

        Args:
            runner: Executes git in the repository working directory
            retry: Policy for network operations (defaults to RetryPolicy())
        """
        self.runner = runner
        self.retry = retry or RetryPolicy()

    # Low level

    def run(self, *args: str) -> CommandResult:
        """Run `git <args>` without raising on failure."""
        return self.runner.run("git", *args)

    def check(self, operation: str, *args: str, branch: Optional[str] = None) -> CommandResult:
        """Run `git <args>` and raise GitOperationError if it fails."""
        result = self.run(*args)
        try:
            return result.check()
        except CommandError as e:
            raise GitOperationError(operation, branch, result.output or str(e)) from e

    def _retried(self, operation: str, *args: str, branch: Optional[str] = None) -> CommandResult:
        return self.retry.run(lambda: self.check(operation, *args, branch=branch), f"git {operation}")

    # Working tree

    def status_porcelain(self) -> str:
        return self.check("status", "status", "--porcelain").stdout

    def has_uncommitted_changes(self) -> bool:
        return bool(self.status_porcelain())

    def stash(self) -> bool:
        """Stash local changes including untracked files.

        Returns:
            True if anything was stashed
        """
        if not self.has_uncommitted_changes():
            return False
        self.check("stash", "stash", "push", "--include-untracked")
        return True

    def stash_pop(self) -> None:
        self.check("stash pop", "stash", "pop")

    def stage_all(self) -> None:
        self.check("add", "add", ".")

    def commit(self, message: str, no_verify: bool = False) -> CommandResult:
        """Commit the index; the error message includes hook output on rejection."""
        args = ["commit", "-m", message]
        if no_verify:
            args.append("--no-verify")
        return self.check("commit", *args)

    def commit_allow_empty(self, message: str) -> None:
        self.check("commit", "commit", "--allow-empty", "-m", message)

    def absolute_git_dir(self) -> Path:
        return Path(self.check("rev-parse", "rev-parse", "--absolute-git-dir").stdout)

    # Branches

    def current_branch(self) -> str:
        return self.check("branch --show-current", "branch", "--show-current").stdout

    def remote_branches(self) -> str:
        """Raw `git branch -r` listing."""
        return self.check("branch -r", "branch", "-r").stdout

    def has_remote_tracking_branch(self, branch: str, remote: str = ORIGIN) -> bool:
        wanted = f"{remote}/{branch}"
        return any(line.strip() == wanted for line in self.remote_branches().splitlines())

    def local_branch_exists(self, branch: str) -> bool:
        return self.run("rev-parse", "--verify", "--quiet", f"refs/heads/{branch}").ok

    def tracked_branches(self) -> List[TrackedBranch]:
        """Local branches with their upstream and whether it was deleted remotely."""
        output = self.check(
            "for-each-ref", "for-each-ref", f"--format={_TRACKING_FORMAT}", "refs/heads"
        ).stdout
        branches = []
        for line in output.splitlines():
            parts = line.split("|")
            if len(parts) != 4:
                continue
            head, name, upstream, track = parts
            branches.append(TrackedBranch(
                name=name,
                upstream=upstream or None,
                gone="gone" in track,
                current=head.strip() == "*",
            ))
        return branches

    def checkout(self, branch: str) -> None:
        """Switch to a branch, tracking origin when the name is ambiguous."""
        result = self.run("checkout", branch)
        if result.ok:
            return
        if AMBIGUOUS_CHECKOUT_PHRASE in result.output:
            logger.debug(f"'{branch}' matched multiple refs, checking out origin/{branch}")
            self.check("checkout", "checkout", "--track", f"{ORIGIN}/{branch}", branch=branch)
            return
        raise command_failure("checkout", branch, result)

    def checkout_reset(self, branch: str, start_point: Optional[str] = None) -> None:
        """`git checkout -B`: create or reset a branch and switch to it."""
        args = ["checkout", "-B", branch]
        if start_point:
            args.append(start_point)
        self.check("checkout -B", *args, branch=branch)

    def create_branch(self, branch: str, start_point: str) -> None:
        self.check("checkout -b", "checkout", "-b", branch, start_point, branch=branch)

    def delete_local_branch(self, branch: str) -> None:
        self.check("branch -D", "branch", "-D", branch, branch=branch)

    def set_upstream(self, branch: str, upstream: str) -> None:
        self.check("branch --set-upstream-to", "branch", f"--set-upstream-to={upstream}", branch, branch=branch)

    def merge(self, ref: str) -> None:
        self.check("merge", "merge", "--no-edit", ref, branch=ref)

    def merge_squash(self, ref: str) -> None:
        self.check("merge --squash", "merge", "--squash", ref, branch=ref)

    def rev_list(self, revision_range: str) -> List[str]:
        """Commit hashes in a range, newest first."""
        return self.check("rev-list", "rev-list", revision_range).stdout.split()

    def rev_count(self, revision_range: str) -> int:
        return int(self.check("rev-list --count", "rev-list", "--count", revision_range).stdout or 0)

    # Remotes

    def remotes(self) -> Dict[str, str]:
        """Remote names mapped to their fetch URLs."""
        remotes = {}
        for line in self.check("remote -v", "remote", "-v").stdout.splitlines():
            parts = line.split()
            if len(parts) >= 3 and parts[2] == "(fetch)":
                remotes[parts[0]] = parts[1]
        return remotes

    def has_remote(self, name: str) -> bool:
        return name in self.remotes()

    def remote_url(self, name: str = ORIGIN) -> str:
        return self.check("config remote url", "config", "--local", f"remote.{name}.url").stdout

    def add_remote(self, name: str, url: str) -> None:
        self.check("remote add", "remote", "add", name, url)

    def rename_remote(self, old: str, new: str) -> None:
        self.check("remote rename", "remote", "rename", old, new)

    def remote_branch_exists(self, branch: str, remote: str = ORIGIN) -> bool:
        result = self._retried("ls-remote", "ls-remote", "--heads", remote, branch, branch=branch)
        return bool(result.stdout)

    def fetch(self, remote: str = ORIGIN, prune: bool = True) -> None:
        args = ["fetch", remote]
        if prune:
            args.append("--prune")
        self._retried("fetch", *args)

    def fetch_notes(self, remote: str = ORIGIN) -> None:
        self._retried("fetch notes", "fetch", remote, "--force", NOTES_REFSPEC)

    def push_notes(self, remote: str = ORIGIN) -> None:
        self._retried("push notes", "push", remote, NOTES_REFSPEC)

    def push_branch(self, branch: str, remote: str = ORIGIN, set_upstream: bool = True) -> None:
        args = ["push"]
        if set_upstream:
            args.append("-u")
        args.extend([remote, branch])
        self._retried("push", *args, branch=branch)

    def delete_remote_branch(self, branch: str, remote: str = ORIGIN) -> bool:
        """Delete a branch on a remote.

        Returns:
            False when the remote did not have the branch, True otherwise
        """
        def attempt() -> bool:
            result = self.run("push", remote, "--delete", branch)
            if result.ok:
                return True
            if any(phrase in result.output for phrase in REMOTE_REF_MISSING_PHRASES):
                logger.debug(f"{remote}/{branch} does not exist, nothing to delete")
                return False
            raise command_failure("push --delete", branch, result)

        return self.retry.run(attempt, f"git push {remote} --delete {branch}")
