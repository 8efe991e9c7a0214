"""Core functionality for git-branch-flow"""

import time
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple, Union

import git
from rich.console import Console

from git_branch_flow.config import Config
from git_branch_flow.constants import (
    DEFAULT_COMMIT_MESSAGE,
    GITHUB_URL,
    ISSUE_PR_TITLE_PREFIX,
    ISSUE_SIGN,
    MIN_PR_TITLE_LENGTH,
    MSG_OK_SEE_YOU,
    MSG_PRE_COMMIT_ERROR,
    ORIGIN,
    UPSTREAM,
)
from git_branch_flow.core.lifecycle import BranchLifecycle, TitleProvider
from git_branch_flow.exceptions import (
    BranchExistsError,
    GitHubCLIError,
    GitOperationError,
    NotesNotFoundError,
    StateError,
    UncommittedChangesError,
    UserInputError,
)
from git_branch_flow.formatters import format_branch_list, format_pull_request, format_sync_state
from git_branch_flow.logging_config import get_logger
from git_branch_flow.models.branch import BranchType, SyncState
from git_branch_flow.models.metadata import deserialize, serialize
from git_branch_flow.models.topology import RemoteTopology
from git_branch_flow.services.branch_classification import classify_branch
from git_branch_flow.services.git import (
    GitOperations,
    HookService,
    NotesService,
    SyncEngine,
    TopologyResolver,
)
from git_branch_flow.services.git.notes import get_body_from_notes, get_note_and_url
from git_branch_flow.services.github_service import GitHubService
from git_branch_flow.services.naming import (
    build_branch_name,
    build_issue_branch_name,
    clear_empty_args,
    dev_branch_name,
    jira_ticket_id,
    normalize_branch_name,
    parse_github_issue_url,
    split_args,
)
from git_branch_flow.services.retry import RetryPolicy
from git_branch_flow.services.runner import CommandRunner

console = Console()
logger = get_logger(__name__)


@dataclass
class DevBranchPlan:
    """What `dev` is about to create."""
    branch: str
    notes: List[str]
    check_remote: bool = True
    # (issue number, owner/repo) for branches created through `gh issue develop`
    issue: Optional[Tuple[int, str]] = None


class BranchFlow:
    """Entry point for the dev/pr workflow commands."""

    def __init__(self, repo_path: str, config: Union[Config, dict],
                 runner: Optional[CommandRunner] = None,
                 ticket_title: Optional[TitleProvider] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 output: Optional[Console] = None):
        """Initialize BranchFlow.

        Args:
            repo_path: Path inside the git working copy
            config: Configuration dict or Config object
            runner: Command executor (defaults to one rooted at the working copy)
            ticket_title: Optional Jira ticket title lookup
            sleep: Used for retry backoff and post-mutation pauses
            output: Console for messages and prompts
        """
        if isinstance(config, dict):
            config = Config.from_dict(config)
        self.config = config

        try:
            self.repo = git.Repo(repo_path, search_parent_directories=True)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError) as e:
            raise StateError(f"Not a git repository: {repo_path}") from e
        self.repo_path = self.repo.working_tree_dir

        self.console = output or console
        self.sleep = sleep
        self.ticket_title = ticket_title

        self.runner = runner or CommandRunner(self.repo_path)
        self.retry = RetryPolicy.from_config(self.config, sleep=sleep)
        self.ops = GitOperations(self.runner, self.retry)
        self.notes = NotesService(self.ops)
        self.github = GitHubService(self.runner, self.retry)
        self.topology = TopologyResolver(self.ops, self.github)
        self.sync = SyncEngine(self.ops)
        self.hooks = HookService(self.ops)
        self.lifecycle = BranchLifecycle(self.ops, self.notes, self.github, ticket_title)

    def close(self) -> None:
        self.repo.close()

    # Interaction helpers

    def _confirm(self, question: str) -> bool:
        """Ask a yes/no question; --force answers yes."""
        if self.config.force:
            return True
        response = self.console.input(f"{question} [y/N] ")
        return response.strip().lower() == "y"

    def _settle(self) -> None:
        """Give GitHub time to reflect a mutation before the next read."""
        if self.config.gh_timeout > 0:
            self.sleep(self.config.gh_timeout)

    def _require_gh(self) -> None:
        if not self.github.is_authenticated():
            raise GitHubCLIError("auth status", "gh is not authenticated, run 'gh auth login' first")

    def _ensure_upstream(self, topology: RemoteTopology) -> Optional[RemoteTopology]:
        """Offer to add the parent repository as upstream; None if the user declines."""
        if topology.has_upstream or not topology.has_parent:
            return topology
        if not self._confirm(
            f"Upstream not found.\nRepository {topology.parent_repo} will be added as upstream. Agree?"
        ):
            return None
        self.ops.add_remote(UPSTREAM, f"{GITHUB_URL}/{topology.parent_repo}")
        self.ops.fetch(UPSTREAM, prune=False)
        return replace(topology, has_upstream=True)

    def _ensure_hook(self) -> None:
        if self.hooks.pre_commit_installed():
            self.hooks.ensure_up_to_date()
        elif self._confirm("Install the pre-commit hook that rejects oversized commits?"):
            self.hooks.install()

    def _branch_notes(self, branch: str, main_branch: str) -> List[str]:
        try:
            note_lines, _ = self.notes.branch_notes(branch, main_branch)
        except NotesNotFoundError:
            return []
        return note_lines

    # Commands

    def dev(self, args: Sequence[str]) -> Optional[str]:
        """Create a dev branch from free text, a task URL, a Jira URL or a GitHub issue URL.

        Uncommitted changes are stashed first and restored on the new branch.

        Args:
            args: Words describing the branch

        Returns:
            Name of the created branch, or None if the user declined
        """
        self._require_gh()

        topology = self.topology.resolve()
        if not self.config.no_fork and not topology.has_parent:
            raise StateError(
                f"You are in {topology.full_name} repo. Execute 'git-branch-flow fork' first"
            )

        main = topology.main_branch
        current = self.ops.current_branch()
        if current != main:
            raise UserInputError(
                f"You are on {topology.full_name}/{current}. Switch to {main} before creating a dev branch"
            )

        stashed = self.ops.stash()
        try:
            plan = self._plan_dev_branch(args)
            if plan is None:
                self.console.print(MSG_OK_SEE_YOU)
                return None

            if self.ops.local_branch_exists(plan.branch):
                raise BranchExistsError(plan.branch, "the local repository")

            topology = self._ensure_upstream(topology)
            if topology is None:
                self.console.print(MSG_OK_SEE_YOU)
                return None

            self.sync.sync_main_branch(main, topology.has_upstream)
            branch_name = plan.branch
            if plan.issue is not None:
                branch_name = self._develop_issue(plan, topology)
            branch = self.lifecycle.create_dev_branch(
                branch_name, main, plan.notes, check_remote=plan.check_remote
            )
            self._settle()
            self._ensure_hook()
        finally:
            if stashed:
                self.ops.stash_pop()

        self.console.print(f"[green]Dev branch '{branch}' created[/green]")
        return branch

    def _plan_dev_branch(self, args: Sequence[str]) -> Optional[DevBranchPlan]:
        words = clear_empty_args(args)
        if not words:
            raise UserInputError("Need branch name for dev")

        issue = parse_github_issue_url(words[0]) if len(words) == 1 else None
        if issue is not None:
            owner, repo, number = issue
            if not self._confirm(f"Dev branch for issue #{number} will be created. Agree?"):
                return None
            return self._plan_issue_branch(words[0], f"{owner}/{repo}", number)

        description = " ".join(words)
        jira = jira_ticket_id(words)
        if jira is not None:
            key, url = jira
            title = self.ticket_title(url) if self.ticket_title is not None else ""
            if title:
                name = build_branch_name([title], ticket_id=key)
                notes = [f"[{key}] {title}", *words, serialize("", url, BranchType.DEV, title)]
            else:
                name = build_branch_name(words)
                notes = [*split_args(words), serialize("", url, BranchType.DEV, description)]
        else:
            name = build_branch_name(words)
            notes = [*split_args(words), serialize("", "", BranchType.DEV, description)]

        name = normalize_branch_name(name)
        if not name:
            raise UserInputError("Need branch name for dev")
        branch = dev_branch_name(name)
        if not self._confirm(f"Dev branch '{branch}' will be created. Continue?"):
            return None
        return DevBranchPlan(branch, notes)

    def _plan_issue_branch(self, issue_url: str, issue_repo: str, number: int) -> DevBranchPlan:
        title = self.github.issue_title(number, issue_repo)
        name = normalize_branch_name(build_issue_branch_name(number, title))
        if self.ops.remote_branch_exists(name, ORIGIN):
            raise BranchExistsError(name, ORIGIN)

        notes = [
            f"{ISSUE_PR_TITLE_PREFIX} '{title}' ",
            f"{ISSUE_SIGN}{number} {title}" if title else "",
            serialize(issue_url, "", BranchType.DEV, title),
        ]
        # gh creates the branch on origin, so the remote check is skipped later
        return DevBranchPlan(name, notes, check_remote=False, issue=(number, issue_repo))

    def _develop_issue(self, plan: DevBranchPlan, topology: RemoteTopology) -> str:
        """Let GitHub create the issue-linked branch on origin."""
        number, issue_repo = plan.issue
        self.github.set_default_repo(topology.full_name)
        branch = self.github.develop_issue(
            number, topology.full_name, issue_repo, plan.branch, topology.main_branch
        )
        self._settle()
        return branch

    def pr(self, draft: bool = False) -> Optional[str]:
        """Promote the current dev branch (if needed) and open a pull request.

        Returns:
            URL of the new or existing pull request, None if the user declined
        """
        self._require_gh()

        topology = self.topology.resolve()
        main = topology.main_branch
        branch = self.ops.current_branch()

        branch_type = classify_branch(branch, self._branch_notes(branch, main))
        logger.info(f"Branch type of {branch} is {branch_type}")
        if branch_type == BranchType.UNKNOWN:
            raise UserInputError("you must be on a dev or pr branch")
        if not topology.has_parent:
            raise StateError("you are in trunk, pull requests are only allowed from a forked repository")

        topology = self._ensure_upstream(topology)
        if topology is None:
            self.console.print(MSG_OK_SEE_YOU)
            return None

        if branch_type == BranchType.DEV:
            if self.ops.has_uncommitted_changes():
                raise UncommittedChangesError("you have modified files, commit and upload them first")
            result = self.lifecycle.promote(branch, topology)
            branch = result.pr_branch
            self._settle()
        else:
            self.ops.push_notes(ORIGIN)
            self.ops.push_branch(branch, ORIGIN)

        existing = self.github.find_pull_request(branch, topology.parent_repo)
        if existing is not None:
            self.console.print(f"Pull request already exists for this branch: {format_pull_request(existing)}")
            return existing.url

        note_lines, _ = self.notes.branch_notes(branch, main)
        title, body = self._pull_request_text(note_lines)
        url = self.github.create_pull_request(
            topology.parent_repo, topology.account, branch, title, body, draft=draft
        )
        self._settle()
        self.console.print(f"[green]Pull request created:[/green] {url}")
        return url

    def _pull_request_text(self, note_lines: List[str]):
        """Title and body of a pull request built from branch notes."""
        metadata = deserialize(note_lines)
        if metadata is None:
            raise NotesNotFoundError("no branch metadata found in notes")

        custom_branch = False
        if metadata.github_issue_url:
            title = self.github.issue_description(metadata.github_issue_url)
        elif metadata.jira_ticket_url and self.ticket_title is not None:
            title = self.ticket_title(metadata.jira_ticket_url)
        else:
            custom_branch = True
            title = metadata.description
            if not title:
                title = self.console.input("Enter pull request title: ").strip()
        if len(title) < MIN_PR_TITLE_LENGTH:
            raise UserInputError("too short pull request title")

        note, url = get_note_and_url(note_lines)
        body = get_body_from_notes(note_lines)
        if not body and not custom_branch:
            body = note
        if url:
            body = f"{body}\n{url}"
        return title, body

    def download(self) -> SyncState:
        """Fetch and fast-forward main and the current branch."""
        main = self.topology.main_branch()
        state = self.sync.download(main, self.topology.has_upstream())
        self.console.print(format_sync_state(self.ops.current_branch(), state))
        return state

    def upload(self, message_words: Sequence[str] = ()) -> bool:
        """Commit local changes, pull, then push notes and the branch.

        Returns:
            False if the user declined to bypass the pre-commit size check
        """
        branch = self.ops.current_branch()
        tracked = {b.name: b for b in self.ops.tracked_branches()}.get(branch)
        has_tracking = bool(tracked and tracked.upstream and not tracked.gone)

        if self.ops.has_uncommitted_changes():
            message = " ".join(clear_empty_args(message_words))
            if not message:
                main = self.topology.main_branch()
                if classify_branch(branch, self._branch_notes(branch, main)) == BranchType.PR:
                    raise UserInputError("a commit message is required on a pr branch, use -m")
                message = DEFAULT_COMMIT_MESSAGE
            if not self._commit(message):
                return False

        if has_tracking:
            self.sync.pull_branch(branch)
        self.ops.push_notes(ORIGIN)
        self.ops.push_branch(branch, ORIGIN, set_upstream=not has_tracking)
        self.console.print(f"[green]Uploaded {branch}[/green]")
        return True

    def _commit(self, message: str) -> bool:
        self.ops.stage_all()
        try:
            self.ops.commit(message)
        except GitOperationError as e:
            if MSG_PRE_COMMIT_ERROR not in str(e):
                raise
            self.console.print(f"[yellow]{(e.message or '').strip()}[/yellow]")
            if not self._confirm("Do you want to commit anyway?"):
                return False
            self.ops.commit(message, no_verify=True)
        return True

    def fork(self) -> str:
        """Fork origin on GitHub and rewire remotes: origin -> upstream, fork -> origin.

        Returns:
            Full name of the fork
        """
        self._require_gh()
        account, repo = self.topology.org_and_repo()
        if self.topology.has_upstream():
            raise StateError("the repository is already forked (an upstream remote exists)")
        # Origin owned by the user means it already is the user's fork
        if not self.topology.is_fork():
            raise StateError(f"{account}/{repo} already belongs to you, nothing to fork")

        main = self.topology.main_branch()
        stashed = self.ops.stash()
        try:
            self.github.fork(f"{account}/{repo}")
            self._settle()
            login = self.github.user_login()
            self.github.verify_repository(f"{login}/{repo}")

            self.ops.rename_remote(ORIGIN, UPSTREAM)
            self.ops.add_remote(ORIGIN, f"{GITHUB_URL}/{login}/{repo}")
            self.ops.fetch(ORIGIN)
            self.ops.set_upstream(main, f"{ORIGIN}/{main}")
        finally:
            if stashed:
                self.ops.stash_pop()

        fork_name = f"{login}/{repo}"
        self.console.print(f"[green]Fork {fork_name} created, {account}/{repo} is now upstream[/green]")
        return fork_name

    def cleanup(self) -> List[str]:
        """Delete branches whose pull request merged, then branches gone from origin.

        Returns:
            Names of deleted branches
        """
        self._require_gh()
        topology = self.topology.resolve()
        self.ops.fetch(ORIGIN, prune=True)

        deleted: List[str] = []
        merged = self.lifecycle.find_merged_branches(topology)
        if merged:
            self.console.print("Branches with merged pull requests:")
            self.console.print(format_branch_list(merged))
            if self._confirm("\nDelete these branches locally and on origin?"):
                deleted.extend(self.lifecycle.delete_branches(merged))

        gone = [b for b in self.lifecycle.find_gone_branches(topology.main_branch) if b not in deleted]
        if gone:
            self.console.print("Local branches whose origin branch was deleted:")
            self.console.print(format_branch_list(gone))
            if self._confirm("\nDelete these local branches?"):
                deleted.extend(self.lifecycle.delete_branches(gone, remote=False))

        if not deleted:
            self.console.print("Nothing to clean up")
        return deleted

    def install_hook(self) -> None:
        """Install the pre-commit hook or refresh its content."""
        if self.hooks.pre_commit_installed():
            if self.hooks.ensure_up_to_date():
                self.console.print("Pre-commit hook updated")
            else:
                self.console.print("Pre-commit hook is up to date")
            return
        self.hooks.install()
        self.console.print(f"[green]Pre-commit hook installed at {self.hooks.pre_commit_path}[/green]")
