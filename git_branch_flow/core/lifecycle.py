"""Dev -> PR branch lifecycle: create, promote and clean up"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

from git_branch_flow.constants import (
    DEFAULT_COMMIT_MESSAGE,
    DEV_SUFFIX,
    MSG_COMMIT_FOR_NOTES,
    ORIGIN,
    UPSTREAM,
)
from git_branch_flow.exceptions import BranchExistsError, NotesNotFoundError, UserInputError
from git_branch_flow.logging_config import get_logger
from git_branch_flow.models.branch import BranchType
from git_branch_flow.models.metadata import BranchMetadata, deserialize, migrate_note_lines
from git_branch_flow.models.topology import RemoteTopology
from git_branch_flow.services.git.notes import NotesService
from git_branch_flow.services.git.operations import GitOperations
from git_branch_flow.services.github_service import GitHubService
from git_branch_flow.services.naming import normalize_branch_name, pr_branch_name

logger = get_logger(__name__)

# Resolves a ticket URL to its title; the Jira lookup lives outside this package
TitleProvider = Callable[[str], str]


@dataclass
class PromotionResult:
    """Outcome of promoting a dev branch."""
    dev_branch: str
    pr_branch: str
    metadata: BranchMetadata
    commit_message: str
    note_lines: List[str]


class BranchLifecycle:
    """State transitions of a branch: no-branch -> dev -> pr -> no-branch.

    Steps run in order and stop at the first failure. Nothing is rolled back;
    the git diagnostic of the failing step is surfaced as is.
    """

    def __init__(self, ops: GitOperations, notes: NotesService, github: GitHubService,
                 ticket_title: Optional[TitleProvider] = None):
        """Initialize the lifecycle.

        Args:
            ops: Git operations bound to the working copy
            notes: Notes reader/writer
            github: gh CLI service for issue titles and pull request lookups
            ticket_title: Optional Jira title lookup used for commit messages
        """
        self.ops = ops
        self.notes = notes
        self.github = github
        self.ticket_title = ticket_title

    def create_dev_branch(self, branch_name: str, main_branch: str, note_lines: Iterable[str],
                          check_remote: bool = True) -> str:
        """Create a dev branch from main and publish it with its notes.

        Args:
            branch_name: Desired branch name, normalized before use
            main_branch: Name of the main branch
            note_lines: Free-text notes plus the serialized metadata record
            check_remote: Refuse to proceed if origin already has the branch;
                          skipped for branches created by `gh issue develop`

        Returns:
            The normalized branch name

        Raises:
            UserInputError: If the name is empty after normalization
            BranchExistsError: If the branch exists locally or on origin
        """
        branch = normalize_branch_name(branch_name)
        if not branch:
            raise UserInputError("Need branch name for dev")

        if self.ops.local_branch_exists(branch):
            raise BranchExistsError(branch, "the local repository")
        self.ops.checkout(main_branch)
        if check_remote and self.ops.remote_branch_exists(branch, ORIGIN):
            raise BranchExistsError(branch, ORIGIN)

        self.ops.checkout_reset(branch)
        self.ops.fetch_notes(ORIGIN)
        # Notes attach to commits, so a fresh branch needs one of its own
        self.ops.commit_allow_empty(MSG_COMMIT_FOR_NOTES)
        self.notes.append(note_lines)

        self.ops.push_notes(ORIGIN)
        self.ops.push_branch(branch, ORIGIN)
        logger.info(f"Created dev branch {branch}")
        return branch

    def promote(self, dev_branch: str, topology: RemoteTopology) -> PromotionResult:
        """Squash a dev branch into a fresh PR branch and delete the dev branch.

        Args:
            dev_branch: Dev branch to promote
            topology: Resolved remotes of the working copy

        Returns:
            PromotionResult describing the new PR branch

        Raises:
            UserInputError: If the dev branch has no work beyond its notes commit
            NotesNotFoundError: If the dev branch carries no metadata record
        """
        main = topology.main_branch
        base_remote = topology.main_remote
        pr_branch = pr_branch_name(dev_branch)

        self.ops.fetch(base_remote, prune=False)
        if base_remote != ORIGIN:
            self.ops.fetch(ORIGIN, prune=False)
        self.ops.fetch_notes(ORIGIN)

        note_lines, rev_count = self.notes.branch_notes(dev_branch, main)
        # A single commit is only the notes anchor
        if rev_count < 2:
            raise UserInputError(f"no commits found in dev branch '{dev_branch}'")

        self.ops.checkout(dev_branch)
        self.ops.merge(f"{ORIGIN}/{main}")
        if topology.has_upstream:
            self.ops.merge(f"{UPSTREAM}/{main}")

        self.ops.create_branch(pr_branch, f"{base_remote}/{main}")
        self.ops.merge_squash(dev_branch)

        metadata = deserialize(note_lines)
        if metadata is None:
            raise NotesNotFoundError(f"no branch metadata found in notes of '{dev_branch}'")
        metadata = metadata.with_branch_type(BranchType.PR)

        commit_message = self.commit_message(metadata)
        self.ops.commit(commit_message)

        migrated = migrate_note_lines(note_lines, metadata)
        self.notes.append(migrated)

        self.ops.push_notes(ORIGIN)
        self.ops.push_branch(pr_branch, ORIGIN)

        self.delete_branch(dev_branch, has_upstream=topology.has_upstream)
        logger.info(f"Promoted {dev_branch} to {pr_branch}")
        return PromotionResult(dev_branch, pr_branch, metadata, commit_message, migrated)

    def commit_message(self, metadata: BranchMetadata) -> str:
        """Squash commit message: tracker title, else the stored description, else 'wip'."""
        if metadata.github_issue_url:
            title = self.github.issue_description(metadata.github_issue_url)
            if title:
                return title
        if metadata.jira_ticket_url and self.ticket_title is not None:
            title = self.ticket_title(metadata.jira_ticket_url)
            if title:
                return title
        return metadata.description or DEFAULT_COMMIT_MESSAGE

    def delete_branch(self, branch: str, has_upstream: bool = False) -> None:
        """Delete a branch locally, on origin and, if present, on upstream.

        A remote that no longer has the branch counts as done.
        """
        if self.ops.local_branch_exists(branch):
            self.ops.delete_local_branch(branch)
        self.ops.delete_remote_branch(branch, ORIGIN)
        if has_upstream:
            self.ops.delete_remote_branch(branch, UPSTREAM)

    def find_merged_branches(self, topology: RemoteTopology) -> List[str]:
        """Local branches tracking origin whose pull request has been merged.

        A dev branch also counts as merged when its `-pr` sibling was merged.
        """
        current = self.ops.current_branch()
        repo = topology.pr_repo
        merged = []
        for tracked in self.ops.tracked_branches():
            name = tracked.name
            if name in (topology.main_branch, current):
                continue
            if not tracked.upstream or not tracked.upstream.startswith(f"{ORIGIN}/"):
                continue
            candidates = [name]
            if name.endswith(DEV_SUFFIX):
                candidates.append(pr_branch_name(name))
            if any(self.github.has_merged_pull_request(head, repo) for head in candidates):
                merged.append(name)
        logger.debug(f"Merged branches: {merged}")
        return merged

    def find_gone_branches(self, main_branch: str) -> List[str]:
        """Local branches whose origin counterpart was deleted."""
        current = self.ops.current_branch()
        return [
            b.name for b in self.ops.tracked_branches()
            if b.gone and b.name not in (main_branch, current)
        ]

    def delete_branches(self, branches: Iterable[str], remote: bool = True) -> List[str]:
        """Delete branches locally and, when asked, on origin.

        Returns:
            Names that were deleted
        """
        deleted = []
        for branch in branches:
            if remote:
                self.ops.delete_remote_branch(branch, ORIGIN)
            self.ops.delete_local_branch(branch)
            deleted.append(branch)
        return deleted
