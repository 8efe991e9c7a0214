"""GitHub operations through the pre-authenticated gh CLI"""

import json
from typing import Optional

from git_branch_flow.constants import NO_PULL_REQUESTS_PHRASE
from git_branch_flow.exceptions import CommandError, GitHubCLIError, RetryExhaustedError
from git_branch_flow.logging_config import get_logger
from git_branch_flow.models.branch import PullRequestInfo
from git_branch_flow.services.naming import parse_github_issue_url
from git_branch_flow.services.retry import RetryPolicy
from git_branch_flow.services.runner import CommandResult, CommandRunner

logger = get_logger(__name__)

PR_STATE_OPEN = "open"
PR_STATE_MERGED = "merged"


class GitHubService:
    """Service for GitHub repository, issue and pull request operations."""

    def __init__(self, runner: CommandRunner, retry: Optional[RetryPolicy] = None):
        """Initialize the GitHub service.

        Args:
            runner: Executes gh in the repository working directory
            retry: Policy applied to gh network calls
        """
        self.runner = runner
        self.retry = retry or RetryPolicy()
        self._login: Optional[str] = None

    def _gh(self, operation: str, *args: str) -> CommandResult:
        result = self.runner.run("gh", *args)
        try:
            return result.check()
        except CommandError as e:
            raise GitHubCLIError(operation, result.stderr or result.stdout or str(e)) from e

    def _retried(self, operation: str, *args: str) -> CommandResult:
        try:
            return self.retry.run(lambda: self._gh(operation, *args), f"gh {operation}")
        except RetryExhaustedError as e:
            raise GitHubCLIError(operation, str(e.last_error or e)) from e

    def _json(self, operation: str, result: CommandResult) -> dict:
        try:
            return json.loads(result.stdout or "{}")
        except ValueError as e:
            raise GitHubCLIError(operation, f"unexpected output: {result.stdout}") from e

    # Account

    def is_authenticated(self) -> bool:
        return self.runner.run("gh", "auth", "status").ok

    def user_login(self) -> str:
        """Login of the authenticated user, cached for the life of the service."""
        if self._login is None:
            self._login = self._retried("api user", "api", "user", "--jq", ".login").stdout
        return self._login

    def user_email(self) -> str:
        return self._retried("api user", "api", "user", "--jq", ".email").stdout

    # Repositories

    def parent_repo(self, full_name: str) -> str:
        """`owner/repo` a repository was forked from, empty if it is not a fork."""
        stdout = self._retried(
            "api repos", "api", f"repos/{full_name}", "--jq", ".parent.full_name"
        ).stdout
        return "" if stdout == "null" else stdout

    def fork(self, full_name: str) -> None:
        self._retried("repo fork", "repo", "fork", full_name, "--clone=false")

    def set_default_repo(self, full_name: str) -> None:
        self._gh("repo set-default", "repo", "set-default", full_name)

    def verify_repository(self, full_name: str) -> None:
        """Wait until a freshly created repository is visible to the authenticated user.

        Raises:
            GitHubCLIError: If the repository is still unreachable after the retries
        """
        logger.debug(f"Verifying {full_name} as {self.user_email()}")
        self._retried("api repos", "api", f"repos/{full_name}", "--jq", ".full_name")

    # Issues

    def develop_issue(self, issue_number: int, branch_repo: str, issue_repo: str,
                      branch_name: str, base: str) -> str:
        """Create a remote branch linked to an issue.

        Returns:
            The name of the created branch
        """
        result = self._gh(
            "issue develop",
            "issue", "develop", str(issue_number),
            f"--branch-repo={branch_repo}",
            f"--repo={issue_repo}",
            f"--name={branch_name}",
            f"--base={base}",
        )
        branch = result.stdout.strip().split("/")[-1]
        if not branch:
            raise GitHubCLIError("issue develop", f"can not create branch for issue #{issue_number}")
        return branch

    def issue_title(self, issue_number: int, repo: str) -> str:
        result = self._retried(
            "issue view", "issue", "view", str(issue_number), "--repo", repo, "--json", "title"
        )
        return str(self._json("issue view", result).get("title") or "")

    def issue_description(self, issue_url: str) -> str:
        """Title of the issue an issue URL points at."""
        parsed = parse_github_issue_url(issue_url)
        if parsed is None:
            raise GitHubCLIError("issue view", f"invalid GitHub issue URL: {issue_url}")
        owner, repo, number = parsed
        result = self._retried(
            "issue view", "issue", "view", str(number), "--repo", f"{owner}/{repo}", "--json", "title,body"
        )
        return str(self._json("issue view", result).get("title") or "")

    # Pull requests

    def find_pull_request(self, head: str, repo: str, state: str = PR_STATE_OPEN) -> Optional[PullRequestInfo]:
        """First pull request from a head branch in the given state, if any."""
        result = self._retried(
            "pr list",
            "pr", "list", "--repo", repo, "--head", head,
            "--limit", "1", "--state", state, "--json", "url,title",
        )
        if not result.stdout or NO_PULL_REQUESTS_PHRASE in result.stdout:
            return None
        try:
            items = json.loads(result.stdout)
        except ValueError as e:
            raise GitHubCLIError("pr list", f"unexpected output: {result.stdout}") from e
        if not items:
            return None
        return PullRequestInfo(title=items[0].get("title", ""), url=items[0].get("url", ""))

    def has_merged_pull_request(self, head: str, repo: str) -> bool:
        return self.find_pull_request(head, repo, PR_STATE_MERGED) is not None

    def create_pull_request(self, repo: str, head_account: str, branch: str,
                            title: str, body: str = "", draft: bool = False) -> str:
        """Open a pull request from a fork branch.

        Returns:
            gh's output, normally the URL of the new pull request
        """
        args = [
            "pr", "create",
            f"--head={head_account}:{branch}",
            f"--repo={repo}",
            f"--body={body.strip()}",
            f"--title={title.strip()}",
        ]
        if draft:
            args.append("--draft")
        return self._retried("pr create", *args).stdout
