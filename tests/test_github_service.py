"""Tests for GitHubService"""
import json

import pytest

from git_branch_flow.exceptions import GitHubCLIError
from git_branch_flow.models.branch import PullRequestInfo
from git_branch_flow.services.github_service import GitHubService


@pytest.fixture
def service(fake_runner, no_wait_retry):
    return GitHubService(fake_runner, no_wait_retry)


class TestGitHubServiceAccount:
    """Test authentication and user lookups."""

    def test_is_authenticated(self, service, fake_runner):
        assert service.is_authenticated() is True
        fake_runner.script("gh", "auth", "status", returncode=1, stderr="You are not logged in")
        assert service.is_authenticated() is False

    def test_user_login_is_cached(self, service, fake_runner):
        fake_runner.script("gh", "api", "user", stdout="octocat")
        assert service.user_login() == "octocat"
        assert service.user_login() == "octocat"
        assert len(fake_runner.called("gh", "api", "user")) == 1

    def test_retries_then_reports_gh_error(self, service, fake_runner, sleeps):
        fake_runner.script("gh", "api", "user", returncode=1, stderr="HTTP 502")
        with pytest.raises(GitHubCLIError, match="HTTP 502"):
            service.user_email()
        assert len(fake_runner.called("gh", "api", "user")) == 3
        assert len(sleeps) == 2

    def test_transient_failure_recovers(self, service, fake_runner):
        fake_runner.script("gh", "api", "user", responses=[(1, "", "timeout"), (0, "octocat", "")])
        assert service.user_login() == "octocat"


class TestGitHubServiceRepositories:
    """Test repository lookups and forking."""

    def test_parent_repo(self, service, fake_runner):
        fake_runner.script("gh", "api", "repos/octocat/widgets", stdout="acme/widgets")
        assert service.parent_repo("octocat/widgets") == "acme/widgets"
        assert fake_runner.calls[-1] == (
            "gh", "api", "repos/octocat/widgets", "--jq", ".parent.full_name"
        )

    @pytest.mark.parametrize("stdout", ["null", ""])
    def test_parent_repo_of_non_fork(self, service, fake_runner, stdout):
        fake_runner.script("gh", "api", "repos/acme/widgets", stdout=stdout)
        assert service.parent_repo("acme/widgets") == ""

    def test_fork(self, service, fake_runner):
        service.fork("acme/widgets")
        assert fake_runner.calls[-1] == ("gh", "repo", "fork", "acme/widgets", "--clone=false")

    def test_verify_repository_waits_for_fork(self, service, fake_runner, sleeps):
        fake_runner.script("gh", "api", "user", stdout="octocat@example.com")
        fake_runner.script("gh", "api", "repos/octocat/widgets", responses=[
            (1, "", "HTTP 404: Not Found"),
            (0, "octocat/widgets", ""),
        ])

        service.verify_repository("octocat/widgets")

        assert fake_runner.called("gh", "api", "user")[0] == ("gh", "api", "user", "--jq", ".email")
        assert len(fake_runner.called("gh", "api", "repos/octocat/widgets")) == 2
        assert sleeps == [0.001]

    def test_verify_missing_repository(self, service, fake_runner):
        fake_runner.script("gh", "api", "repos/octocat/widgets", returncode=1, stderr="HTTP 404: Not Found")
        with pytest.raises(GitHubCLIError, match="404"):
            service.verify_repository("octocat/widgets")


class TestGitHubServiceIssues:
    """Test issue operations."""

    def test_develop_issue_returns_branch_name(self, service, fake_runner):
        fake_runner.script("gh", "issue", "develop",
                           stdout="github.com/octocat/widgets/tree/12-crash-dev")
        branch = service.develop_issue(12, "octocat/widgets", "acme/widgets", "12-crash-dev", "main")

        assert branch == "12-crash-dev"
        assert fake_runner.calls[-1] == (
            "gh", "issue", "develop", "12",
            "--branch-repo=octocat/widgets",
            "--repo=acme/widgets",
            "--name=12-crash-dev",
            "--base=main",
        )

    def test_develop_issue_without_output_fails(self, service, fake_runner):
        fake_runner.script("gh", "issue", "develop", stdout="")
        with pytest.raises(GitHubCLIError, match="can not create branch"):
            service.develop_issue(12, "octocat/widgets", "acme/widgets", "12-crash-dev", "main")

    def test_issue_title(self, service, fake_runner):
        fake_runner.script("gh", "issue", "view", stdout=json.dumps({"title": "Crash on start"}))
        assert service.issue_title(12, "acme/widgets") == "Crash on start"

    def test_issue_description_parses_url(self, service, fake_runner):
        fake_runner.script("gh", "issue", "view", stdout=json.dumps({"title": "Crash", "body": "..."}))
        assert service.issue_description("https://github.com/acme/widgets/issues/12") == "Crash"
        assert fake_runner.calls[-1][:6] == ("gh", "issue", "view", "12", "--repo", "acme/widgets")

    def test_issue_description_rejects_other_urls(self, service):
        with pytest.raises(GitHubCLIError, match="invalid GitHub issue URL"):
            service.issue_description("https://github.com/acme/widgets/pull/3")

    def test_unexpected_json(self, service, fake_runner):
        fake_runner.script("gh", "issue", "view", stdout="not json")
        with pytest.raises(GitHubCLIError, match="unexpected output"):
            service.issue_title(1, "acme/widgets")


class TestGitHubServicePullRequests:
    """Test pull request lookups and creation."""

    def test_find_pull_request(self, service, fake_runner):
        fake_runner.script("gh", "pr", "list", stdout=json.dumps([
            {"url": "https://github.com/acme/widgets/pull/3", "title": "Add login"}
        ]))
        pr = service.find_pull_request("add-login-pr", "acme/widgets")
        assert pr == PullRequestInfo(title="Add login", url="https://github.com/acme/widgets/pull/3")
        assert fake_runner.calls[-1] == (
            "gh", "pr", "list", "--repo", "acme/widgets", "--head", "add-login-pr",
            "--limit", "1", "--state", "open", "--json", "url,title",
        )

    @pytest.mark.parametrize("stdout", ["[]", "", "no pull requests match your search in acme/widgets"])
    def test_no_pull_request(self, service, fake_runner, stdout):
        fake_runner.script("gh", "pr", "list", stdout=stdout)
        assert service.find_pull_request("add-login-pr", "acme/widgets") is None

    def test_has_merged_pull_request(self, service, fake_runner):
        fake_runner.script("gh", "pr", "list", stdout=json.dumps([{"url": "u", "title": "t"}]))
        assert service.has_merged_pull_request("add-login-pr", "acme/widgets") is True
        assert "merged" in fake_runner.calls[-1]

    def test_create_pull_request(self, service, fake_runner):
        fake_runner.script("gh", "pr", "create", stdout="https://github.com/acme/widgets/pull/4")
        url = service.create_pull_request(
            "acme/widgets", "octocat", "add-login-pr", " Add login page ", "Body\n", draft=True
        )
        assert url == "https://github.com/acme/widgets/pull/4"
        assert fake_runner.calls[-1] == (
            "gh", "pr", "create",
            "--head=octocat:add-login-pr",
            "--repo=acme/widgets",
            "--body=Body",
            "--title=Add login page",
            "--draft",
        )
