"""Pytest fixtures for git-branch-flow tests"""
import tempfile
from pathlib import Path
from typing import Dict, List, Tuple, Union
from unittest.mock import Mock

import pytest
import git

from git_branch_flow.config import Config
from git_branch_flow.services.retry import RetryPolicy
from git_branch_flow.services.runner import CommandResult

ORIGIN_URL = "https://github.com/octocat/widgets.git"
UPSTREAM_URL = "https://github.com/acme/widgets"


class FakeRunner:
    """CommandRunner stand-in answering from a script of command prefixes.

    The longest scripted prefix of a command wins. Responses may be a
    CommandResult, a (returncode, stdout, stderr) tuple or a list of either,
    consumed one call at a time with the last one repeated.
    """

    def __init__(self):
        self.calls: List[Tuple[str, ...]] = []
        self._script: Dict[Tuple[str, ...], list] = {}

    def script(self, *prefix: str, returncode: int = 0, stdout: str = "", stderr: str = "",
               responses: Union[list, None] = None) -> None:
        if responses is None:
            responses = [(returncode, stdout, stderr)]
        self._script[tuple(prefix)] = list(responses)

    def run(self, *args: str) -> CommandResult:
        command = tuple(str(a) for a in args)
        self.calls.append(command)
        matches = [p for p in self._script if command[:len(p)] == p]
        if not matches:
            return CommandResult(list(command), 0, "", "")
        queue = self._script[max(matches, key=len)]
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, CommandResult):
            return response
        returncode, stdout, stderr = response
        return CommandResult(list(command), returncode, stdout, stderr)

    def check(self, *args: str) -> CommandResult:
        return self.run(*args).check()

    def called(self, *prefix: str) -> List[Tuple[str, ...]]:
        """Recorded calls starting with prefix."""
        return [c for c in self.calls if c[:len(prefix)] == prefix]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def sleeps():
    """Delays requested by code under test."""
    return []


@pytest.fixture
def no_wait_retry(sleeps):
    """Retry policy that records its delays instead of sleeping."""
    return RetryPolicy(max_retries=2, initial_delay=0.001, max_delay=0.004, sleep=sleeps.append)


@pytest.fixture
def mock_config():
    """Configuration dictionary with no waiting and no prompts."""
    return {
        'verbose': False,
        'debug': False,
        'force': True,
        'no_fork': False,
        'max_retries': 1,
        'retry_delay_ms': 1,
        'max_retry_delay_ms': 1,
        'gh_timeout_ms': 0,
    }


@pytest.fixture
def config(mock_config):
    return Config.from_dict(mock_config)


def _configure_user(repo: git.Repo) -> None:
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")
        writer.set_value("commit", "gpgsign", "false")


def commit_file(repo: git.Repo, name: str, content: str, message: str) -> str:
    """Write a file in a working copy and commit it."""
    path = Path(repo.working_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.index.add([name])
    return repo.index.commit(message).hexsha


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository for testing."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)
    _configure_user(repo)
    commit_file(repo, "README.md", "# Test Repository\n", "Initial commit")
    repo.git.branch('-M', 'main')

    yield repo

    repo.close()


@pytest.fixture
def origin_repo(temp_dir, git_repo):
    """Bare repository playing the role of the GitHub remote, seeded from git_repo."""
    origin_path = temp_dir / "origin.git"
    origin = git.Repo.init(origin_path, bare=True)
    origin.git.symbolic_ref("HEAD", "refs/heads/main")

    git_repo.create_remote("origin", str(origin_path))
    git_repo.git.push("origin", "main")

    yield origin

    origin.close()


def _clone(origin: git.Repo, target: Path) -> git.Repo:
    origin_path = origin.git_dir
    clone = git.Repo.clone_from(origin_path, target)
    _configure_user(clone)
    # The remotes look like GitHub while git talks to the bare repository
    clone.git.config("--local", "--add", f"url.{origin_path}.insteadOf", ORIGIN_URL)
    clone.git.remote("set-url", "origin", ORIGIN_URL)
    return clone


@pytest.fixture
def cloned_repo(temp_dir, origin_repo):
    """Working copy whose origin is https://github.com/octocat/widgets."""
    clone = _clone(origin_repo, temp_dir / "clone")
    yield clone
    clone.close()


@pytest.fixture
def second_clone(temp_dir, origin_repo):
    """Another working copy of the same origin, for changes made elsewhere."""
    clone = _clone(origin_repo, temp_dir / "elsewhere")
    yield clone
    clone.close()


@pytest.fixture
def forked_repo(cloned_repo, origin_repo):
    """Clone of a fork with an upstream remote pointing at the shared repository."""
    cloned_repo.git.config("--local", "--add", f"url.{origin_repo.git_dir}.insteadOf", UPSTREAM_URL)
    cloned_repo.create_remote("upstream", UPSTREAM_URL)
    cloned_repo.git.fetch("upstream")
    return cloned_repo


@pytest.fixture
def upstream_repo(temp_dir, origin_repo):
    """Bare repository for the parent of the fork, sharing origin's initial history."""
    upstream = git.Repo.clone_from(origin_repo.git_dir, temp_dir / "upstream.git", bare=True)
    yield upstream
    upstream.close()


@pytest.fixture
def maintainer_clone(temp_dir, upstream_repo):
    """Working copy of the parent repository, for changes landing upstream."""
    clone = git.Repo.clone_from(upstream_repo.git_dir, temp_dir / "maintainer")
    _configure_user(clone)
    yield clone
    clone.close()


@pytest.fixture
def fork_with_upstream(cloned_repo, upstream_repo):
    """Clone of a fork whose upstream remote is a repository separate from origin."""
    cloned_repo.git.config("--local", "--add", f"url.{upstream_repo.git_dir}.insteadOf", UPSTREAM_URL)
    cloned_repo.create_remote("upstream", UPSTREAM_URL)
    cloned_repo.git.fetch("upstream")
    return cloned_repo


@pytest.fixture
def mock_github():
    """Mock GitHubService with an authenticated user owning a fork of acme/widgets."""
    github = Mock()
    github.is_authenticated.return_value = True
    github.user_login.return_value = "octocat"
    github.parent_repo.return_value = "acme/widgets"
    github.find_pull_request.return_value = None
    github.has_merged_pull_request.return_value = False
    github.create_pull_request.return_value = "https://github.com/acme/widgets/pull/1"
    return github
