"""Remote topology model"""
from dataclasses import dataclass

from git_branch_flow.constants import ORIGIN, UPSTREAM


@dataclass(frozen=True)
class RemoteTopology:
    """Resolved layout of the remotes of the current clone.

    `account` and `repo_name` describe origin (the user's fork). `parent_repo`
    is the `owner/repo` that origin was forked from, empty when origin is not
    a fork.
    """
    account: str
    repo_name: str
    main_branch: str
    has_upstream: bool = False
    parent_repo: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.account}/{self.repo_name}"

    @property
    def has_parent(self) -> bool:
        return bool(self.parent_repo)

    @property
    def main_remote(self) -> str:
        """Remote holding the authoritative main branch."""
        return UPSTREAM if self.has_upstream else ORIGIN

    @property
    def pr_repo(self) -> str:
        """Repository pull requests are opened against."""
        return self.parent_repo or self.full_name
