"""Custom exceptions for git-branch-flow"""

from typing import Optional, Sequence


class GitBranchFlowError(Exception):
    """Base exception for all git-branch-flow errors."""
    pass


class CommandError(GitBranchFlowError):
    """A git or gh subprocess exited with a non-zero status."""

    def __init__(self, args: Sequence[str], returncode: int, stdout: str = "", stderr: str = ""):
        self.args_list = list(args)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr

        error_msg = f"Command '{' '.join(self.args_list)}' exited with status {returncode}"
        detail = (stderr or stdout).strip()
        if detail:
            error_msg += f": {detail}"

        super().__init__(error_msg)


class GitOperationError(GitBranchFlowError):
    """Exception raised for errors in Git operations."""

    def __init__(self, operation: str, branch: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.branch = branch
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if branch:
            error_msg += f" for branch '{branch}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class GitHubCLIError(GitBranchFlowError):
    """Exception raised for errors in gh CLI operations."""

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        self.message = message

        error_msg = f"GitHub CLI operation '{operation}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class UserInputError(GitBranchFlowError):
    """Invalid or missing user input (empty branch name, wrong branch type)."""
    pass


class UncommittedChangesError(GitBranchFlowError):
    """The working tree has uncommitted changes."""

    def __init__(self, message: str = "there are uncommitted changes in the repository"):
        super().__init__(message)


class StateError(GitBranchFlowError):
    """The repository is not in a state the requested workflow can handle."""
    pass


class MainBranchError(StateError):
    """Neither or both of main/master exist on the remotes."""
    pass


class RemoteURLError(StateError):
    """The origin URL cannot be parsed into account and repository."""
    pass


class BranchExistsError(StateError):
    """The target branch already exists."""

    def __init__(self, branch: str, where: str = "origin"):
        self.branch = branch
        self.where = where
        super().__init__(f"branch '{branch}' already exists on {where}")


class NotesNotFoundError(StateError):
    """The branch carries no notes, or no parsable metadata in them."""
    pass


class MetadataError(GitBranchFlowError):
    """Branch metadata could not be encoded."""
    pass


class NonRetryableError(GitBranchFlowError):
    """Failure that the retry executor must surface immediately."""
    pass


class DivergenceError(NonRetryableError):
    """Local and remote history cannot be reconciled without user action."""

    def __init__(self, message: str, state=None, remediation: str = ""):
        self.state = state
        self.remediation = remediation
        super().__init__(message)


class RetryExhaustedError(GitBranchFlowError):
    """All retry attempts of an operation failed."""

    def __init__(self, operation: str, attempts: int, last_error: Optional[BaseException] = None):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error

        error_msg = f"{operation} failed after {attempts} attempts"
        if last_error is not None:
            error_msg += f": {last_error}"

        super().__init__(error_msg)
