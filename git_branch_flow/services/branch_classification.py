"""Branch type classification"""

from typing import Iterable

from git_branch_flow.constants import DEV_SUFFIX, ISSUE_PR_TITLE_PREFIX, ISSUE_SIGN, PR_SUFFIX
from git_branch_flow.models.branch import BranchType
from git_branch_flow.models.metadata import deserialize


def branch_type_by_name(branch_name: str) -> BranchType:
    """Classify a branch by its naming suffix alone."""
    if branch_name.endswith(DEV_SUFFIX):
        return BranchType.DEV
    if branch_name.endswith(PR_SUFFIX):
        return BranchType.PR
    return BranchType.UNKNOWN


def is_legacy_dev_note(note_lines: Iterable[str]) -> bool:
    """Notes written before structured metadata existed mark dev branches with issue text."""
    return any(ISSUE_PR_TITLE_PREFIX in line or ISSUE_SIGN in line for line in note_lines)


def classify_branch(branch_name: str, note_lines: Iterable[str]) -> BranchType:
    """Decide the role of a branch.

    Precedence: structured metadata, then legacy issue text in the notes
    (always a dev branch), then the name suffix.

    Args:
        branch_name: Local branch name
        note_lines: Notes attached to the branch's commits

    Returns:
        The branch type, UNKNOWN when nothing identifies it
    """
    lines = list(note_lines)
    metadata = deserialize(lines)
    if metadata is not None and metadata.branch_type != BranchType.UNKNOWN:
        return metadata.branch_type
    if is_legacy_dev_note(lines):
        return BranchType.DEV
    return branch_type_by_name(branch_name)
