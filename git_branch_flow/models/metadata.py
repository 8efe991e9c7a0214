"""Structured branch metadata stored as a single JSON line in git notes"""
import json
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional

from git_branch_flow.constants import METADATA_VERSION
from git_branch_flow.exceptions import MetadataError
from git_branch_flow.models.branch import BranchType


@dataclass(frozen=True)
class BranchMetadata:
    """Metadata record attached to the notes commit of a branch."""
    version: str = METADATA_VERSION
    github_issue_url: str = ""
    jira_ticket_url: str = ""
    branch_type: BranchType = BranchType.UNKNOWN
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "github_issue_url": self.github_issue_url,
            "jira_ticket_url": self.jira_ticket_url,
            "branch_type": self.branch_type.value,
            "description": self.description,
        }

    def to_note(self) -> str:
        """Encode as a single note line."""
        try:
            return json.dumps(self.to_dict(), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise MetadataError(f"failed to encode branch metadata: {e}") from e

    def with_branch_type(self, branch_type: BranchType) -> "BranchMetadata":
        return replace(self, branch_type=branch_type)

    @classmethod
    def from_dict(cls, data) -> Optional["BranchMetadata"]:
        """Build from a decoded JSON object, or None if it is not a metadata record."""
        if not isinstance(data, dict) or "version" not in data:
            return None
        branch_type = BranchType.from_value(data.get("branch_type", BranchType.UNKNOWN.value))
        if branch_type is None:
            return None
        return cls(
            version=str(data["version"]),
            github_issue_url=str(data.get("github_issue_url") or ""),
            jira_ticket_url=str(data.get("jira_ticket_url") or ""),
            branch_type=branch_type,
            description=str(data.get("description") or ""),
        )


def serialize(github_issue_url: str = "", jira_ticket_url: str = "",
              branch_type: BranchType = BranchType.UNKNOWN, description: str = "") -> str:
    """Encode branch metadata as a single note line.

    Raises:
        MetadataError: If the values cannot be encoded
    """
    return BranchMetadata(
        github_issue_url=github_issue_url,
        jira_ticket_url=jira_ticket_url,
        branch_type=branch_type,
        description=description,
    ).to_note()


def deserialize(note_lines: Iterable[str]) -> Optional[BranchMetadata]:
    """Find the first metadata record in a branch's note lines.

    A candidate starts at the first '{' of a line and runs to the last '}' of
    the same or a following line. Candidates that are not valid records are
    skipped.

    Args:
        note_lines: Note text split into lines, in note order

    Returns:
        The first valid record, or None when the notes carry none
    """
    lines = list(note_lines)
    for start, line in enumerate(lines):
        brace = line.find("{")
        if brace < 0:
            continue
        buffer = line[brace:]
        for end in range(start, len(lines)):
            if end > start:
                buffer += "\n" + lines[end]
            if "}" not in lines[end]:
                continue
            candidate = buffer[:buffer.rfind("}") + 1]
            try:
                metadata = BranchMetadata.from_dict(json.loads(candidate))
            except ValueError:
                continue
            if metadata is not None:
                return metadata
    return None


def migrate_note_lines(note_lines: Iterable[str], metadata: BranchMetadata) -> List[str]:
    """Replace any JSON-looking lines with a fresh metadata record.

    Every line containing '{' is dropped, free text included. All other lines
    keep their order.
    """
    kept = [line for line in note_lines if "{" not in line]
    kept.append(metadata.to_note())
    return kept
