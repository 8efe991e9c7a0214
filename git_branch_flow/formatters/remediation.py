"""Recovery instructions for history that cannot be reconciled automatically."""
from typing import Optional


def format_reset_remediation(main_branch: str, remote: str) -> str:
    """
    Format the command sequence that realigns main with its authoritative remote.

    Args:
        main_branch: Name of the main branch
        remote: Remote holding the authoritative main (upstream or origin)

    Returns:
        Newline-separated shell commands
    """
    return "\n".join([
        f"git checkout {main_branch}",
        f"git reset --hard {remote}/{main_branch}",
        f"git push origin {main_branch} --force",
    ])


def format_divergence_message(main_branch: str, remote: str, reason: str,
                              authority: Optional[str] = None) -> str:
    """
    Format a user-facing explanation plus remediation for a divergence.

    Args:
        main_branch: Name of the main branch
        remote: Remote the merge or rebase was attempted against
        reason: Short description of what failed
        authority: Remote to reset main to, defaults to remote

    Returns:
        Multi-line message
    """
    return (
        f"{reason}\n"
        f"Local {main_branch} has diverged from {remote}/{main_branch}. "
        f"Local commits on {main_branch} will be lost; to realign run:\n"
        f"{format_reset_remediation(main_branch, authority or remote)}"
    )
