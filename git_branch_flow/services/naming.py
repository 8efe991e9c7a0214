"""Branch name construction and normalization"""

import re
from typing import Iterable, List, Optional, Tuple

from git_branch_flow.constants import (
    DEV_SUFFIX,
    MAX_BRANCH_NAME_LENGTH,
    MAX_ISSUE_BRANCH_NAME_LENGTH,
    PR_SUFFIX,
)
from git_branch_flow.exceptions import UserInputError

# Characters mapped to '-' or removed when turning free text into a dev branch name
_TO_MINUS = (" ", ",", ";", ".", ":", "?", "/", "!")
_TO_NONE = ("&", "$", "@", "%", "\\", "(", ")", "{", "}", "[", "]", "<", ">", "'", "\"")

# Characters git refuses in ref names, plus '#' and '!' which break shells and URLs
_INVALID_REF_CHARS = re.compile(r"[\x00-\x1f\x7f ~^:?\[\]*\\#!]")
_DASH_RUNS = re.compile(r"-+")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")

JIRA_TICKET_PATTERN = re.compile(r"https://[a-zA-Z0-9-]+\.atlassian\.net/browse/([A-Z]+-[A-Z0-9-]+)")
GITHUB_ISSUE_PATTERN = re.compile(r"^https://github\.com/([^/\s]+)/([^/\s]+)/issues/(\d+)/?$")


def delete_dup_minus(value: str) -> str:
    """Collapse every run of '-' to a single '-'."""
    return _DASH_RUNS.sub("-", value)


def clean_arg_from_spec_symbols(arg: str) -> str:
    """Turn free text into a dev branch name fragment.

    Drops the https:// scheme, maps separators and punctuation to '-',
    deletes quoting and bracket characters, collapses dashes and cuts the
    result to the maximum dev branch name length.
    """
    arg = arg.replace("https://", "")
    for symbol in _TO_MINUS:
        arg = arg.replace(symbol, "-")
    for symbol in _TO_NONE:
        arg = arg.replace(symbol, "")
    arg = arg.lstrip("-")
    arg = delete_dup_minus(arg)
    arg = arg[:MAX_BRANCH_NAME_LENGTH]
    return arg.rstrip("-")


def task_id_from_url(url: str) -> str:
    """Last path segment of a task URL with '#' and '!' removed.

    A plain word comes back unchanged.
    """
    entry = url.split("/")[-1]
    return entry.replace("#", "").replace("!", "").strip()


def split_args(args: Iterable[str]) -> List[str]:
    """Split each argument on single spaces, dropping empty pieces."""
    words = []
    for arg in args:
        words.extend(part for part in arg.split(" ") if part)
    return words


def clear_empty_args(args: Iterable[str]) -> List[str]:
    return [arg.strip() for arg in args if arg and arg.strip()]


def build_branch_name(args: Iterable[str], ticket_id: Optional[str] = None) -> str:
    """Build a dev branch base name (without suffix) from command-line words.

    Words are joined with '-'. When the last of several words is a task URL,
    its id is moved to the front, otherwise the last word is appended like
    the others.

    Args:
        args: Command-line arguments, possibly containing spaces
        ticket_id: Tracker key (e.g. a Jira key) to prefix to the name

    Returns:
        The cleaned branch name

    Raises:
        UserInputError: If no usable words were given
    """
    words = split_args(clear_empty_args(args))
    if not words:
        raise UserInputError("Need branch name for dev")

    branch = ""
    for i, word in enumerate(words):
        word = word.strip()
        if i == 0:
            branch = word
            continue
        if i == len(words) - 1:
            task_id = task_id_from_url(word)
            if task_id == word:
                branch = f"{branch}-{task_id}"
            else:
                branch = f"{task_id}-{branch}"
            break
        branch = f"{branch}-{word}"

    branch = clean_arg_from_spec_symbols(branch)
    if ticket_id:
        branch = clean_arg_from_spec_symbols(f"{ticket_id}-{branch}")
    if not branch:
        raise UserInputError("Need branch name for dev")
    return branch


def normalize_branch_name(name: str) -> str:
    """Make a name acceptable to git as a branch name.

    Invalid characters and '..' become '-', dash runs collapse, and leading
    or trailing '.', '/', '-' and '_' are removed. Case is preserved and the
    function is idempotent.
    """
    if not name:
        return name
    normalized = _INVALID_REF_CHARS.sub("-", name)
    while ".." in normalized:
        normalized = normalized.replace("..", "-")
    normalized = delete_dup_minus(normalized)
    return normalized.strip("./-_")


def build_issue_branch_name(issue_number, title: str) -> str:
    """Dev branch name for a GitHub issue: <number>-<kebab-title>-dev."""
    kebab_title = _NON_ALNUM.sub("-", title.lower()).strip("-")
    name = f"{issue_number}-{kebab_title}" if kebab_title else str(issue_number)
    name = name[:MAX_ISSUE_BRANCH_NAME_LENGTH].rstrip("-")
    return dev_branch_name(normalize_branch_name(name))


def dev_branch_name(name: str) -> str:
    if name.endswith(DEV_SUFFIX):
        return name
    return name + DEV_SUFFIX


def pr_branch_name(dev_branch: str) -> str:
    """PR branch name derived from a dev branch name."""
    if dev_branch.endswith(DEV_SUFFIX):
        return dev_branch[:-len(DEV_SUFFIX)] + PR_SUFFIX
    return dev_branch + PR_SUFFIX


def jira_ticket_id(args: Iterable[str]) -> Optional[Tuple[str, str]]:
    """Find the first Jira ticket URL among the arguments.

    Returns:
        (ticket key, ticket URL), or None when no argument contains one
    """
    for arg in args:
        match = JIRA_TICKET_PATTERN.search(arg)
        if match:
            return match.group(1), match.group(0)
    return None


def parse_github_issue_url(url: str) -> Optional[Tuple[str, str, int]]:
    """Split a GitHub issue URL into (owner, repo, number), or None."""
    match = GITHUB_ISSUE_PATTERN.match(url.strip())
    if not match:
        return None
    owner, repo, number = match.groups()
    return owner, repo, int(number)
