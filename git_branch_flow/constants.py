"""Constants shared across git-branch-flow"""

# Branch naming
DEV_SUFFIX = "-dev"
PR_SUFFIX = "-pr"
MAX_BRANCH_NAME_LENGTH = 50
MAX_ISSUE_BRANCH_NAME_LENGTH = 100
MAIN_BRANCH_CANDIDATES = ("main", "master")

# Remotes
ORIGIN = "origin"
UPSTREAM = "upstream"
NOTES_REFSPEC = "refs/notes/*:refs/notes/*"

# Metadata
METADATA_VERSION = "1.0"

# Commit and note texts
MSG_COMMIT_FOR_NOTES = "Commit for keeping notes in branch"
DEFAULT_COMMIT_MESSAGE = "wip"
ISSUE_PR_TITLE_PREFIX = "Resolves issue"
ISSUE_SIGN = "Resolves #"
MSG_PRE_COMMIT_ERROR = "Attempt to commit too"

# Diagnostic phrases; git prints these in the C locale GitPython enforces
FAST_FORWARD_FAILURE_PHRASES = (
    "not possible to fast-forward",
    "diverging branches can't be fast-forwarded",
)
REBASE_FAILURE_PHRASES = (
    "could not apply",
    "CONFLICT",
    "Resolve all conflicts manually",
)
MERGE_CONFLICT_PHRASES = (
    "CONFLICT",
    "Automatic merge failed",
)
REMOTE_REF_MISSING_PHRASES = (
    "remote ref does not exist",
)
AMBIGUOUS_CHECKOUT_PHRASE = "matched multiple"
NO_NOTE_PHRASE = "no note found"
NO_PULL_REQUESTS_PHRASE = "no pull requests match your search"

# User-facing texts
MSG_OK_SEE_YOU = "Ok, see you"
MIN_PR_TITLE_LENGTH = 8
GITHUB_URL = "https://github.com"

# Retry defaults
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 2000
DEFAULT_MAX_RETRY_DELAY_MS = 30000
DEFAULT_GH_TIMEOUT_MS = 1500

# Environment variables
ENV_MAX_RETRIES = "BRANCH_FLOW_MAX_RETRIES"
ENV_RETRY_DELAY_MS = "BRANCH_FLOW_RETRY_DELAY_MS"
ENV_MAX_RETRY_DELAY_MS = "BRANCH_FLOW_MAX_RETRY_DELAY_MS"
ENV_GH_TIMEOUT_MS = "GH_TIMEOUT_MS"
ENV_JIRA_API_TOKEN = "JIRA_API_TOKEN"
ENV_JIRA_EMAIL = "JIRA_EMAIL"

# Pre-commit hook
PRE_COMMIT_HOOK_NAME = "pre-commit"
LARGE_FILE_HOOK_NAME = "large-file-hook.sh"
LARGE_FILE_HOOK_INVOCATION = f'"$(dirname "$0")/{LARGE_FILE_HOOK_NAME}" || exit 1'
MAX_COMMIT_TOTAL_BYTES = 100000
MAX_COMMIT_FILES = 200

LARGE_FILE_HOOK_CONTENT = f"""#!/bin/bash
# Rejects commits that add too much data or too many files at once.
total_size=0
file_count=0
while IFS= read -r -d '' file; do
  case "$file" in
    *.wasm) continue ;;
  esac
  file_count=$((file_count + 1))
  size=$(git cat-file -s ":$file" 2>/dev/null || echo 0)
  total_size=$((total_size + size))
done < <(git diff --cached --name-only --diff-filter=AM -z)

if [ "$total_size" -gt {MAX_COMMIT_TOTAL_BYTES} ]; then
  echo " {MSG_PRE_COMMIT_ERROR} much data: $total_size bytes (limit {MAX_COMMIT_TOTAL_BYTES})"
  exit 1
fi

if [ "$file_count" -gt {MAX_COMMIT_FILES} ]; then
  echo " {MSG_PRE_COMMIT_ERROR} many files: $file_count (limit {MAX_COMMIT_FILES})"
  exit 1
fi

exit 0
"""
