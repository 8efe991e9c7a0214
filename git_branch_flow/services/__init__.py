"""Services for git-branch-flow."""
