"""Workflow core for git-branch-flow."""

from .branch_flow import BranchFlow
from .lifecycle import BranchLifecycle, PromotionResult

__all__ = ["BranchFlow", "BranchLifecycle", "PromotionResult"]
