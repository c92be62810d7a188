"""Release branches, dependency snapshots and patch tracking."""

from maint.release.dependencies import (
    MANIFEST_FILE,
    Dependencies,
    DependencyRef,
    checkout_target,
    is_sha,
)
from maint.release.modified_branch import ModifiedBranch
from maint.release.patch import Patch
from maint.release.patching import apply_patch
from maint.release.registry import BranchRegistry
from maint.release.release_branch import ReleaseBranch
from maint.release.version import SimVersion

__all__ = [
    "MANIFEST_FILE",
    "BranchRegistry",
    "Dependencies",
    "DependencyRef",
    "ModifiedBranch",
    "Patch",
    "ReleaseBranch",
    "SimVersion",
    "apply_patch",
    "checkout_target",
    "is_sha",
]
