"""Git access: single repositories and the shared working copy.

Usage:
    from maint.git import Repository, WorkingCopy

    wc = WorkingCopy(Path(".."), console=console)
    with wc.lock() as session:
        session.checkout("chipper", "1.2")
"""

from maint.git.repository import GitError, Repository, RepositoryProtocol
from maint.git.working_copy import CheckoutSession, RepositoryFactory, WorkingCopy

__all__ = [
    "CheckoutSession",
    "GitError",
    "Repository",
    "RepositoryFactory",
    "RepositoryProtocol",
    "WorkingCopy",
]
