"""Reading and bumping the ``version`` field of a repository's package.json."""

from __future__ import annotations

from maint.core.errors import MaintError
from maint.core.result import Err, Result
from maint.core.structured import as_str_dict, get_str
from maint.git.working_copy import CheckoutSession
from maint.release.version import SimVersion

__all__ = ["PACKAGE_FILE", "read_repo_version", "write_repo_version"]

PACKAGE_FILE = "package.json"


def read_repo_version(session: CheckoutSession, repo: str) -> Result[SimVersion, MaintError]:
    """Version of the repository at its current checkout."""
    session.console.debug(f"reading version from {PACKAGE_FILE} for {repo}")
    doc = session.read_document(repo, PACKAGE_FILE)
    if isinstance(doc, Err):
        return doc
    data = as_str_dict(doc.value)
    version = get_str(data, "version") if data is not None else None
    if version is None:
        return Err(MaintError(kind="parse", message=f"{repo}/{PACKAGE_FILE} has no version"))
    return SimVersion.parse(version)


def write_repo_version(
    session: CheckoutSession, repo: str, version: SimVersion
) -> Result[None, MaintError]:
    """Rewrite the version field, keeping every other key as it was."""
    doc = session.read_document(repo, PACKAGE_FILE)
    if isinstance(doc, Err):
        return doc
    data = as_str_dict(doc.value)
    if data is None:
        return Err(MaintError(kind="parse", message=f"{repo}/{PACKAGE_FILE} root must be an object"))
    data["version"] = str(version)
    return session.write_document(repo, PACKAGE_FILE, data)
