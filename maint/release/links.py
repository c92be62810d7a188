"""Markdown checklist lines linking to a deployed version."""

from __future__ import annotations

from collections.abc import Sequence

from maint.release.compat import BuildLayout
from maint.release.version import SimVersion

__all__ = ["DEV_HOST", "PHETIO_HOST", "PRODUCTION_HOST", "deployed_link_lines"]

DEV_HOST = "https://phet-dev.colorado.edu/html"
PRODUCTION_HOST = "https://phet.colorado.edu/sims/html"
PHETIO_HOST = "https://phet-io.colorado.edu/sims"


def deployed_link_lines(
    *,
    repo: str,
    branch: str,
    brands: Sequence[str],
    version: SimVersion,
    layout: BuildLayout,
    pushed_messages: Sequence[str] = (),
    include_messages: bool = True,
) -> list[str]:
    """Checklist entries (``- [ ] [label](url)``) for each deployed brand.

    Release candidates point at the dev host, production versions at the
    public hosts.
    """
    v = str(version)
    phet_folder = "/phet" if layout.chipper2 else ""
    phetio_folder = "/phet-io" if layout.chipper2 else ""
    phet_suffix = "_phet" if layout.chipper2 else ""
    phetio_suffix = "_all_phet-io" if layout.chipper2 else "_en-phetio"
    standalone = layout.standalone_param
    proxies = layout.proxies_param

    links: list[tuple[str, str]] = []
    if version.is_release_candidate:
        base = f"{DEV_HOST}/{repo}/{v}"
        if "phet" in brands:
            links.append(("", f"{base}{phet_folder}/{repo}_en{phet_suffix}.html"))
        if "phet-io" in brands:
            links.append((" phet-io", f"{base}{phetio_folder}/{repo}{phetio_suffix}.html?{standalone}"))
            links.append(
                (
                    " phet-io Instance Proxies",
                    f"{base}{phetio_folder}/wrappers/instance-proxies/instance-proxies.html"
                    f"?sim={repo}&{proxies}",
                )
            )
    else:
        if "phet" in brands:
            links.append(("", f"{PRODUCTION_HOST}/{repo}/{v}/{repo}_en{phet_suffix}.html"))
        if "phet-io" in brands:
            base = f"{PHETIO_HOST}/{repo}/{v}"
            links.append(
                (" phet-io", f"{base}{phetio_folder}{phet_folder}/{repo}{phetio_suffix}.html?{standalone}")
            )
            links.append(
                (
                    " phet-io Instance Proxies",
                    f"{base}{phetio_folder}/wrappers/instance-proxies/instance-proxies.html"
                    f"?sim={repo}&{proxies}",
                )
            )

    lines = [f"- [ ] [{repo} {v}{label}]({url})" for label, url in links]
    if include_messages:
        lines.insert(0, f"\n{repo} {branch} ({', '.join(pushed_messages)})\n")
    return lines
