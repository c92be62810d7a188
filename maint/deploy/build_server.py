"""Client for the remote build server.

One POST per build: the server queues it (one build at a time) and answers
immediately with a plain-text status. Failures are never retried here; a
rejected build leaves the caller's state untouched so it can be requested
again.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from maint.core.config import BuildServerConfig
from maint.core.errors import MaintError
from maint.core.result import Err, Ok, Result
from maint.deploy.http import HttpClient
from maint.output.console import ConsoleProtocol
from maint.release.dependencies import Dependencies
from maint.release.version import SimVersion

__all__ = [
    "API_VERSION",
    "BuildRequest",
    "BuildServerClient",
    "PRODUCTION_BRANDS",
    "validate_build_request",
]

API_VERSION = "2.0"
DEPLOY_ENDPOINT = "/deploy-html-simulation"
PRODUCTION_BRANDS = ("phet", "phet-io")

_WRONG_AUTHORIZATION = "wrong authorization code"
_REJECTED_PREFIXES = (
    "Cannot complete production deploys",
    "missing one or more required query parameters",
)


@dataclass(frozen=True, slots=True)
class BuildRequest:
    """Everything the build server needs to build one version.

    Attributes:
        repo: Repository (simulation) name.
        version: Version being built.
        dependencies: Exact commits to build against, the repo itself included.
        brands: Brands to build.
        servers: Target servers (dev and/or production).
        locales: Locales to build, None for the server's default.
        translator_id: Translator credited for a translation build.
    """

    repo: str
    version: SimVersion
    dependencies: Dependencies
    brands: tuple[str, ...]
    servers: tuple[str, ...]
    locales: tuple[str, ...] | None = None
    translator_id: str | None = None


def validate_build_request(request: BuildRequest, config: BuildServerConfig) -> Result[None, MaintError]:
    """Reject requests the server would refuse, before sending anything."""
    if not request.repo or not request.brands or not request.servers:
        return Err(
            MaintError(
                kind="validation",
                message="build request needs a repository, brands and servers",
            )
        )
    if len(request.dependencies) == 0:
        return Err(MaintError(kind="validation", message=f"no dependencies for {request.repo}"))
    if config.production_server in request.servers:
        outside = [brand for brand in request.brands if brand not in PRODUCTION_BRANDS]
        if outside:
            return Err(
                MaintError(
                    kind="validation",
                    message=f"cannot deploy brands {', '.join(outside)} to production",
                    hint=f"production builds support: {', '.join(PRODUCTION_BRANDS)}",
                )
            )
    return Ok(None)


class BuildServerClient:
    """Sends build requests to the configured server."""

    def __init__(self, config: BuildServerConfig, http: HttpClient, console: ConsoleProtocol) -> None:
        self.config = config
        self._http = http
        self._console = console

    @property
    def endpoint(self) -> str | None:
        if self.config.url is None:
            return None
        return self.config.url.rstrip("/") + DEPLOY_ENDPOINT

    def payload(self, request: BuildRequest) -> dict[str, object]:
        payload: dict[str, object] = {
            "api": API_VERSION,
            "dependencies": json.dumps(request.dependencies.to_document()),
            "simName": request.repo,
            "version": str(request.version),
            "locales": list(request.locales) if request.locales is not None else None,
            "servers": list(request.servers),
            "brands": list(request.brands),
            "authorizationCode": self.config.authorization_code,
        }
        if self.config.email is not None:
            payload["email"] = self.config.email
        if request.translator_id is not None:
            payload["translatorId"] = request.translator_id
        return payload

    def trigger_build(self, request: BuildRequest) -> Result[None, MaintError]:
        """Queue a build. Ok once the server has accepted the request."""
        endpoint = self.endpoint
        if endpoint is None or self.config.authorization_code is None:
            return Err(
                MaintError(
                    kind="validation",
                    message="build server is not configured",
                    hint="set [build_server] url and authorization_code in maint.toml",
                )
            )
        valid = validate_build_request(request, self.config)
        if isinstance(valid, Err):
            return valid

        self._console.info(
            f"requesting build of {request.repo} {request.version} on {', '.join(request.servers)}"
        )
        response = self._http.post_json(endpoint, self.payload(request))
        if isinstance(response, Err):
            error = response.error
            if error.status in (401, 403):
                return Err(MaintError(kind="authorization", message=str(error)))
            return Err(MaintError(kind="network", message=str(error)))

        reply = response.value.strip()
        self._console.debug(f"build server replied: {reply}")
        if reply == _WRONG_AUTHORIZATION:
            return Err(
                MaintError(
                    kind="authorization",
                    message="build server rejected the authorization code",
                    hint="check [build_server] authorization_code in maint.toml",
                )
            )
        if reply.startswith(_REJECTED_PREFIXES):
            return Err(MaintError(kind="validation", message=f"build server rejected request: {reply}"))
        return Ok(None)
