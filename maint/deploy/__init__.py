"""Requesting remote builds for release branches."""

from maint.deploy.build_server import (
    BuildRequest,
    BuildServerClient,
    validate_build_request,
)
from maint.deploy.deploy import deploy_production, deploy_release_candidate
from maint.deploy.http import HttpClient, HttpError, MockHttpClient, RealHttpClient

__all__ = [
    "BuildRequest",
    "BuildServerClient",
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
    "deploy_production",
    "deploy_release_candidate",
    "validate_build_request",
]
