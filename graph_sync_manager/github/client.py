"""Sets up the authenticated githubkit client for an organization."""

from pathlib import Path
from typing import TypeAlias

import structlog
from githubkit import GitHub
from githubkit.auth import (
    AppAuthStrategy,
    AppInstallationAuthStrategy,
    TokenAuthStrategy,
)
from githubkit.exception import RequestFailed
from githubkit.versions.latest.models import Installation

from graph_sync_manager.configuration.models import GitHubAuthenticationType, GitHubConfig
from graph_sync_manager.exceptions import AuthenticationError, ConfigurationValidationError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

GitHubClient: TypeAlias = GitHub[AppInstallationAuthStrategy] | GitHub[TokenAuthStrategy]

REQUIRED_READ_PERMISSIONS = ("members", "metadata")
ORGANIZATION_TARGET_TYPE = "Organization"


def missing_read_permissions(installation: Installation) -> list[str]:
    """Return every required permission the installation does not grant at least read access to."""
    permissions = installation.permissions
    missing: list[str] = []
    for name in REQUIRED_READ_PERMISSIONS:
        if getattr(permissions, name, None) not in ("read", "write"):
            missing.append(name)
    return missing


async def get_github_app_client(
    github_app_id: int,
    github_app_private_key_path: Path,
    github_app_installation_id: int,
    github_api_url: str,
    default_org: str | None = None,
) -> tuple[GitHub[AppInstallationAuthStrategy], str]:
    """Returns an installation-authenticated client and the login of the organization it is installed on."""
    try:
        private_key = Path(github_app_private_key_path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationValidationError(
            f"Unable to read GitHub App private key: {exc}", invalid_values=[str(github_app_private_key_path)]
        ) from exc

    # Disable HTTP caching to always get fresh data
    app_client = GitHub(auth=AppAuthStrategy(app_id=github_app_id, private_key=private_key), base_url=github_api_url, http_cache=False)
    endpoint = f"{github_api_url.rstrip('/')}/app/installations/{github_app_installation_id}"
    try:
        response = await app_client.rest.apps.async_get_installation(github_app_installation_id)
    except RequestFailed as exc:
        raise AuthenticationError("Failed to get GitHub App installation", endpoint=endpoint, status_code=exc.response.status_code) from exc
    installation: Installation = response.parsed_data

    missing = missing_read_permissions(installation)
    if missing:
        raise ConfigurationValidationError(
            f"Integration requires read access to the following GitHub App permission(s): {missing}. See GitHub App permissions.",
            invalid_values=missing,
        )
    if installation.target_type != ORGANIZATION_TARGET_TYPE:
        raise ConfigurationValidationError(
            f"Integration supports only GitHub Organization accounts, installation target is {installation.target_type!r}.",
            invalid_values=[installation.target_type],
        )

    login = getattr(installation.account, "login", None) or default_org
    if not login:
        raise ConfigurationValidationError("Unable to determine the organization login for the GitHub App installation.")
    logger.info("Authenticated as GitHub App installation", installation_id=github_app_installation_id, org=login)
    return app_client.with_auth(app_client.auth.as_installation(github_app_installation_id)), login


async def get_github_pat_client(github_pat_token: str, github_api_url: str) -> GitHub[TokenAuthStrategy]:
    """Returns an authenticated GitHub client using GitHub PAT credentials."""
    if not github_pat_token:
        raise ConfigurationValidationError("GitHub PAT authentication requires github_pat_token in config.")
    # Disable HTTP caching to always get fresh data
    return GitHub(auth=TokenAuthStrategy(github_pat_token), base_url=github_api_url, http_cache=False)


async def get_github_client(config: GitHubConfig) -> tuple[GitHubClient, str]:
    """Returns an authenticated GitHub client and the organization login to read."""
    if config.github_authentication_type == GitHubAuthenticationType.APP:
        if not (config.github_app_id and config.github_app_private_key_path and config.github_app_installation_id):
            raise ConfigurationValidationError("GitHub App authentication requires app_id, private_key_path, and installation_id in config.")
        return await get_github_app_client(
            config.github_app_id,
            config.github_app_private_key_path,
            config.github_app_installation_id,
            config.github_api_url,
            default_org=config.org,
        )
    if not config.org:
        raise ConfigurationValidationError("GitHub PAT authentication requires an organization in config.")
    return await get_github_pat_client(config.github_pat_token or "", config.github_api_url), config.org
