"""Verifies credentials and configured identifiers before any synchronization work."""

import json
from typing import Sequence

import structlog

from graph_sync_manager.exceptions import AuthenticationError, ConfigurationValidationError
from graph_sync_manager.github.abc import OrganizationDirectoryClientBase
from graph_sync_manager.jira.client import JiraClient, JiraClientError
from graph_sync_manager.schemas.github import Account
from graph_sync_manager.schemas.jira import JiraProject

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def find_missing_identifiers(configured: Sequence[str], accessible: Sequence[str]) -> list[str]:
    """Return configured identifiers that are not accessible, in configured order."""
    accessible_set = set(accessible)
    return [identifier for identifier in configured if identifier not in accessible_set]


async def verify_authentication(jira: JiraClient, configured_project_keys: Sequence[str]) -> list[JiraProject]:
    """Check that the credentials work and can see every configured project.

    Raises:
        AuthenticationError: If listing projects fails at the transport or credential layer.
        ConfigurationValidationError: If any configured project key is not accessible.
    """
    try:
        projects = await jira.fetch_projects()
    except JiraClientError as exc:
        raise AuthenticationError(
            f"Unable to list Jira projects with the provided credentials: {exc}",
            endpoint=exc.endpoint,
            status_code=exc.status_code,
        ) from exc

    invalid_project_keys = find_missing_identifiers(configured_project_keys, [project.key for project in projects])
    if invalid_project_keys:
        raise ConfigurationValidationError(
            f"The following project key(s) are invalid: {json.dumps(invalid_project_keys)}. "
            "Ensure the authenticated user has access to this project.",
            invalid_values=invalid_project_keys,
        )
    logger.info("Verified Jira authentication", accessible_project_count=len(projects), configured_projects=list(configured_project_keys))
    return projects


async def verify_organization_access(client: OrganizationDirectoryClientBase) -> Account:
    """Check that the credentials can read the configured organization."""
    account = await client.get_organization()
    logger.info("Verified GitHub organization access", org=account.login)
    return account
