"""Reconcile configuration between CLI arguments and environment variables."""

import json
from pathlib import Path
from typing import Any

import structlog

from graph_sync_manager.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    RequiredConfigurationElementError,
)
from graph_sync_manager.configuration.models import (
    GitHubAuthenticationType,
    GitHubConfig,
    JiraConfig,
    ProjectConfig,
)
from graph_sync_manager.exceptions import ConfigurationValidationError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

ProjectsInput = str | list[str | dict[str, Any]] | None


async def validate_github_authentication_configuration(
    github_pat_token: str | None,
    github_app_id: int | str | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | str | None,
) -> GitHubAuthenticationType:
    """Validates the GitHub authentication configuration.

    Args:
        github_pat_token (str | None): The GitHub PAT token.
        github_app_id (int | str | None): The GitHub App ID.
        github_app_private_key_path (Path | None): The path to the GitHub App private key.
        github_app_installation_id (int | str | None): The GitHub App installation ID.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If the configuration is missing, ambiguous, or incomplete.

    Returns:
        GitHubAuthenticationType: The type of GitHub authentication used.
    """
    if github_pat_token and (github_app_id or github_app_private_key_path or github_app_installation_id):
        raise GitHubAuthenticationConfigurationUndefinedError("Both PAT and GitHub App configurations are defined. Please use one or the other.")

    if github_pat_token:
        return GitHubAuthenticationType.PAT

    if github_app_id and github_app_private_key_path and github_app_installation_id:
        return GitHubAuthenticationType.APP
    elif github_app_id or github_app_private_key_path or github_app_installation_id:
        missing_settings: list[dict[str, str]] = []
        if not github_app_id:
            missing_settings.append({"name": "GitHub App ID", "cli_name": "github_app_id", "env_name": "GITHUB_APP_ID"})
        if not github_app_private_key_path:
            missing_settings.append(
                {"name": "GitHub App private key path", "cli_name": "github_app_private_key_path", "env_name": "GITHUB_APP_PRIVATE_KEY_PATH"}
            )
        if not github_app_installation_id:
            missing_settings.append(
                {"name": "GitHub App installation ID", "cli_name": "github_app_installation_id", "env_name": "GITHUB_APP_INSTALLATION_ID"}
            )
        msg = "Incomplete GitHub App configuration - missing settings include " + ", ".join(
            f"{setting['name']} (command line option {setting['cli_name']}, environment variable {setting['env_name']})"
            for setting in missing_settings
        )
        raise GitHubAuthenticationConfigurationUndefinedError(msg, invalid_values=[setting["env_name"] for setting in missing_settings])
    else:
        raise GitHubAuthenticationConfigurationUndefinedError(
            "No GitHub authentication configuration provided. Please provide either a PAT or a GitHub App configuration."
        )


def validate_numeric_identifiers(**identifiers: int | str | None) -> dict[str, int | None]:
    """Convert identifier settings to integers, rejecting every non-numeric value at once.

    Unset (None or empty) identifiers are passed through as None.
    """
    converted: dict[str, int | None] = {}
    invalid: list[str] = []
    for name, value in identifiers.items():
        if value is None or value == "":
            converted[name] = None
            continue
        if isinstance(value, int) and not isinstance(value, bool):
            converted[name] = value
            continue
        text = str(value).strip()
        if not text.isdigit():
            invalid.append(f"{name}={value!r}")
            continue
        converted[name] = int(text)
    if invalid:
        raise ConfigurationValidationError(f"The following identifier(s) should be numbers: {json.dumps(invalid)}", invalid_values=invalid)
    return converted


def build_project_configs(projects: ProjectsInput) -> list[ProjectConfig]:
    """Build project configurations from any of the accepted configuration shapes.

    Accepts a list of keys, a list of ``{"key": ...}`` objects, a JSON array
    string, or a comma-separated string. Keys are stripped, upper-cased and
    de-duplicated preserving their configured order.
    """
    if projects is None:
        return []

    raw_items: list[Any]
    if isinstance(projects, str):
        text = projects.strip()
        if text.startswith("["):
            try:
                raw_items = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ConfigurationValidationError(f"Project configuration is not valid JSON: {exc}", invalid_values=[projects]) from exc
        else:
            raw_items = text.split(",")
    else:
        raw_items = list(projects)

    configs: list[ProjectConfig] = []
    seen: set[str] = set()
    invalid: list[Any] = []
    for item in raw_items:
        if isinstance(item, dict):
            key = item.get("key")
        else:
            key = item
        if not isinstance(key, str):
            invalid.append(item)
            continue
        key = key.strip().upper()
        if not key:
            continue
        if key in seen:
            logger.debug("Ignoring duplicate project key in configuration", project_key=key)
            continue
        seen.add(key)
        configs.append(ProjectConfig(key=key))

    if invalid:
        raise ConfigurationValidationError(f"The following project configuration entries are invalid: {invalid!r}", invalid_values=invalid)
    return configs


def parse_custom_fields(custom_fields: str | list[str] | None) -> list[str]:
    """Parse the allowlist of custom fields from a comma-separated string or a list."""
    if custom_fields is None:
        return []
    if isinstance(custom_fields, str):
        custom_fields = custom_fields.split(",")
    return [field.strip() for field in custom_fields if field.strip()]


async def reconcile_jira_configuration(
    jira_base_url: str | None,
    jira_username: str | None,
    jira_api_token: str | None,
    jira_projects: ProjectsInput,
    jira_custom_fields: str | list[str] | None = None,
) -> JiraConfig:
    """Reconcile the Jira configuration, reporting every missing required element at once."""
    projects = build_project_configs(jira_projects)
    missing_settings: list[dict[str, str]] = []
    if not jira_base_url:
        missing_settings.append({"name": "Jira base URL", "cli_name": "jira_base_url", "env_name": "JIRA_BASE_URL"})
    if not jira_username:
        missing_settings.append({"name": "Jira username", "cli_name": "jira_username", "env_name": "JIRA_USERNAME"})
    if not jira_api_token:
        missing_settings.append({"name": "Jira API token", "cli_name": "jira_api_token", "env_name": "JIRA_API_TOKEN"})
    if not projects:
        missing_settings.append({"name": "Jira projects", "cli_name": "jira_projects", "env_name": "JIRA_PROJECTS"})
    if missing_settings:
        raise RequiredConfigurationElementError(missing_settings)
    return JiraConfig(
        base_url=jira_base_url,
        username=jira_username,
        api_token=jira_api_token,
        projects=projects,
        custom_fields_to_include=parse_custom_fields(jira_custom_fields),
    )


async def reconcile_github_configuration(
    github_api_url: str,
    github_org: str | None,
    github_pat_token: str | None,
    github_app_id: int | str | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | str | None,
) -> GitHubConfig:
    """Reconcile the GitHub organization directory configuration."""
    auth_type = await validate_github_authentication_configuration(
        github_pat_token=github_pat_token,
        github_app_id=github_app_id,
        github_app_private_key_path=github_app_private_key_path,
        github_app_installation_id=github_app_installation_id,
    )
    identifiers = validate_numeric_identifiers(
        github_app_id=github_app_id,
        github_app_installation_id=github_app_installation_id,
    )
    if auth_type == GitHubAuthenticationType.PAT and not github_org:
        raise RequiredConfigurationElementError([{"name": "GitHub organization", "cli_name": "github_org", "env_name": "GITHUB_ORG"}])
    return GitHubConfig(
        github_api_url=github_api_url,
        github_authentication_type=auth_type,
        org=github_org,
        github_pat_token=github_pat_token,
        github_app_id=identifiers["github_app_id"],
        github_app_private_key_path=github_app_private_key_path,
        github_app_installation_id=identifiers["github_app_installation_id"],
    )
