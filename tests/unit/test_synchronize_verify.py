"""Unit tests for credential and configuration verification."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from graph_sync_manager.exceptions import AuthenticationError, ConfigurationValidationError, ErrorKind
from graph_sync_manager.jira.client import JiraClientError
from graph_sync_manager.schemas.github import Account
from graph_sync_manager.schemas.jira import JiraProject
from graph_sync_manager.synchronize.verify import find_missing_identifiers, verify_authentication, verify_organization_access


def build_jira_mock(*project_keys: str) -> MagicMock:
    """Build a Jira client double that lists the given projects."""
    jira = MagicMock()
    jira.fetch_projects = AsyncMock(return_value=[JiraProject(id=str(i), key=key) for i, key in enumerate(project_keys)])
    return jira


@pytest.mark.asyncio
async def test_verify_succeeds_when_configured_projects_are_accessible() -> None:
    """Test that verification passes when every configured key is accessible."""
    projects = await verify_authentication(build_jira_mock("AAA", "BBB", "CCC"), ["AAA", "CCC"])
    assert [project.key for project in projects] == ["AAA", "BBB", "CCC"]


@pytest.mark.asyncio
async def test_verify_names_exactly_the_inaccessible_projects() -> None:
    """Test that the error lists exactly the configured keys the credentials cannot see."""
    # When
    with pytest.raises(ConfigurationValidationError) as exc_info:
        await verify_authentication(build_jira_mock("AAA"), ["AAA", "BBB"])

    # Then
    assert exc_info.value.kind == ErrorKind.CONFIGURATION_VALIDATION
    assert exc_info.value.invalid_values == ["BBB"]
    assert json.dumps(["BBB"]) in str(exc_info.value)
    assert "AAA" not in str(exc_info.value)


@pytest.mark.asyncio
async def test_verify_translates_transport_failures_into_authentication_errors() -> None:
    """Test that a rejected project listing becomes an AuthenticationError."""
    jira = MagicMock()
    jira.fetch_projects = AsyncMock(side_effect=JiraClientError("denied", endpoint="/rest/api/3/project", status_code=401))

    with pytest.raises(AuthenticationError) as exc_info:
        await verify_authentication(jira, ["AAA"])

    assert exc_info.value.kind == ErrorKind.AUTHENTICATION
    assert exc_info.value.status_code == 401
    assert exc_info.value.endpoint == "/rest/api/3/project"


@pytest.mark.parametrize(
    "configured, accessible, expected",
    [
        pytest.param(["A", "B"], ["A", "B"], [], id="all accessible"),
        pytest.param(["B", "A", "C"], ["A"], ["B", "C"], id="missing keys keep configured order"),
        pytest.param([], ["A"], [], id="nothing configured"),
    ],
)
def test_find_missing_identifiers(configured: list[str], accessible: list[str], expected: list[str]) -> None:
    """Test the configured-minus-accessible set difference."""
    assert find_missing_identifiers(configured, accessible) == expected


@pytest.mark.asyncio
async def test_verify_organization_access_returns_account() -> None:
    """Test that organization verification reads the account."""
    client = MagicMock()
    client.get_organization = AsyncMock(return_value=Account(id=1, login="acme"))

    account = await verify_organization_access(client)

    assert account.login == "acme"
