"""Unit tests for organization directory synchronization."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from graph_sync_manager.cache import InMemoryResourceCache
from graph_sync_manager.github.directory import OrganizationDirectory
from graph_sync_manager.persister.models import OperationAction
from graph_sync_manager.schemas.github import Account, Member, Repository, Team, TeamMember, TeamRepository
from graph_sync_manager.synchronize.context import IntegrationContext
from graph_sync_manager.synchronize.iteration import Page
from graph_sync_manager.synchronize.organization import synchronize_organization
from tests.unit.factories import RecordingPersister


def build_organization_client() -> MagicMock:
    """Build a page-level client for an organization with two members, one repository and one team."""
    team = Team(id=7, slug="core", name="Core")

    async def list_team_members_page(team: Team, token: str | None = None) -> Page[TeamMember]:
        return Page(items=[TeamMember(id=1, login="alice", teams=team.id, role="maintainer")])

    async def list_team_repositories_page(team: Team, token: str | None = None) -> Page[TeamRepository]:
        return Page(items=[TeamRepository(id=100, name="api", teams=team.id, permission="admin")])

    client = MagicMock()
    client.get_organization = AsyncMock(return_value=Account(id=99, login="acme"))
    client.list_members_page = AsyncMock(return_value=Page(items=[Member(id=1, login="alice"), Member(id=2, login="bob")]))
    client.list_repositories_page = AsyncMock(return_value=Page(items=[Repository(id=100, name="api", private=True)]))
    client.list_teams_page = AsyncMock(return_value=Page(items=[team]))
    client.list_team_members_page = list_team_members_page
    client.list_team_repositories_page = list_team_repositories_page
    return client


@pytest.mark.asyncio
async def test_synchronize_organization_publishes_directory_graph() -> None:
    """Test that the account, members, repositories and teams are published with their relationships."""
    # Given
    persister = RecordingPersister()
    context = IntegrationContext(
        cache=InMemoryResourceCache(),
        persister=persister,
        directory=OrganizationDirectory(build_organization_client()),
    )

    # When
    summary = await synchronize_organization(context)

    # Then
    assert summary.count("github_account", OperationAction.CREATE) == 1
    assert summary.count("github_user", OperationAction.CREATE) == 2
    assert summary.count("github_repo", OperationAction.CREATE) == 1
    assert summary.count("github_team", OperationAction.CREATE) == 1
    assert summary.count("github_account_has_github_user", OperationAction.CREATE) == 2
    assert summary.count("github_account_owns_github_repo", OperationAction.CREATE) == 1
    assert summary.count("github_account_has_github_team", OperationAction.CREATE) == 1
    assert summary.count("github_team_has_github_user", OperationAction.CREATE) == 1
    assert summary.count("github_team_allows_github_repo", OperationAction.CREATE) == 1

    team_entity = persister.entities["github_team:7"]
    assert team_entity.properties["members"] == ["alice"]
    assert team_entity.properties["repositories"] == ["api"]
    allows = persister.relationships["github_team:7|allows|github_repo:100"]
    assert allows.properties == {"permission": "admin"}
    for relationship in persister.relationships.values():
        assert relationship.from_entity_key in persister.entities
        assert relationship.to_entity_key in persister.entities


@pytest.mark.asyncio
async def test_synchronize_organization_requires_directory() -> None:
    """Test that synchronizing without a directory is a programming error."""
    context = IntegrationContext(cache=InMemoryResourceCache(), persister=RecordingPersister())
    with pytest.raises(RuntimeError, match="GitHub organization integration"):
        await synchronize_organization(context)
