"""GitHub organization directory adapter for the githubkit library."""

from typing import Any, Self, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import RequestFailed
from githubkit.versions.latest.models import MinimalRepository, OrganizationFull, SimpleUser
from githubkit.versions.latest.models import Team as GitHubTeam

from graph_sync_manager.configuration.models import GitHubConfig
from graph_sync_manager.exceptions import AuthenticationError
from graph_sync_manager.schemas.github import Account, Member, Repository, Team, TeamMember, TeamRepository
from graph_sync_manager.synchronize.iteration import Page
from graph_sync_manager.utils.retry import retry_on_rate_limit

from .abc import OrganizationDirectoryClientBase
from .client import GitHubClient, get_github_client

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")

REPOSITORY_PERMISSION_ORDER = ("admin", "maintain", "push", "triage", "pull")
ORGANIZATION_MEMBER_ROLES = ("admin", "member")
TEAM_MEMBER_ROLES = ("maintainer", "member")


def page_from_numbered_results(items: list[T], page: int, per_page: int) -> Page[T]:
    """Build a Page for page-numbered endpoints; a short page is the last one."""
    next_token = str(page + 1) if len(items) >= per_page else None
    return Page(items=items, next_token=next_token)


def page_number(token: str | None) -> int:
    """Convert a continuation token back into a page number."""
    return int(token) if token else 1


def role_page(token: str | None, roles: tuple[str, ...]) -> tuple[str, int]:
    """Convert a role-partitioned continuation token (``role:page``) into a role and page number."""
    if not token:
        return roles[0], 1
    role, _, page = token.partition(":")
    return role, int(page)


def page_from_role_results(items: list[T], role: str, page: int, per_page: int, roles: tuple[str, ...]) -> Page[T]:
    """Build a Page for role-filtered endpoints, moving on to the next role once a role is exhausted."""
    if len(items) >= per_page:
        return Page(items=items, next_token=f"{role}:{page + 1}")
    remaining = roles[roles.index(role) + 1 :]
    return Page(items=items, next_token=f"{remaining[0]}:1" if remaining else None)


def unset_to_none(value: Any) -> Any:
    """Convert githubkit's UNSET marker into None."""
    return value if value else None


def highest_repository_permission(repository: MinimalRepository) -> str | None:
    """Return the highest permission a team holds on a repository."""
    role_name = unset_to_none(getattr(repository, "role_name", None))
    if role_name:
        return role_name
    permissions = unset_to_none(repository.permissions)
    if permissions is None:
        return None
    for permission in REPOSITORY_PERMISSION_ORDER:
        if getattr(permissions, permission, False):
            return permission
    return None


class GitHubKitAdapter(OrganizationDirectoryClientBase):
    """Organization directory adapter for the githubkit library."""

    def __init__(self, client: GitHubClient, org: str, per_page: int = 100) -> None:
        """Initialize the adapter with an already-initialized client."""
        self.client = client
        self.org = org
        self.per_page = per_page

    @classmethod
    async def create(cls, config: GitHubConfig) -> Self:
        """Create a new adapter from reconciled GitHub configuration."""
        client, org = await get_github_client(config)
        logger.info("Creating client for GitHub organization", github_api_url=config.github_api_url, org=org)
        return cls(client, org)

    @retry_on_rate_limit()
    async def get_organization(self) -> Account:
        """Get the organization account, translating credential failures."""
        try:
            response: Response[OrganizationFull] = await self.client.rest.orgs.async_get(org=self.org)
        except RequestFailed as exc:
            if exc.response.status_code in (401, 403, 404):
                raise AuthenticationError(
                    f"Unable to read GitHub organization {self.org!r}",
                    endpoint=f"/orgs/{self.org}",
                    status_code=exc.response.status_code,
                ) from exc
            raise
        organization = response.parsed_data
        return Account(
            id=organization.id,
            login=organization.login,
            name=unset_to_none(organization.name),
            html_url=organization.html_url,
        )

    @retry_on_rate_limit()
    async def list_members_page(self, token: str | None = None) -> Page[Member]:
        """List one page of organization members, one role at a time so each member carries its role."""
        role, page = role_page(token, ORGANIZATION_MEMBER_ROLES)
        response: Response[list[SimpleUser]] = await self.client.rest.orgs.async_list_members(
            org=self.org, role=role, per_page=self.per_page, page=page
        )
        members = [
            Member(
                id=user.id,
                login=user.login,
                name=unset_to_none(user.name),
                role=role,
                site_admin=bool(user.site_admin),
                html_url=user.html_url,
            )
            for user in response.parsed_data
        ]
        return page_from_role_results(members, role, page, self.per_page, ORGANIZATION_MEMBER_ROLES)

    @retry_on_rate_limit()
    async def list_teams_page(self, token: str | None = None) -> Page[Team]:
        """List one page of organization teams."""
        page = page_number(token)
        response: Response[list[GitHubTeam]] = await self.client.rest.teams.async_list(org=self.org, per_page=self.per_page, page=page)
        teams = [
            Team(
                id=team.id,
                slug=team.slug,
                name=team.name,
                description=unset_to_none(team.description),
                privacy=unset_to_none(team.privacy),
                html_url=team.html_url,
            )
            for team in response.parsed_data
        ]
        return page_from_numbered_results(teams, page, self.per_page)

    @retry_on_rate_limit()
    async def list_team_members_page(self, team: Team, token: str | None = None) -> Page[TeamMember]:
        """List one page of the members of a team, tagged with the team id and their team role."""
        role, page = role_page(token, TEAM_MEMBER_ROLES)
        response: Response[list[SimpleUser]] = await self.client.rest.teams.async_list_members_in_org(
            org=self.org, team_slug=team.slug, role=role, per_page=self.per_page, page=page
        )
        members = [TeamMember(id=user.id, login=user.login, teams=team.id, role=role) for user in response.parsed_data]
        return page_from_role_results(members, role, page, self.per_page, TEAM_MEMBER_ROLES)

    @retry_on_rate_limit()
    async def list_team_repositories_page(self, team: Team, token: str | None = None) -> Page[TeamRepository]:
        """List one page of the repositories of a team, tagged with the team id."""
        page = page_number(token)
        response: Response[list[MinimalRepository]] = await self.client.rest.teams.async_list_repos_in_org(
            org=self.org, team_slug=team.slug, per_page=self.per_page, page=page
        )
        repositories = [
            TeamRepository(
                id=repository.id,
                name=repository.name,
                full_name=repository.full_name,
                teams=team.id,
                permission=highest_repository_permission(repository),
            )
            for repository in response.parsed_data
        ]
        return page_from_numbered_results(repositories, page, self.per_page)

    @retry_on_rate_limit()
    async def list_repositories_page(self, token: str | None = None) -> Page[Repository]:
        """List one page of organization repositories."""
        page = page_number(token)
        response: Response[list[MinimalRepository]] = await self.client.rest.repos.async_list_for_org(
            org=self.org, per_page=self.per_page, page=page
        )
        repositories = [
            Repository(
                id=repository.id,
                name=repository.name,
                full_name=repository.full_name,
                private=repository.private,
                archived=bool(unset_to_none(repository.archived)),
                fork=repository.fork,
                default_branch=unset_to_none(repository.default_branch),
                html_url=repository.html_url,
            )
            for repository in response.parsed_data
        ]
        return page_from_numbered_results(repositories, page, self.per_page)
