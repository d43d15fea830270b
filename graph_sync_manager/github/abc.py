"""Base ABC for organization directory clients."""

from abc import ABC, abstractmethod

from graph_sync_manager.schemas.github import Account, Member, Repository, Team, TeamMember, TeamRepository
from graph_sync_manager.synchronize.iteration import Page


class OrganizationDirectoryClientBase(ABC):
    """Base ABC for organization directory clients.

    Every list method returns one page of its collection and accepts the
    continuation token returned with the previous page.
    """

    @abstractmethod
    async def get_organization(self) -> Account:
        """Get the organization account."""
        pass

    @abstractmethod
    async def list_members_page(self, token: str | None = None) -> Page[Member]:
        """List one page of organization members."""
        pass

    @abstractmethod
    async def list_teams_page(self, token: str | None = None) -> Page[Team]:
        """List one page of organization teams."""
        pass

    @abstractmethod
    async def list_team_members_page(self, team: Team, token: str | None = None) -> Page[TeamMember]:
        """List one page of the members of a team."""
        pass

    @abstractmethod
    async def list_team_repositories_page(self, team: Team, token: str | None = None) -> Page[TeamRepository]:
        """List one page of the repositories a team has access to."""
        pass

    @abstractmethod
    async def list_repositories_page(self, token: str | None = None) -> Page[Repository]:
        """List one page of organization repositories."""
        pass
