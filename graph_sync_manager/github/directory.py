"""Iterates organization directory resources, joining team members and repositories onto teams."""

import functools
import time

import structlog

from graph_sync_manager.schemas.github import Member, Repository, Team, TeamMember, TeamRepository
from graph_sync_manager.synchronize.iteration import ResourceIteratee, iterate_resources, materialize
from graph_sync_manager.synchronize.join import JoinStrategy, join_by_foreign_key

from .abc import OrganizationDirectoryClientBase

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class OrganizationDirectory:
    """Provides iteratee-style traversal of organization directory collections."""

    def __init__(self, client: OrganizationDirectoryClientBase, join_strategy: JoinStrategy = JoinStrategy.INDEXED) -> None:
        """Initialize the directory with a page-level client."""
        self.client = client
        self.join_strategy = join_strategy

    async def iterate_members(self, iteratee: ResourceIteratee[Member]) -> int:
        """Iterates each member (user) resource in the organization."""
        return await iterate_resources(self.client.list_members_page, iteratee)

    async def iterate_repositories(self, iteratee: ResourceIteratee[Repository]) -> int:
        """Iterates each repository resource in the organization."""
        return await iterate_resources(self.client.list_repositories_page, iteratee)

    async def iterate_teams(self, iteratee: ResourceIteratee[Team]) -> int:
        """Iterates each team resource, with its members and repositories attached.

        The team member and team repository collections are fully materialized
        before the first team is handed to the iteratee.
        """
        start_time = time.time()
        teams = await materialize(self.client.list_teams_page)
        all_team_members: list[TeamMember] = []
        all_team_repositories: list[TeamRepository] = []
        for team in teams:
            all_team_members.extend(await materialize(functools.partial(self.client.list_team_members_page, team)))
            all_team_repositories.extend(await materialize(functools.partial(self.client.list_team_repositories_page, team)))
        logger.info(
            "Materialized team collections",
            team_count=len(teams),
            team_member_count=len(all_team_members),
            team_repository_count=len(all_team_repositories),
            duration=round(time.time() - start_time, 2),
        )

        members_by_team = join_by_foreign_key(teams, all_team_members, "id", "teams", self.join_strategy)
        repositories_by_team = join_by_foreign_key(teams, all_team_repositories, "id", "teams", self.join_strategy)
        for team in teams:
            await iteratee(
                team.model_copy(
                    update={
                        "members": members_by_team.get(team.id, []),
                        "repositories": repositories_by_team.get(team.id, []),
                    }
                )
            )
        return len(teams)
