"""Contains synchronization logic for the GitHub organization directory."""

import time

import structlog

from graph_sync_manager.converters.github import (
    create_account_entity,
    create_account_repo_relationship,
    create_account_team_relationship,
    create_account_user_relationship,
    create_repo_entity,
    create_team_entity,
    create_team_repo_relationship,
    create_team_user_relationship,
    create_user_entity,
)
from graph_sync_manager.persister.models import OperationSummary
from graph_sync_manager.schemas.github import Member, Repository, Team
from graph_sync_manager.synchronize.context import IntegrationContext
from graph_sync_manager.synchronize.graph import GraphBuilder, publish_graph

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def synchronize_organization(context: IntegrationContext) -> OperationSummary:
    """Synchronize the organization account, members, repositories and teams."""
    directory = context.require_directory()
    start_time = time.time()
    account = await directory.client.get_organization()
    builder = GraphBuilder()
    builder.add_entity(create_account_entity(account))

    async def visit_member(member: Member) -> None:
        builder.add_entity(create_user_entity(member))
        builder.add_relationship(create_account_user_relationship(account, member))

    async def visit_repository(repository: Repository) -> None:
        builder.add_entity(create_repo_entity(repository))
        builder.add_relationship(create_account_repo_relationship(account, repository))

    async def visit_team(team: Team) -> None:
        builder.add_entity(create_team_entity(team))
        builder.add_relationship(create_account_team_relationship(account, team))
        for member in team.members:
            builder.add_relationship(create_team_user_relationship(team, member))
        for repository in team.repositories:
            builder.add_relationship(create_team_repo_relationship(team, repository))

    member_count = await directory.iterate_members(visit_member)
    repository_count = await directory.iterate_repositories(visit_repository)
    team_count = await directory.iterate_teams(visit_team)
    logger.info(
        "Converted organization directory",
        org=account.login,
        member_count=member_count,
        repository_count=repository_count,
        team_count=team_count,
        duration=round(time.time() - start_time, 2),
    )
    return await publish_graph(context.persister, builder)
