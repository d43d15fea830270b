"""Converts GitHub organization directory resources into entities and relationships."""

from graph_sync_manager.converters.base import build_relationship, omit_none
from graph_sync_manager.schemas.github import Account, Member, Repository, Team, TeamMember, TeamRepository
from graph_sync_manager.schemas.graph import Entity, Relationship, entity_key

ACCOUNT_ENTITY_TYPE = "github_account"
USER_ENTITY_TYPE = "github_user"
TEAM_ENTITY_TYPE = "github_team"
REPO_ENTITY_TYPE = "github_repo"


def create_account_entity(account: Account) -> Entity:
    """Convert the organization account into an account entity."""
    return Entity(
        key=entity_key(ACCOUNT_ENTITY_TYPE, account.id),
        type=ACCOUNT_ENTITY_TYPE,
        entity_class="Account",
        properties=omit_none(id=account.id, login=account.login, name=account.name or account.login, web_link=account.html_url),
    )


def create_user_entity(member: Member) -> Entity:
    """Convert an organization member into a user entity."""
    return Entity(
        key=entity_key(USER_ENTITY_TYPE, member.id),
        type=USER_ENTITY_TYPE,
        entity_class="User",
        properties=omit_none(
            id=member.id,
            login=member.login,
            name=member.name or member.login,
            role=member.role,
            site_admin=member.site_admin,
            web_link=member.html_url,
        ),
    )


def create_team_entity(team: Team) -> Entity:
    """Convert a team, with its joined member and repository lists, into a team entity."""
    return Entity(
        key=entity_key(TEAM_ENTITY_TYPE, team.id),
        type=TEAM_ENTITY_TYPE,
        entity_class="UserGroup",
        properties=omit_none(
            id=team.id,
            slug=team.slug,
            name=team.name,
            description=team.description,
            privacy=team.privacy,
            web_link=team.html_url,
            members=[member.login for member in team.members],
            repositories=[repository.name for repository in team.repositories],
        ),
    )


def create_repo_entity(repository: Repository) -> Entity:
    """Convert an organization repository into a code repository entity."""
    return Entity(
        key=entity_key(REPO_ENTITY_TYPE, repository.id),
        type=REPO_ENTITY_TYPE,
        entity_class="CodeRepo",
        properties=omit_none(
            id=repository.id,
            name=repository.name,
            full_name=repository.full_name,
            public=not repository.private,
            archived=repository.archived,
            fork=repository.fork,
            default_branch=repository.default_branch,
            web_link=repository.html_url,
        ),
    )


def create_account_user_relationship(account: Account, member: Member) -> Relationship:
    """Link the account to one of its members."""
    return build_relationship(
        entity_key(ACCOUNT_ENTITY_TYPE, account.id),
        ACCOUNT_ENTITY_TYPE,
        "HAS",
        entity_key(USER_ENTITY_TYPE, member.id),
        USER_ENTITY_TYPE,
    )


def create_account_team_relationship(account: Account, team: Team) -> Relationship:
    """Link the account to one of its teams."""
    return build_relationship(
        entity_key(ACCOUNT_ENTITY_TYPE, account.id),
        ACCOUNT_ENTITY_TYPE,
        "HAS",
        entity_key(TEAM_ENTITY_TYPE, team.id),
        TEAM_ENTITY_TYPE,
    )


def create_account_repo_relationship(account: Account, repository: Repository) -> Relationship:
    """Link the account to a repository it owns."""
    return build_relationship(
        entity_key(ACCOUNT_ENTITY_TYPE, account.id),
        ACCOUNT_ENTITY_TYPE,
        "OWNS",
        entity_key(REPO_ENTITY_TYPE, repository.id),
        REPO_ENTITY_TYPE,
    )


def create_team_user_relationship(team: Team, member: TeamMember) -> Relationship:
    """Link a team to one of its members."""
    return build_relationship(
        entity_key(TEAM_ENTITY_TYPE, team.id),
        TEAM_ENTITY_TYPE,
        "HAS",
        entity_key(USER_ENTITY_TYPE, member.id),
        USER_ENTITY_TYPE,
        role=member.role,
    )


def create_team_repo_relationship(team: Team, repository: TeamRepository) -> Relationship:
    """Link a team to a repository it has been granted access to."""
    return build_relationship(
        entity_key(TEAM_ENTITY_TYPE, team.id),
        TEAM_ENTITY_TYPE,
        "ALLOWS",
        entity_key(REPO_ENTITY_TYPE, repository.id),
        REPO_ENTITY_TYPE,
        permission=repository.permission,
    )
