"""Pydantic schemas for GitHub organization directory resources."""

from pydantic import BaseModel, ConfigDict, Field


class Account(BaseModel):
    """Pydantic model for the GitHub organization account."""

    model_config = ConfigDict(extra="ignore")

    id: int
    login: str
    name: str | None = None
    html_url: str | None = None


class Member(BaseModel):
    """Pydantic model for an organization member."""

    model_config = ConfigDict(extra="ignore")

    id: int
    login: str
    name: str | None = None
    role: str | None = None
    site_admin: bool = False
    html_url: str | None = None


class TeamMember(BaseModel):
    """Pydantic model for one team membership, keyed to its team by ``teams``."""

    model_config = ConfigDict(extra="ignore")

    id: int
    login: str
    teams: int
    role: str | None = None


class TeamRepository(BaseModel):
    """Pydantic model for one team repository grant, keyed to its team by ``teams``."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    full_name: str | None = None
    teams: int
    permission: str | None = None


class Repository(BaseModel):
    """Pydantic model for an organization repository."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    full_name: str | None = None
    private: bool = False
    archived: bool = False
    fork: bool = False
    default_branch: str | None = None
    html_url: str | None = None


class Team(BaseModel):
    """Pydantic model for a team with its joined member and repository lists."""

    model_config = ConfigDict(extra="ignore")

    id: int
    slug: str
    name: str
    description: str | None = None
    privacy: str | None = None
    html_url: str | None = None
    members: list[TeamMember] = Field(default_factory=list)
    repositories: list[TeamRepository] = Field(default_factory=list)
