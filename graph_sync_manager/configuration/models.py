"""Models for configuration between CLI arguments and environment variables."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class GitHubAuthenticationType(str, Enum):
    """Enum for GitHub authentication types."""

    PAT = "pat"
    APP = "app"


@dataclass(frozen=True)
class ProjectConfig:
    """A single issue tracker project to ingest."""

    key: str


@dataclass
class JiraConfig:
    """Configuration for the Jira issue tracker integration."""

    base_url: str
    username: str
    api_token: str
    projects: list[ProjectConfig]
    custom_fields_to_include: list[str] = field(default_factory=list)

    @property
    def project_keys(self) -> list[str]:
        """Configured project keys in configured order."""
        return [project.key for project in self.projects]


@dataclass
class GitHubConfig:
    """Configuration for the GitHub organization directory integration."""

    github_api_url: str
    github_authentication_type: GitHubAuthenticationType
    org: str | None
    github_pat_token: str | None = None
    github_app_id: int | None = None
    github_app_private_key_path: Path | None = None
    github_app_installation_id: int | None = None
