"""Contains the dependencies handed to synchronizers and actions."""

from dataclasses import dataclass, field

from graph_sync_manager.cache.store import InMemoryResourceCache
from graph_sync_manager.github.directory import OrganizationDirectory
from graph_sync_manager.jira.client import JiraClient
from graph_sync_manager.persister.base import DiffingPersister


@dataclass
class CreateIssueRequest:
    """Parameters of the create-issue action."""

    project_key: str
    summary: str
    issue_type: str = "Task"
    description: str | None = None
    requested_class: str | None = None


@dataclass
class IntegrationContext:
    """Dependencies for one run, passed explicitly to every synchronizer."""

    cache: InMemoryResourceCache
    persister: DiffingPersister
    jira: JiraClient | None = None
    project_keys: list[str] = field(default_factory=list)
    custom_fields_to_include: list[str] = field(default_factory=list)
    directory: OrganizationDirectory | None = None
    create_issue_request: CreateIssueRequest | None = None

    def require_jira(self) -> JiraClient:
        """Return the Jira client, failing if the run was not configured for Jira."""
        if self.jira is None:
            raise RuntimeError("This action requires the Jira integration to be configured.")
        return self.jira

    def require_directory(self) -> OrganizationDirectory:
        """Return the organization directory, failing if the run was not configured for GitHub."""
        if self.directory is None:
            raise RuntimeError("This action requires the GitHub organization integration to be configured.")
        return self.directory
