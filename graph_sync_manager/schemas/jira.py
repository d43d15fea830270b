"""Pydantic schemas for Jira resources as returned by the REST API."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class JiraUser(BaseModel):
    """Pydantic model for a Jira user reference."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    account_id: str = Field(alias="accountId")
    display_name: str | None = Field(default=None, alias="displayName")
    email_address: str | None = Field(default=None, alias="emailAddress")
    active: bool | None = None


class JiraProject(BaseModel):
    """Pydantic model for a Jira project."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    key: str
    name: str | None = None
    project_type_key: str | None = Field(default=None, alias="projectTypeKey")


class NamedValue(BaseModel):
    """Pydantic model for a named Jira value such as a status, priority or issue type."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    name: str | None = None


class IssueFields(BaseModel):
    """Pydantic model for the fields of a Jira issue.

    Custom fields (``customfield_NNNNN``) are kept as extra attributes.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    summary: str | None = None
    description: Any = None
    project: JiraProject | None = None
    creator: JiraUser | None = None
    reporter: JiraUser | None = None
    assignee: JiraUser | None = None
    status: NamedValue | None = None
    priority: NamedValue | None = None
    issuetype: NamedValue | None = None
    labels: list[str] = Field(default_factory=list)
    created: str | None = None
    updated: str | None = None
    resolutiondate: str | None = None

    @property
    def custom_fields(self) -> dict[str, Any]:
        """Custom field values keyed by field id."""
        return dict(self.model_extra or {})


class Issue(BaseModel):
    """Pydantic model for a Jira issue."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    key: str
    self_url: str | None = Field(default=None, alias="self")
    fields: IssueFields


class JiraField(BaseModel):
    """Pydantic model for Jira field metadata."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    custom: bool = False
