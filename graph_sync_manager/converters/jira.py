"""Converts Jira resources into entities and relationships.

Every converter is a pure function. Relationship converters return None when
the foreign key they depend on is missing from the issue.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence

from graph_sync_manager.converters.base import build_relationship, omit_none, snake_case
from graph_sync_manager.schemas.graph import Entity, Relationship, entity_key
from graph_sync_manager.schemas.jira import Issue, JiraField, JiraProject, JiraUser

ISSUE_ENTITY_TYPE = "jira_issue"
PROJECT_ENTITY_TYPE = "jira_project"
USER_ENTITY_TYPE = "jira_user"

ISSUE_ENTITY_CLASS = "Issue"
PROJECT_ENTITY_CLASS = "Project"
USER_ENTITY_CLASS = "User"

NAMED_VALUE_KEYS = ("value", "name", "displayName", "key")


@dataclass(frozen=True)
class LookupContext:
    """Cross references needed to normalize issues."""

    fields_by_id: Mapping[str, JiraField] = field(default_factory=dict)
    custom_fields_to_include: Sequence[str] = ()

    def includes(self, field_id: str) -> bool:
        """Whether a custom field is allowlisted, by id or by case-insensitive name."""
        allowed = {name.lower() for name in self.custom_fields_to_include}
        if field_id.lower() in allowed:
            return True
        metadata = self.fields_by_id.get(field_id)
        return metadata is not None and metadata.name.lower() in allowed


def build_fields_by_id(fields: Iterable[JiraField]) -> dict[str, JiraField]:
    """Build the field id to field metadata mapping."""
    return {f.id: f for f in fields}


def document_to_text(node: Any) -> str:
    """Flatten an Atlassian document format value into plain text."""
    if isinstance(node, str):
        return node
    if not isinstance(node, dict):
        return ""
    if node.get("type") == "text":
        return node.get("text", "")
    if node.get("type") == "hardBreak":
        return "\n"
    children = [document_to_text(child) for child in node.get("content", [])]
    if node.get("type") in ("doc", "bulletList", "orderedList", "table"):
        return "\n".join(child for child in children if child)
    return "".join(children)


def normalize_field_value(value: Any) -> Any:
    """Flatten option, named-object and document values into scalars."""
    if value is None:
        return None
    if isinstance(value, list):
        return [normalized for normalized in (normalize_field_value(item) for item in value) if normalized is not None]
    if isinstance(value, dict):
        if value.get("type") == "doc":
            return document_to_text(value)
        for named_key in NAMED_VALUE_KEYS:
            if named_key in value:
                return value[named_key]
        return json.dumps(value, sort_keys=True)
    return value


def custom_field_properties(issue: Issue, context: LookupContext) -> dict[str, Any]:
    """Surface the allowlisted custom fields of an issue as entity properties."""
    properties: dict[str, Any] = {}
    for field_id, value in sorted(issue.fields.custom_fields.items()):
        if not context.includes(field_id):
            continue
        metadata = context.fields_by_id.get(field_id)
        name = snake_case(metadata.name) if metadata is not None else snake_case(field_id)
        normalized = normalize_field_value(value)
        if normalized is not None:
            properties[name] = normalized
    return properties


def web_link(issue: Issue) -> str | None:
    """Build the browser link to an issue from its REST self link."""
    if not issue.self_url or "/rest/" not in issue.self_url:
        return None
    base_url = issue.self_url.split("/rest/", 1)[0]
    return f"{base_url}/browse/{issue.key}"


def create_issue_entity(issue: Issue, context: LookupContext | None = None, requested_class: str | None = None) -> Entity:
    """Convert a Jira issue into an issue entity."""
    context = context or LookupContext()
    fields = issue.fields
    description = document_to_text(fields.description) if fields.description is not None else None
    properties = omit_none(
        id=issue.id,
        key=issue.key,
        name=issue.key,
        display_name=f"{issue.key}: {fields.summary}" if fields.summary else issue.key,
        summary=fields.summary,
        description=description or None,
        status=fields.status.name if fields.status else None,
        priority=fields.priority.name if fields.priority else None,
        issue_type=fields.issuetype.name if fields.issuetype else None,
        labels=list(fields.labels) if fields.labels else None,
        project_key=fields.project.key if fields.project else None,
        creator=fields.creator.display_name if fields.creator else None,
        reporter=fields.reporter.display_name if fields.reporter else None,
        assignee=fields.assignee.display_name if fields.assignee else None,
        created_on=fields.created,
        updated_on=fields.updated,
        resolved_on=fields.resolutiondate,
        web_link=web_link(issue),
    )
    for name, value in custom_field_properties(issue, context).items():
        # Built-in properties win over custom fields with the same name.
        properties.setdefault(name, value)
    return Entity(
        key=entity_key(ISSUE_ENTITY_TYPE, issue.id),
        type=ISSUE_ENTITY_TYPE,
        entity_class=requested_class or ISSUE_ENTITY_CLASS,
        properties=properties,
    )


def create_project_entity(project: JiraProject) -> Entity:
    """Convert a Jira project into a project entity."""
    return Entity(
        key=entity_key(PROJECT_ENTITY_TYPE, project.id),
        type=PROJECT_ENTITY_TYPE,
        entity_class=PROJECT_ENTITY_CLASS,
        properties=omit_none(id=project.id, key=project.key, name=project.name or project.key, project_type=project.project_type_key),
    )


def create_user_entity(user: JiraUser) -> Entity:
    """Convert a Jira user reference into a user entity."""
    return Entity(
        key=entity_key(USER_ENTITY_TYPE, user.account_id),
        type=USER_ENTITY_TYPE,
        entity_class=USER_ENTITY_CLASS,
        properties=omit_none(
            id=user.account_id,
            name=user.display_name or user.account_id,
            email=user.email_address,
            active=user.active,
        ),
    )


def create_project_issue_relationship(project: JiraProject | None, issue: Issue) -> Relationship | None:
    """Link a project to one of its issues."""
    if project is None:
        return None
    return build_relationship(
        entity_key(PROJECT_ENTITY_TYPE, project.id),
        PROJECT_ENTITY_TYPE,
        "HAS",
        entity_key(ISSUE_ENTITY_TYPE, issue.id),
        ISSUE_ENTITY_TYPE,
    )


def create_user_created_issue_relationship(creator: JiraUser | None, issue: Issue) -> Relationship | None:
    """Link the user who created an issue to it."""
    if creator is None:
        return None
    return build_relationship(
        entity_key(USER_ENTITY_TYPE, creator.account_id),
        USER_ENTITY_TYPE,
        "CREATED",
        entity_key(ISSUE_ENTITY_TYPE, issue.id),
        ISSUE_ENTITY_TYPE,
    )


def create_user_reported_issue_relationship(reporter: JiraUser | None, issue: Issue) -> Relationship | None:
    """Link the user who reported an issue to it."""
    if reporter is None:
        return None
    return build_relationship(
        entity_key(USER_ENTITY_TYPE, reporter.account_id),
        USER_ENTITY_TYPE,
        "REPORTED",
        entity_key(ISSUE_ENTITY_TYPE, issue.id),
        ISSUE_ENTITY_TYPE,
    )
