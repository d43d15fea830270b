"""Pydantic schemas for the normalized entity-relationship graph."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Entity(BaseModel):
    """A normalized node in the output graph."""

    model_config = ConfigDict(frozen=True)

    key: str
    type: str
    entity_class: str
    properties: dict[str, Any] = Field(default_factory=dict)


class Relationship(BaseModel):
    """A typed, directed edge between two entities."""

    model_config = ConfigDict(frozen=True)

    key: str
    type: str
    relationship_class: str
    from_entity_key: str
    to_entity_key: str
    properties: dict[str, Any] = Field(default_factory=dict)


GraphObject = Entity | Relationship


def entity_key(entity_type: str, provider_id: Any) -> str:
    """Build the stable key of an entity from its type and provider-scoped id."""
    return f"{entity_type}:{provider_id}"


def relationship_key(from_entity_key: str, relationship_class: str, to_entity_key: str) -> str:
    """Build the stable key of a relationship from its endpoints and class."""
    return f"{from_entity_key}|{relationship_class.lower()}|{to_entity_key}"


def relationship_type(from_type: str, relationship_class: str, to_type: str) -> str:
    """Build the type of a relationship, e.g. ``jira_user_created_jira_issue``."""
    return f"{from_type}_{relationship_class.lower()}_{to_type}"
