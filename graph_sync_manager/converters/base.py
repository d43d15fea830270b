"""Shared helpers for converting provider resources into graph objects."""

import re
from typing import Any

from graph_sync_manager.schemas.graph import Relationship, relationship_key, relationship_type


def snake_case(name: str) -> str:
    """Convert a display name such as ``Story Points`` into ``story_points``."""
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


def omit_none(**properties: Any) -> dict[str, Any]:
    """Omit properties that are None."""
    return {k: v for k, v in properties.items() if v is not None}


def build_relationship(
    from_entity_key: str,
    from_type: str,
    relationship_class: str,
    to_entity_key: str,
    to_type: str,
    **properties: Any,
) -> Relationship:
    """Build a typed, directed relationship between two entity keys."""
    return Relationship(
        key=relationship_key(from_entity_key, relationship_class, to_entity_key),
        type=relationship_type(from_type, relationship_class, to_type),
        relationship_class=relationship_class,
        from_entity_key=from_entity_key,
        to_entity_key=to_entity_key,
        properties=omit_none(**properties),
    )
