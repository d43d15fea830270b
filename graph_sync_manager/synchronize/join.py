"""Stitches independently fetched collections together by foreign key."""

from collections import defaultdict
from enum import Enum
from typing import Any, Hashable, Sequence

import structlog

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class JoinStrategy(Enum):
    """Enum for join algorithms.

    Both strategies produce identical results. NESTED_LOOP scans every child
    for every parent (O(parents x children)); INDEXED groups children by
    foreign key first (O(parents + children)).
    """

    INDEXED = "indexed"
    NESTED_LOOP = "nested_loop"


def get_column(record: Any, column: str) -> Any:
    """Read a column from a mapping or an attribute from an object."""
    if isinstance(record, dict):
        return record.get(column)
    return getattr(record, column, None)


def index_by_foreign_key(children: Sequence[Any], foreign_key: str) -> dict[Hashable, list[Any]]:
    """Group children by the value of their foreign key column, preserving child order."""
    index: dict[Hashable, list[Any]] = defaultdict(list)
    for child in children:
        value = get_column(child, foreign_key)
        if value is None:
            continue
        index[value].append(child)
    return dict(index)


def join_by_foreign_key(
    parents: Sequence[Any],
    children: Sequence[Any],
    parent_key: str = "id",
    foreign_key: str = "teams",
    strategy: JoinStrategy = JoinStrategy.INDEXED,
) -> dict[Hashable, list[Any]]:
    """Map each parent's key to the children whose foreign key equals it.

    Every parent appears in the result, with an empty list when no child
    references it. Children referencing no known parent are dropped.
    """
    joined: dict[Hashable, list[Any]] = {}
    if strategy == JoinStrategy.NESTED_LOOP:
        for parent in parents:
            key = get_column(parent, parent_key)
            joined[key] = [child for child in children if get_column(child, foreign_key) == key]
    else:
        index = index_by_foreign_key(children, foreign_key)
        for parent in parents:
            key = get_column(parent, parent_key)
            joined[key] = list(index.get(key, []))

    matched = sum(len(matches) for matches in joined.values())
    if matched < len(children):
        logger.debug(
            "Dropped children that reference no known parent",
            foreign_key=foreign_key,
            orphaned_children=len(children) - matched,
        )
    return joined
