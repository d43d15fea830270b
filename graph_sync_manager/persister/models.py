"""Models for persister operations, publish results, and operation summaries."""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

from pydantic import BaseModel, Field

from graph_sync_manager.schemas.graph import GraphObject


class OperationAction(str, Enum):
    """Enum for persister operation actions."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class PersisterOperation:
    """One create, update, or delete of a single entity or relationship."""

    action: OperationAction
    record: GraphObject

    @property
    def type(self) -> str:
        """The entity or relationship type the operation applies to."""
        return self.record.type

    @property
    def key(self) -> str:
        """The key of the entity or relationship the operation applies to."""
        return self.record.key


@dataclass
class OperationBatch:
    """An ordered batch of persister operations."""

    operations: list[PersisterOperation] = field(default_factory=list)

    def __iter__(self) -> Iterator[PersisterOperation]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    @classmethod
    def merge(cls, *batches: "OperationBatch") -> "OperationBatch":
        """Concatenate batches into a single batch, preserving order."""
        return cls([operation for batch in batches for operation in batch])


@dataclass
class PublishResult:
    """Operations applied by the persister, and those it found already in effect."""

    applied: list[PersisterOperation] = field(default_factory=list)
    skipped: list[PersisterOperation] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)


class OperationSummary(BaseModel):
    """Counts of applied operations per entity/relationship type and action."""

    counts: dict[str, dict[OperationAction, int]] = Field(default_factory=dict)
    skipped: int = 0
    errors: list[dict[str, Any]] = Field(default_factory=list)

    def count(self, type_name: str, action: OperationAction) -> int:
        """Number of operations applied for a type and action."""
        return self.counts.get(type_name, {}).get(action, 0)

    @property
    def totals(self) -> dict[OperationAction, int]:
        """Number of operations applied per action across every type."""
        totals: Counter[OperationAction] = Counter()
        for by_action in self.counts.values():
            totals.update(by_action)
        return {action: totals.get(action, 0) for action in OperationAction}

    @property
    def created(self) -> int:
        return self.totals[OperationAction.CREATE]

    @property
    def updated(self) -> int:
        return self.totals[OperationAction.UPDATE]

    @property
    def deleted(self) -> int:
        return self.totals[OperationAction.DELETE]

    def merge(self, other: "OperationSummary") -> "OperationSummary":
        """Combine two summaries into a new one."""
        counts: dict[str, dict[OperationAction, int]] = {k: dict(v) for k, v in self.counts.items()}
        for type_name, by_action in other.counts.items():
            merged = counts.setdefault(type_name, {})
            for action, value in by_action.items():
                merged[action] = merged.get(action, 0) + value
        return OperationSummary(counts=counts, skipped=self.skipped + other.skipped, errors=[*self.errors, *other.errors])
