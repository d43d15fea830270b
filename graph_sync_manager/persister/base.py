"""Base class for persisters that turn old/new graph snapshots into operations."""

import time
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Sequence, TypeVar

import structlog

from graph_sync_manager.exceptions import GraphSyncError, PublishFailure
from graph_sync_manager.persister.models import (
    OperationAction,
    OperationBatch,
    OperationSummary,
    PersisterOperation,
    PublishResult,
)
from graph_sync_manager.schemas.graph import Entity, GraphObject, Relationship

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

G = TypeVar("G", Entity, Relationship)


def index_by_key(records: Sequence[G]) -> dict[str, G]:
    """Index records by key, keeping the first record seen for a duplicated key."""
    indexed: dict[str, G] = {}
    for record in records:
        if record.key in indexed:
            if indexed[record.key] != record:
                logger.warning("Ignoring conflicting record with duplicate key", key=record.key, type=record.type)
            continue
        indexed[record.key] = record
    return indexed


def diff_records(old_records: Sequence[G], new_records: Sequence[G]) -> OperationBatch:
    """Compute the operations that turn the old snapshot into the new one.

    Creates and updates follow the order of the new snapshot; deletes follow
    the order of the old snapshot.
    """
    old_by_key = index_by_key(old_records)
    new_by_key = index_by_key(new_records)
    operations: list[PersisterOperation] = []
    for key, record in new_by_key.items():
        previous = old_by_key.get(key)
        if previous is None:
            operations.append(PersisterOperation(OperationAction.CREATE, record))
        elif previous != record:
            operations.append(PersisterOperation(OperationAction.UPDATE, record))
    for key, record in old_by_key.items():
        if key not in new_by_key:
            operations.append(PersisterOperation(OperationAction.DELETE, record))
    return OperationBatch(operations)


class DiffingPersister(ABC):
    """Converts old/new snapshots into operations and publishes them."""

    def process_entities(self, old_entities: Sequence[Entity], new_entities: Sequence[Entity]) -> OperationBatch:
        """Compute the entity operations between two snapshots."""
        return diff_records(old_entities, new_entities)

    def process_relationships(self, old_relationships: Sequence[Relationship], new_relationships: Sequence[Relationship]) -> OperationBatch:
        """Compute the relationship operations between two snapshots."""
        return diff_records(old_relationships, new_relationships)

    async def publish_persister_operations(self, batches: Sequence[OperationBatch]) -> PublishResult:
        """Publish batches as one unit of work.

        Any failure of the underlying store is raised as PublishFailure; no
        partial retry or rollback is attempted.
        """
        operations = OperationBatch.merge(*batches)
        start_time = time.time()
        logger.info("Publishing persister operations", operation_count=len(operations))
        try:
            result = await self._publish(operations)
        except GraphSyncError:
            raise
        except Exception as exc:
            logger.error("Failed to publish persister operations", operation_count=len(operations), error=str(exc))
            raise PublishFailure(f"Failed to publish persister operations: {exc}", operation_count=len(operations)) from exc
        logger.info(
            "Published persister operations",
            applied=len(result.applied),
            skipped=len(result.skipped),
            duration=round(time.time() - start_time, 2),
        )
        return result

    @abstractmethod
    async def _publish(self, operations: OperationBatch) -> PublishResult:
        """Apply operations to the underlying store."""
        pass


def summarize_persister_operations_results(result: PublishResult) -> OperationSummary:
    """Count applied operations per type and action."""
    counts: dict[str, dict[OperationAction, int]] = defaultdict(dict)
    for operation in result.applied:
        by_action = counts[operation.type]
        by_action[operation.action] = by_action.get(operation.action, 0) + 1
    return OperationSummary(counts=dict(counts), skipped=len(result.skipped), errors=list(result.errors))


def group_by_type(records: Sequence[GraphObject]) -> dict[str, list[GraphObject]]:
    """Group records by their entity or relationship type, preserving order."""
    grouped: dict[str, list[GraphObject]] = defaultdict(list)
    for record in records:
        grouped[record.type].append(record)
    return dict(grouped)
