"""Persisters that reconcile published operations against their own stored graph."""

from pathlib import Path
from typing import Any

import structlog

from graph_sync_manager.persister.base import DiffingPersister
from graph_sync_manager.persister.models import OperationAction, OperationBatch, PersisterOperation, PublishResult
from graph_sync_manager.schemas.graph import Entity, GraphObject, Relationship
from graph_sync_manager.utils.yaml import dump_yaml_to_file, load_yaml_file

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class InMemoryGraphPersister(DiffingPersister):
    """Keeps the persisted graph in memory.

    Creates for a key that is already stored are reconciled against the stored
    record: an identical record is skipped, a different one becomes an update.
    """

    def __init__(self) -> None:
        """Initialize an empty graph store."""
        self.entities: dict[str, Entity] = {}
        self.relationships: dict[str, Relationship] = {}

    def _store_for(self, record: GraphObject) -> dict[str, Any]:
        return self.entities if isinstance(record, Entity) else self.relationships

    async def _publish(self, operations: OperationBatch) -> PublishResult:
        result = PublishResult()
        for operation in operations:
            store = self._store_for(operation.record)
            stored = store.get(operation.key)
            if operation.action == OperationAction.DELETE:
                if stored is None:
                    result.skipped.append(operation)
                    continue
                del store[operation.key]
                result.applied.append(operation)
                continue
            if stored == operation.record:
                result.skipped.append(operation)
                continue
            action = OperationAction.CREATE if stored is None else OperationAction.UPDATE
            store[operation.key] = operation.record
            result.applied.append(PersisterOperation(action, operation.record))
        await self._flush()
        return result

    async def _flush(self) -> None:
        """Write the stored graph through to durable storage, if any."""
        return None


class YAMLGraphPersister(InMemoryGraphPersister):
    """Keeps the persisted graph in a YAML file between runs."""

    def __init__(self, path: Path) -> None:
        """Initialize the store from the YAML file, if it exists."""
        super().__init__()
        self.path = path
        if path.exists():
            data = load_yaml_file(path) or {}
            for item in data.get("entities", []):
                entity = Entity.model_validate(item)
                self.entities[entity.key] = entity
            for item in data.get("relationships", []):
                relationship = Relationship.model_validate(item)
                self.relationships[relationship.key] = relationship
            logger.info(
                "Loaded persisted graph",
                path=str(path),
                entity_count=len(self.entities),
                relationship_count=len(self.relationships),
            )

    async def _flush(self) -> None:
        dump_yaml_to_file(
            {
                "entities": [entity.model_dump(mode="json") for entity in self.entities.values()],
                "relationships": [relationship.model_dump(mode="json") for relationship in self.relationships.values()],
            },
            self.path,
        )
