"""Accumulates converted entities and relationships and publishes them as one unit of work."""

import structlog

from graph_sync_manager.persister.base import DiffingPersister, group_by_type, summarize_persister_operations_results
from graph_sync_manager.persister.models import OperationBatch, OperationSummary
from graph_sync_manager.schemas.graph import Entity, Relationship

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class GraphBuilder:
    """Collects the new snapshot of one synchronize run.

    Entities are de-duplicated by key (first one wins) so that entities
    derived from many resources, such as a user referenced by many issues,
    appear once. Relationships of ``None`` are conversion skips and ignored.
    """

    def __init__(self) -> None:
        """Initialize an empty snapshot."""
        self._entities: dict[str, Entity] = {}
        self._relationships: dict[str, Relationship] = {}

    @property
    def entities(self) -> list[Entity]:
        return list(self._entities.values())

    @property
    def relationships(self) -> list[Relationship]:
        return list(self._relationships.values())

    def add_entity(self, entity: Entity) -> None:
        self._entities.setdefault(entity.key, entity)

    def add_relationship(self, relationship: Relationship | None) -> None:
        if relationship is None:
            return
        self._relationships.setdefault(relationship.key, relationship)

    def operation_batches(self, persister: DiffingPersister) -> list[OperationBatch]:
        """Diff the snapshot against an empty old snapshot, one batch per type.

        Entity batches come first so that every relationship endpoint is part
        of the same publish.
        """
        batches: list[OperationBatch] = []
        for entity_type, entities in group_by_type(self.entities).items():
            batch = persister.process_entities(old_entities=[], new_entities=entities)  # type: ignore[arg-type]
            logger.debug("Processed entities", type=entity_type, operation_count=len(batch))
            batches.append(batch)
        for relationship_type, relationships in group_by_type(self.relationships).items():
            batch = persister.process_relationships(old_relationships=[], new_relationships=relationships)  # type: ignore[arg-type]
            logger.debug("Processed relationships", type=relationship_type, operation_count=len(batch))
            batches.append(batch)
        return batches


async def publish_graph(persister: DiffingPersister, builder: GraphBuilder) -> OperationSummary:
    """Publish a snapshot and summarize what the persister applied.

    PublishFailure propagates unchanged and no summary is produced.
    """
    result = await persister.publish_persister_operations(builder.operation_batches(persister))
    summary = summarize_persister_operations_results(result)
    logger.info(
        "Synchronized graph",
        created=summary.created,
        updated=summary.updated,
        deleted=summary.deleted,
        skipped=summary.skipped,
    )
    return summary
