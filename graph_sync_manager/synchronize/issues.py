"""Contains synchronization logic for Jira issues."""

import time

import structlog

from graph_sync_manager.cache.models import CacheEntry
from graph_sync_manager.converters.jira import (
    LookupContext,
    build_fields_by_id,
    create_issue_entity,
    create_project_entity,
    create_project_issue_relationship,
    create_user_created_issue_relationship,
    create_user_entity,
    create_user_reported_issue_relationship,
)
from graph_sync_manager.jira.client import JiraClient
from graph_sync_manager.persister.models import OperationSummary
from graph_sync_manager.schemas.jira import Issue
from graph_sync_manager.synchronize.context import CreateIssueRequest, IntegrationContext
from graph_sync_manager.synchronize.fetch import ISSUES_COLLECTION
from graph_sync_manager.synchronize.gate import ensure_fetch_completed
from graph_sync_manager.synchronize.graph import GraphBuilder, publish_graph

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def build_lookup_context(jira: JiraClient, custom_fields_to_include: list[str]) -> LookupContext:
    """Fetch field metadata and build the converter lookup context."""
    fields = await jira.fetch_fields()
    return LookupContext(fields_by_id=build_fields_by_id(fields), custom_fields_to_include=tuple(custom_fields_to_include))


def add_issue_to_graph(builder: GraphBuilder, issue: Issue, lookup: LookupContext, requested_class: str | None = None) -> None:
    """Convert one issue into its entity, its endpoint entities, and its relationships."""
    fields = issue.fields
    builder.add_entity(create_issue_entity(issue, lookup, requested_class=requested_class))
    if fields.project is not None:
        builder.add_entity(create_project_entity(fields.project))
    for user in (fields.creator, fields.reporter):
        if user is not None:
            builder.add_entity(create_user_entity(user))
    builder.add_relationship(create_project_issue_relationship(fields.project, issue))
    builder.add_relationship(create_user_created_issue_relationship(fields.creator, issue))
    builder.add_relationship(create_user_reported_issue_relationship(fields.reporter, issue))


async def synchronize_issues(context: IntegrationContext) -> OperationSummary:
    """Synchronize cached issues into the persisted graph.

    Refuses to run unless the issues fetch completed. The whole cache is
    converted before anything is handed to the persister.
    """
    jira = context.require_jira()
    await ensure_fetch_completed(context.cache, ISSUES_COLLECTION)

    lookup = await build_lookup_context(jira, context.custom_fields_to_include)

    start_time = time.time()
    builder = GraphBuilder()

    def visit(entry: CacheEntry) -> None:
        add_issue_to_graph(builder, Issue.model_validate(entry.data), lookup)

    issue_count = await context.cache.for_each(ISSUES_COLLECTION, visit)
    logger.info(
        "Converted cached issues",
        issue_count=issue_count,
        entity_count=len(builder.entities),
        relationship_count=len(builder.relationships),
        duration=round(time.time() - start_time, 2),
    )
    return await publish_graph(context.persister, builder)


async def create_issue(context: IntegrationContext, request: CreateIssueRequest) -> OperationSummary:
    """Create an issue in Jira and publish its entity and relationships."""
    jira = context.require_jira()
    issue = await jira.create_issue(
        project_key=request.project_key,
        summary=request.summary,
        issue_type=request.issue_type,
        description=request.description,
    )
    lookup = await build_lookup_context(jira, context.custom_fields_to_include)
    builder = GraphBuilder()
    add_issue_to_graph(builder, issue, lookup, requested_class=request.requested_class)
    return await publish_graph(context.persister, builder)
