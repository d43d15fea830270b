"""Orchestrates the ingestion and synchronization actions."""

import time
from typing import Awaitable, Callable

import structlog

from graph_sync_manager.persister.models import OperationSummary
from graph_sync_manager.synchronize.context import IntegrationContext
from graph_sync_manager.synchronize.fetch import fetch_issues
from graph_sync_manager.synchronize.issues import create_issue, synchronize_issues
from graph_sync_manager.synchronize.organization import synchronize_organization
from graph_sync_manager.synchronize.verify import verify_authentication, verify_organization_access

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

ActionHandler = Callable[[IntegrationContext], Awaitable[OperationSummary]]


async def run_ingest_workflow(context: IntegrationContext) -> OperationSummary:
    """Verify, fetch and synchronize every integration configured in the context."""
    summary = OperationSummary()
    if context.jira is not None:
        await verify_authentication(context.jira, context.project_keys)
        await fetch_issues(context.jira, context.cache, context.project_keys)
        summary = summary.merge(await synchronize_issues(context))
    if context.directory is not None:
        await verify_organization_access(context.directory.client)
        summary = summary.merge(await synchronize_organization(context))
    return summary


async def run_create_entity_action(context: IntegrationContext) -> OperationSummary:
    """Create the requested issue and publish it into the graph."""
    if context.create_issue_request is None:
        raise RuntimeError("The create entity action requires an issue request.")
    return await create_issue(context, context.create_issue_request)


ACTIONS: dict[str, ActionHandler] = {
    "INGEST": run_ingest_workflow,
    "SYNCHRONIZE_ISSUES": synchronize_issues,
    "SYNCHRONIZE_ORGANIZATION": synchronize_organization,
    "CREATE_ENTITY": run_create_entity_action,
}


async def execute_action(action: str, context: IntegrationContext) -> OperationSummary:
    """Run the handler registered for an action.

    Unknown actions are logged and produce an empty summary.
    """
    handler = ACTIONS.get(action)
    if handler is None:
        logger.warning("No handler registered for action", action=action, known_actions=sorted(ACTIONS))
        return OperationSummary()

    start_time = time.time()
    logger.info("Executing action", action=action, start_time=start_time)
    summary = await handler(context)
    end_time = time.time()
    logger.info(
        "Executed action",
        action=action,
        start_time=start_time,
        end_time=end_time,
        duration=round(end_time - start_time, 2),
        created=summary.created,
        updated=summary.updated,
        deleted=summary.deleted,
        skipped=summary.skipped,
    )
    return summary
