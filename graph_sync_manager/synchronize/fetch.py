"""Fetch phase: stores provider resources in the cache and marks the collection complete."""

import json
import time
from typing import Sequence

import structlog

from graph_sync_manager.cache.models import CacheEntry
from graph_sync_manager.cache.store import InMemoryResourceCache
from graph_sync_manager.jira.client import JiraClient

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

ISSUES_COLLECTION = "issues"


def build_issues_jql(project_keys: Sequence[str]) -> str:
    """Build a JQL query bounded by the configured projects."""
    if not project_keys:
        raise ValueError("At least one project key is required to search issues.")
    quoted = ", ".join(json.dumps(key) for key in project_keys)
    return f"project in ({quoted}) ORDER BY created ASC"


async def fetch_issues(
    jira: JiraClient,
    cache: InMemoryResourceCache,
    project_keys: Sequence[str],
    collection: str = ISSUES_COLLECTION,
) -> int:
    """Fetch every issue of the configured projects into the cache.

    The collection is marked FETCHING before the first page and COMPLETED
    only after the last one. If any page fails the collection stays FETCHING,
    so synchronization of it is refused until the fetch is re-run.
    """
    jql = build_issues_jql(project_keys)
    start_time = time.time()
    logger.info("Fetching issues", collection=collection, jql=jql)
    await cache.begin_fetch(collection)

    token: str | None = None
    fetched = 0
    while True:
        page = await jira.search_issues_page(jql, token)
        await cache.add_entries(
            collection,
            (CacheEntry(key=issue.id, data=issue.model_dump(mode="json", by_alias=True), cursor=token) for issue in page.items),
        )
        fetched += len(page.items)
        logger.debug("Cached page of issues", collection=collection, page_issues=len(page.items), total_so_far=fetched)
        if page.is_last:
            break
        token = page.next_token

    await cache.complete_fetch(collection)
    logger.info("Fetched issues", collection=collection, issue_count=fetched, duration=round(time.time() - start_time, 2))
    return fetched
