"""Unit tests for the issue fetch phase."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from graph_sync_manager.cache import FetchStatus, InMemoryResourceCache
from graph_sync_manager.jira.client import JiraClientError
from graph_sync_manager.schemas.jira import Issue
from graph_sync_manager.synchronize.fetch import ISSUES_COLLECTION, build_issues_jql, fetch_issues
from graph_sync_manager.synchronize.iteration import Page
from tests.unit.factories import jira_issue


def test_build_issues_jql_quotes_project_keys_in_configured_order() -> None:
    """Test that the JQL is bounded by the configured projects."""
    assert build_issues_jql(["AAA", "BBB"]) == 'project in ("AAA", "BBB") ORDER BY created ASC'


def test_build_issues_jql_requires_projects() -> None:
    """Test that an unbounded search is never issued."""
    with pytest.raises(ValueError):
        build_issues_jql([])


@pytest.mark.asyncio
async def test_fetch_issues_caches_every_page_and_completes() -> None:
    """Test that all pages are cached in order and the collection is marked completed."""
    # Given
    jira = MagicMock()
    jira.search_issues_page = AsyncMock(
        side_effect=[
            Page(items=[jira_issue("1"), jira_issue("2")], next_token="t1"),
            Page(items=[jira_issue("3")], next_token=None),
        ]
    )
    cache = InMemoryResourceCache()

    # When
    count = await fetch_issues(jira, cache, ["AAA"])

    # Then
    assert count == 3
    state = await cache.get_state(ISSUES_COLLECTION)
    assert state is not None
    assert state.status == FetchStatus.COMPLETED
    assert state.resource_count == 3
    entries = [entry async for entry in cache.iter_entries(ISSUES_COLLECTION)]
    assert [entry.key for entry in entries] == ["1", "2", "3"]
    assert [entry.cursor for entry in entries] == [None, None, "t1"]
    assert jira.search_issues_page.await_args_list[1].args == ('project in ("AAA") ORDER BY created ASC', "t1")


@pytest.mark.asyncio
async def test_cached_issue_round_trips_through_provider_aliases() -> None:
    """Test that cached data can be validated back into the same issue."""
    issue = jira_issue("1", customfield_10001=3)
    jira = MagicMock()
    jira.search_issues_page = AsyncMock(return_value=Page(items=[issue]))
    cache = InMemoryResourceCache()

    await fetch_issues(jira, cache, ["AAA"])

    entry = [entry async for entry in cache.iter_entries(ISSUES_COLLECTION)][0]
    assert entry.data["self"] == issue.self_url
    assert Issue.model_validate(entry.data) == issue


@pytest.mark.asyncio
async def test_failed_fetch_leaves_collection_fetching() -> None:
    """Test that a provider error mid-fetch leaves the collection incomplete."""
    # Given
    jira = MagicMock()
    jira.search_issues_page = AsyncMock(
        side_effect=[
            Page(items=[jira_issue("1")], next_token="t1"),
            JiraClientError("boom", endpoint="/rest/api/3/search/jql", status_code=500),
        ]
    )
    cache = InMemoryResourceCache()

    # When/Then
    with pytest.raises(JiraClientError):
        await fetch_issues(jira, cache, ["AAA"])
    state = await cache.get_state(ISSUES_COLLECTION)
    assert state is not None
    assert state.status == FetchStatus.FETCHING
