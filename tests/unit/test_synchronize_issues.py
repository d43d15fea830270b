"""Contains unit tests for Jira issue synchronization logic."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from graph_sync_manager.cache import CacheEntry, InMemoryResourceCache
from graph_sync_manager.exceptions import IncompleteFetchError, PublishFailure
from graph_sync_manager.persister.models import OperationAction
from graph_sync_manager.schemas.jira import Issue, JiraField
from graph_sync_manager.synchronize.context import CreateIssueRequest, IntegrationContext
from graph_sync_manager.synchronize.fetch import ISSUES_COLLECTION
from graph_sync_manager.synchronize.issues import create_issue, synchronize_issues
from tests.unit.factories import FailingPersister, RecordingPersister, jira_issue, jira_issue_payload


def build_jira_mock(fields: list[JiraField] | None = None) -> MagicMock:
    """Build a Jira client double that serves field metadata."""
    jira = MagicMock()
    jira.fetch_fields = AsyncMock(return_value=fields or [])
    return jira


async def cache_with_issues(payloads: list[dict[str, Any]], complete: bool = True) -> InMemoryResourceCache:
    """Build a cache holding the given issues in the issues collection."""
    cache = InMemoryResourceCache()
    await cache.begin_fetch(ISSUES_COLLECTION)
    await cache.add_entries(ISSUES_COLLECTION, [CacheEntry(key=payload["id"], data=payload) for payload in payloads])
    if complete:
        await cache.complete_fetch(ISSUES_COLLECTION)
    return cache


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "complete_fetch",
    [
        pytest.param(None, id="collection never fetched"),
        pytest.param(False, id="collection still fetching"),
    ],
)
async def test_synchronize_refuses_incomplete_fetch_without_touching_persister(complete_fetch: bool | None) -> None:
    """Test that synchronizing an incomplete collection never reaches the persister."""
    # Given
    if complete_fetch is None:
        cache = InMemoryResourceCache()
    else:
        cache = await cache_with_issues([jira_issue_payload("1")], complete=complete_fetch)
    persister = MagicMock()
    persister.publish_persister_operations = AsyncMock()
    persister.process_entities = MagicMock()
    persister.process_relationships = MagicMock()
    context = IntegrationContext(cache=cache, persister=persister, jira=build_jira_mock())

    # When/Then
    with pytest.raises(IncompleteFetchError):
        await synchronize_issues(context)
    persister.process_entities.assert_not_called()
    persister.process_relationships.assert_not_called()
    persister.publish_persister_operations.assert_not_awaited()


@pytest.mark.asyncio
async def test_synchronize_counts_issue_entities_and_user_relationships() -> None:
    """Test that N issues with M reporters yield N issue entities, N created and M reported relationships."""
    # Given
    payloads = [
        jira_issue_payload("1", creator="alice", reporter="alice"),
        jira_issue_payload("2", creator="bob", reporter=None),
        jira_issue_payload("3", creator="alice", reporter="carol"),
    ]
    persister = RecordingPersister()
    context = IntegrationContext(cache=await cache_with_issues(payloads), persister=persister, jira=build_jira_mock())

    # When
    summary = await synchronize_issues(context)

    # Then
    assert summary.count("jira_issue", OperationAction.CREATE) == 3
    assert summary.count("jira_user_created_jira_issue", OperationAction.CREATE) == 3
    assert summary.count("jira_user_reported_jira_issue", OperationAction.CREATE) == 2
    assert summary.count("jira_project_has_jira_issue", OperationAction.CREATE) == 3
    assert summary.count("jira_project", OperationAction.CREATE) == 1
    assert summary.count("jira_user", OperationAction.CREATE) == 3
    assert summary.updated == 0
    assert summary.deleted == 0


@pytest.mark.asyncio
async def test_relationship_endpoints_are_published_entities() -> None:
    """Test that every relationship references entities present in the same publish."""
    payloads = [jira_issue_payload(str(i), creator=f"user{i % 2}", reporter="rep") for i in range(4)]
    persister = RecordingPersister()
    context = IntegrationContext(cache=await cache_with_issues(payloads), persister=persister, jira=build_jira_mock())

    await synchronize_issues(context)

    for relationship in persister.relationships.values():
        assert relationship.from_entity_key in persister.entities
        assert relationship.to_entity_key in persister.entities


@pytest.mark.asyncio
async def test_repeated_synchronize_produces_identical_batches_and_no_new_writes() -> None:
    """Test that running synchronize twice over the same cache is idempotent."""
    # Given
    payloads = [jira_issue_payload("1"), jira_issue_payload("2", reporter="bob")]
    cache = await cache_with_issues(payloads)
    persister = RecordingPersister()
    context = IntegrationContext(cache=cache, persister=persister, jira=build_jira_mock())

    # When
    first = await synchronize_issues(context)
    second = await synchronize_issues(context)

    # Then
    first_batches, second_batches = persister.published_batches
    assert [batch.operations for batch in first_batches] == [batch.operations for batch in second_batches]
    assert all(operation.action == OperationAction.CREATE for batch in first_batches for operation in batch)
    assert first.created > 0
    assert second.created == 0
    assert second.skipped == first.created


@pytest.mark.asyncio
async def test_changed_issue_is_reported_as_update() -> None:
    """Test that a re-fetched issue with a new summary updates the stored entity."""
    persister = RecordingPersister()
    first_context = IntegrationContext(cache=await cache_with_issues([jira_issue_payload("1")]), persister=persister, jira=build_jira_mock())
    await synchronize_issues(first_context)

    changed = jira_issue_payload("1", summary="Now fixed")
    second_context = IntegrationContext(cache=await cache_with_issues([changed]), persister=persister, jira=build_jira_mock())
    summary = await synchronize_issues(second_context)

    assert summary.count("jira_issue", OperationAction.UPDATE) == 1
    assert summary.created == 0
    assert persister.entities["jira_issue:1"].properties["summary"] == "Now fixed"


@pytest.mark.asyncio
async def test_allowlisted_custom_fields_are_surfaced() -> None:
    """Test that only allowlisted custom fields appear on issue entities."""
    payloads = [jira_issue_payload("1", customfield_10001=5, customfield_10002={"value": "High"})]
    fields = [JiraField(id="customfield_10001", name="Story Points", custom=True), JiraField(id="customfield_10002", name="Impact", custom=True)]
    persister = RecordingPersister()
    context = IntegrationContext(
        cache=await cache_with_issues(payloads),
        persister=persister,
        jira=build_jira_mock(fields),
        custom_fields_to_include=["story points"],
    )

    await synchronize_issues(context)

    properties = persister.entities["jira_issue:1"].properties
    assert properties["story_points"] == 5
    assert "impact" not in properties


@pytest.mark.asyncio
async def test_publish_failure_propagates_without_summary() -> None:
    """Test that a store failure surfaces as PublishFailure and nothing is summarized."""
    # Given
    error = ConnectionError("store unavailable")
    context = IntegrationContext(
        cache=await cache_with_issues([jira_issue_payload("1")]),
        persister=FailingPersister(error),
        jira=build_jira_mock(),
    )

    # When/Then
    with patch("graph_sync_manager.synchronize.graph.summarize_persister_operations_results") as summarize:
        with pytest.raises(PublishFailure) as exc_info:
            await synchronize_issues(context)
    summarize.assert_not_called()
    assert exc_info.value.__cause__ is error


@pytest.mark.asyncio
async def test_synchronize_requires_jira_client() -> None:
    """Test that synchronizing issues without a Jira client is a programming error."""
    context = IntegrationContext(cache=InMemoryResourceCache(), persister=RecordingPersister())
    with pytest.raises(RuntimeError, match="Jira integration"):
        await synchronize_issues(context)


@pytest.mark.asyncio
async def test_create_issue_publishes_created_issue() -> None:
    """Test that the create-issue action publishes the issue returned by Jira."""
    # Given
    created: Issue = jira_issue("42", project_key="BBB", creator="dana", reporter="dana")
    jira = build_jira_mock()
    jira.create_issue = AsyncMock(return_value=created)
    persister = RecordingPersister()
    context = IntegrationContext(cache=InMemoryResourceCache(), persister=persister, jira=jira)
    request = CreateIssueRequest(project_key="BBB", summary="New work", description="Details", requested_class="Vulnerability")

    # When
    summary = await create_issue(context, request)

    # Then
    jira.create_issue.assert_awaited_once_with(project_key="BBB", summary="New work", issue_type="Task", description="Details")
    assert summary.count("jira_issue", OperationAction.CREATE) == 1
    assert summary.count("jira_user_created_jira_issue", OperationAction.CREATE) == 1
    assert persister.entities["jira_issue:42"].entity_class == "Vulnerability"
