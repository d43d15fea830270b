"""Jira Cloud REST API client.

Async httpx-based client for Jira Cloud API v3 with Basic Auth. Issue search
uses the token-based ``/rest/api/3/search/jql`` endpoint and is exposed one
page at a time so callers control traversal.
"""

import base64
from typing import Any, Self

import httpx
import structlog

from graph_sync_manager.schemas.jira import Issue, JiraField, JiraProject
from graph_sync_manager.synchronize.iteration import Page
from graph_sync_manager.utils.retry import retry_on_rate_limit

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

DEFAULT_PAGE_SIZE = 50


class JiraClientError(Exception):
    """Raised when a Jira API request fails."""

    def __init__(self, message: str, endpoint: str | None = None, status_code: int | None = None) -> None:
        """Initializes the exception with the endpoint and status code of the failed request."""
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code


class JiraClient:
    """Jira Cloud REST API client using httpx with Basic Auth."""

    def __init__(
        self,
        base_url: str,
        username: str,
        api_token: str,
        page_size: int = DEFAULT_PAGE_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Jira instance URL (e.g., https://company.atlassian.net)
            username: Jira account email for Basic Auth
            api_token: Jira API token
            page_size: Number of issues requested per search page
            transport: Optional httpx transport, used to stub the API in tests
        """
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        credentials = base64.b64encode(f"{username}:{api_token}".encode()).decode()
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(connect=3.0, read=30.0, write=5.0, pool=3.0),
            headers={
                "Authorization": f"Basic {credentials}",
                "Accept": "application/json",
            },
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body, wrapping transport errors."""
        try:
            response = await self._send(method, path, **kwargs)
        except httpx.HTTPStatusError as exc:
            logger.error("Jira request failed", method=method, endpoint=path, status_code=exc.response.status_code)
            raise JiraClientError(
                f"Jira request {method} {path} failed with HTTP {exc.response.status_code}",
                endpoint=path,
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Jira request error", method=method, endpoint=path, error=str(exc))
            raise JiraClientError(f"Jira request {method} {path} failed: {exc}", endpoint=path) from exc
        return response.json()

    @retry_on_rate_limit(max_retries=5, initial_delay=2.0, max_delay=60.0)
    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = await self.client.request(method, path, **kwargs)
        response.raise_for_status()
        return response

    async def fetch_projects(self) -> list[JiraProject]:
        """List every project the credentials can access."""
        data = await self._request("GET", "/rest/api/3/project")
        return [JiraProject.model_validate(project) for project in data]

    async def fetch_fields(self) -> list[JiraField]:
        """List system and custom field metadata."""
        data = await self._request("GET", "/rest/api/3/field")
        return [JiraField.model_validate(field) for field in data]

    async def search_issues_page(self, jql: str, next_page_token: str | None = None) -> Page[Issue]:
        """Fetch one page of issues matching a JQL query."""
        params: dict[str, Any] = {"jql": jql, "maxResults": self.page_size, "fields": "*all"}
        if next_page_token:
            params["nextPageToken"] = next_page_token
        data = await self._request("GET", "/rest/api/3/search/jql", params=params)
        issues = [Issue.model_validate(issue) for issue in data.get("issues", [])]
        token = data.get("nextPageToken")
        is_last = data.get("isLast", not token)
        return Page(items=issues, next_token=None if is_last or not token else token)

    async def create_issue(
        self,
        project_key: str,
        summary: str,
        issue_type: str = "Task",
        description: str | None = None,
        **fields: Any,
    ) -> Issue:
        """Create an issue and return it as fetched back from Jira."""
        payload_fields: dict[str, Any] = {
            "project": {"key": project_key},
            "summary": summary,
            "issuetype": {"name": issue_type},
            **fields,
        }
        if description:
            payload_fields["description"] = {
                "type": "doc",
                "version": 1,
                "content": [{"type": "paragraph", "content": [{"type": "text", "text": description}]}],
            }
        created = await self._request("POST", "/rest/api/3/issue", json={"fields": payload_fields})
        logger.info("Created Jira issue", project_key=project_key, issue_key=created.get("key"))
        data = await self._request("GET", f"/rest/api/3/issue/{created['key']}")
        return Issue.model_validate(data)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
