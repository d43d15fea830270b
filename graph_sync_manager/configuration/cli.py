"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import logging
from pathlib import Path
from typing import Any, Coroutine, TypeVar

import structlog
import typer
from dotenv import load_dotenv
from typer import Option
from typing_extensions import Annotated

from graph_sync_manager.cache.store import InMemoryResourceCache, InvalidFetchTransitionError
from graph_sync_manager.configuration.env import settings
from graph_sync_manager.configuration.models import GitHubConfig, JiraConfig
from graph_sync_manager.configuration.reconcile import reconcile_github_configuration, reconcile_jira_configuration
from graph_sync_manager.exceptions import GraphSyncError
from graph_sync_manager.github.adapter import GitHubKitAdapter
from graph_sync_manager.github.directory import OrganizationDirectory
from graph_sync_manager.jira.client import JiraClient, JiraClientError
from graph_sync_manager.persister.memory import YAMLGraphPersister
from graph_sync_manager.persister.models import OperationSummary
from graph_sync_manager.synchronize.context import CreateIssueRequest, IntegrationContext
from graph_sync_manager.synchronize.driver import execute_action
from graph_sync_manager.synchronize.fetch import fetch_issues
from graph_sync_manager.synchronize.join import JoinStrategy
from graph_sync_manager.synchronize.verify import verify_authentication, verify_organization_access

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False)

T = TypeVar("T")

JiraBaseUrlOption = Annotated[str | None, Option(envvar="JIRA_BASE_URL", help="Jira site base URL.")]
JiraUsernameOption = Annotated[str | None, Option(envvar="JIRA_USERNAME", help="Jira account email.")]
JiraApiTokenOption = Annotated[str | None, Option(envvar="JIRA_API_TOKEN", help="Jira API token.")]
JiraProjectsOption = Annotated[str | None, Option(envvar="JIRA_PROJECTS", help="Project keys, comma-separated or a JSON array.")]
JiraCustomFieldsOption = Annotated[str | None, Option(envvar="JIRA_CUSTOM_FIELDS", help="Custom field ids or names to include.")]
GitHubApiUrlOption = Annotated[str, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")]
GitHubOrgOption = Annotated[str | None, Option(envvar="GITHUB_ORG", help="GitHub organization login.")]
GitHubPatTokenOption = Annotated[str | None, Option(envvar="GITHUB_PAT_TOKEN", help="GitHub Personal Access Token.")]
GitHubAppIdOption = Annotated[str | None, Option(envvar="GITHUB_APP_ID", help="GitHub App ID.")]
GitHubAppPrivateKeyPathOption = Annotated[Path | None, Option(envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")]
GitHubAppInstallationIdOption = Annotated[str | None, Option(envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")]
GraphStorePathOption = Annotated[Path, Option(envvar="GRAPH_STORE_PATH", help="Path of the YAML graph store.")]
JoinStrategyOption = Annotated[JoinStrategy, Option(envvar="JOIN_STRATEGY", help="Strategy used to join team members and repositories.")]
DebugOption = Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")]


def configure_logging(debug: bool) -> None:
    """Configure structlog output for CLI runs."""
    level = logging.DEBUG if debug else logging.INFO
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )


def echo_summary(summary: OperationSummary) -> None:
    """Print the operation summary of a run."""
    typer.echo(f"Created: {summary.created}, updated: {summary.updated}, deleted: {summary.deleted}, skipped: {summary.skipped}")
    for type_name, by_action in sorted(summary.counts.items()):
        counts = ", ".join(f"{action.value}={count}" for action, count in by_action.items())
        typer.echo(f"  {type_name}: {counts}")


def run_or_exit(coroutine: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, reporting pipeline and provider errors on stderr with a non-zero exit."""
    try:
        return asyncio.run(coroutine)
    except GraphSyncError as exc:
        typer.echo(f"{exc.kind.value}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except JiraClientError as exc:
        typer.echo(f"jira_request: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    except InvalidFetchTransitionError as exc:
        typer.echo(f"fetch_state: {exc}", err=True)
        raise typer.Exit(code=1) from exc


async def build_jira_context(jira_config: JiraConfig, graph_store_path: Path) -> IntegrationContext:
    """Build the run context for the Jira integration."""
    return IntegrationContext(
        cache=InMemoryResourceCache(),
        persister=YAMLGraphPersister(graph_store_path),
        jira=JiraClient(jira_config.base_url, jira_config.username, jira_config.api_token),
        project_keys=jira_config.project_keys,
        custom_fields_to_include=jira_config.custom_fields_to_include,
    )


async def build_directory(github_config: GitHubConfig, join_strategy: JoinStrategy) -> OrganizationDirectory:
    """Build the organization directory for the GitHub integration."""
    adapter = await GitHubKitAdapter.create(github_config)
    return OrganizationDirectory(adapter, join_strategy=join_strategy)


@typer_app.command(name="verify")
def verify_cli(
    jira_base_url: JiraBaseUrlOption = None,
    jira_username: JiraUsernameOption = None,
    jira_api_token: JiraApiTokenOption = None,
    jira_projects: JiraProjectsOption = None,
    github_api_url: GitHubApiUrlOption = settings.GITHUB_API_URL,
    github_org: GitHubOrgOption = None,
    github_pat_token: GitHubPatTokenOption = None,
    github_app_id: GitHubAppIdOption = None,
    github_app_private_key_path: GitHubAppPrivateKeyPathOption = None,
    github_app_installation_id: GitHubAppInstallationIdOption = None,
    debug: DebugOption = settings.DEBUG,
) -> None:
    """Verify credentials and configured identifiers for every configured integration."""
    configure_logging(debug)

    async def run_verification() -> None:
        if jira_base_url:
            jira_config = await reconcile_jira_configuration(jira_base_url, jira_username, jira_api_token, jira_projects)
            async with JiraClient(jira_config.base_url, jira_config.username, jira_config.api_token) as jira:
                projects = await verify_authentication(jira, jira_config.project_keys)
            typer.echo(f"Jira credentials verified, {len(projects)} project(s) accessible")
        if github_pat_token or github_app_id:
            github_config = await reconcile_github_configuration(
                github_api_url, github_org, github_pat_token, github_app_id, github_app_private_key_path, github_app_installation_id
            )
            adapter = await GitHubKitAdapter.create(github_config)
            account = await verify_organization_access(adapter)
            typer.echo(f"GitHub credentials verified for organization {account.login}")

    run_or_exit(run_verification())


@typer_app.command(name="sync-issues")
def sync_issues_cli(
    jira_base_url: JiraBaseUrlOption = None,
    jira_username: JiraUsernameOption = None,
    jira_api_token: JiraApiTokenOption = None,
    jira_projects: JiraProjectsOption = None,
    jira_custom_fields: JiraCustomFieldsOption = None,
    graph_store_path: GraphStorePathOption = settings.GRAPH_STORE_PATH,
    debug: DebugOption = settings.DEBUG,
) -> None:
    """Fetch issues of the configured projects and synchronize them into the graph store."""
    configure_logging(debug)

    async def run_sync() -> OperationSummary:
        jira_config = await reconcile_jira_configuration(jira_base_url, jira_username, jira_api_token, jira_projects, jira_custom_fields)
        context = await build_jira_context(jira_config, graph_store_path)
        jira = context.require_jira()
        async with jira:
            await verify_authentication(jira, context.project_keys)
            await fetch_issues(jira, context.cache, context.project_keys)
            return await execute_action("SYNCHRONIZE_ISSUES", context)

    echo_summary(run_or_exit(run_sync()))


@typer_app.command(name="sync-organization")
def sync_organization_cli(
    github_api_url: GitHubApiUrlOption = settings.GITHUB_API_URL,
    github_org: GitHubOrgOption = None,
    github_pat_token: GitHubPatTokenOption = None,
    github_app_id: GitHubAppIdOption = None,
    github_app_private_key_path: GitHubAppPrivateKeyPathOption = None,
    github_app_installation_id: GitHubAppInstallationIdOption = None,
    join_strategy: JoinStrategyOption = JoinStrategy.INDEXED,
    graph_store_path: GraphStorePathOption = settings.GRAPH_STORE_PATH,
    debug: DebugOption = settings.DEBUG,
) -> None:
    """Synchronize the GitHub organization directory into the graph store."""
    configure_logging(debug)

    async def run_sync() -> OperationSummary:
        github_config = await reconcile_github_configuration(
            github_api_url, github_org, github_pat_token, github_app_id, github_app_private_key_path, github_app_installation_id
        )
        context = IntegrationContext(
            cache=InMemoryResourceCache(),
            persister=YAMLGraphPersister(graph_store_path),
            directory=await build_directory(github_config, join_strategy),
        )
        return await execute_action("SYNCHRONIZE_ORGANIZATION", context)

    echo_summary(run_or_exit(run_sync()))


@typer_app.command(name="create-issue")
def create_issue_cli(
    project_key: Annotated[str, Option(help="Key of the project to create the issue in.")],
    summary_text: Annotated[str, Option("--summary", help="Issue summary.")],
    issue_type: Annotated[str, Option(help="Issue type name.")] = "Task",
    description: Annotated[str | None, Option(help="Plain text issue description.")] = None,
    entity_class: Annotated[str | None, Option(help="Entity class to record the issue as.")] = None,
    jira_base_url: JiraBaseUrlOption = None,
    jira_username: JiraUsernameOption = None,
    jira_api_token: JiraApiTokenOption = None,
    jira_projects: JiraProjectsOption = None,
    jira_custom_fields: JiraCustomFieldsOption = None,
    graph_store_path: GraphStorePathOption = settings.GRAPH_STORE_PATH,
    debug: DebugOption = settings.DEBUG,
) -> None:
    """Create a Jira issue and record it in the graph store."""
    configure_logging(debug)

    async def run_create() -> OperationSummary:
        jira_config = await reconcile_jira_configuration(
            jira_base_url, jira_username, jira_api_token, jira_projects or project_key, jira_custom_fields
        )
        context = await build_jira_context(jira_config, graph_store_path)
        context.create_issue_request = CreateIssueRequest(
            project_key=project_key.strip().upper(),
            summary=summary_text,
            issue_type=issue_type,
            description=description,
            requested_class=entity_class,
        )
        async with context.require_jira():
            return await execute_action("CREATE_ENTITY", context)

    echo_summary(run_or_exit(run_create()))


@typer_app.command(name="ingest")
def ingest_cli(
    jira_base_url: JiraBaseUrlOption = None,
    jira_username: JiraUsernameOption = None,
    jira_api_token: JiraApiTokenOption = None,
    jira_projects: JiraProjectsOption = None,
    jira_custom_fields: JiraCustomFieldsOption = None,
    github_api_url: GitHubApiUrlOption = settings.GITHUB_API_URL,
    github_org: GitHubOrgOption = None,
    github_pat_token: GitHubPatTokenOption = None,
    github_app_id: GitHubAppIdOption = None,
    github_app_private_key_path: GitHubAppPrivateKeyPathOption = None,
    github_app_installation_id: GitHubAppInstallationIdOption = None,
    join_strategy: JoinStrategyOption = JoinStrategy.INDEXED,
    graph_store_path: GraphStorePathOption = settings.GRAPH_STORE_PATH,
    debug: DebugOption = settings.DEBUG,
) -> None:
    """Verify, fetch and synchronize every configured integration."""
    configure_logging(debug)

    async def run_ingest() -> OperationSummary:
        context = IntegrationContext(cache=InMemoryResourceCache(), persister=YAMLGraphPersister(graph_store_path))
        if jira_base_url:
            jira_config = await reconcile_jira_configuration(jira_base_url, jira_username, jira_api_token, jira_projects, jira_custom_fields)
            context.jira = JiraClient(jira_config.base_url, jira_config.username, jira_config.api_token)
            context.project_keys = jira_config.project_keys
            context.custom_fields_to_include = jira_config.custom_fields_to_include
        if github_pat_token or github_app_id:
            github_config = await reconcile_github_configuration(
                github_api_url, github_org, github_pat_token, github_app_id, github_app_private_key_path, github_app_installation_id
            )
            context.directory = await build_directory(github_config, join_strategy)
        if context.jira is None and context.directory is None:
            typer.echo("No integration configured, set Jira or GitHub credentials", err=True)
            raise typer.Exit(code=1)
        try:
            return await execute_action("INGEST", context)
        finally:
            if context.jira is not None:
                await context.jira.close()

    echo_summary(run_or_exit(run_ingest()))


if __name__ == "__main__":
    typer_app()
