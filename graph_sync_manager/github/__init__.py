"""GitHub organization directory client."""

from .abc import OrganizationDirectoryClientBase
from .adapter import GitHubKitAdapter
from .directory import OrganizationDirectory

__all__ = ["GitHubKitAdapter", "OrganizationDirectory", "OrganizationDirectoryClientBase"]
