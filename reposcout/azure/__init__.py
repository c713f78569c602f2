"""Azure DevOps client primitives used by repository discovery."""

from __future__ import annotations

from .client import (
    AzureDevOpsClient,
    AzureDevOpsConfig,
    AzureDevOpsRepositoryClient,
    RepositoryEnumerator,
    RootListing,
)
from .errors import (
    AzureDevOpsConfigError,
    AzureDevOpsError,
    AzureDevOpsResponseShapeError,
    ProjectNotFound,
    RemoteUnavailable,
)
from .models import ProjectRef, RepositoryItem, RepositoryRef

__all__ = [
    "AzureDevOpsClient",
    "AzureDevOpsConfig",
    "AzureDevOpsConfigError",
    "AzureDevOpsError",
    "AzureDevOpsRepositoryClient",
    "AzureDevOpsResponseShapeError",
    "ProjectNotFound",
    "ProjectRef",
    "RemoteUnavailable",
    "RepositoryEnumerator",
    "RepositoryItem",
    "RepositoryRef",
    "RootListing",
]
