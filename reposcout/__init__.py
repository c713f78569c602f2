"""Discover Azure DevOps repositories and publish them as catalog entities."""

from __future__ import annotations

from .provider import (
    PROVIDER_NAME,
    AzureDevOpsRepoEntityProvider,
    NotInitialized,
    ProviderRunResult,
)

__all__ = [
    "PROVIDER_NAME",
    "AzureDevOpsRepoEntityProvider",
    "NotInitialized",
    "ProviderRunResult",
]
