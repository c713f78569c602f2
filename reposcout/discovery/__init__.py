"""Repository discovery engine.

Discovery turns the projects and repositories of an Azure DevOps
organization into catalog component entities:

- exclusion of repositories that already contain ``catalog-info.yaml``
- owner resolution from a configured project table
- deterministic mapping into the catalog entity envelope
- orchestration with per-project fault isolation

Usage
-----
Discover entities for an organization::

    from reposcout.discovery import (
        DiscoveryConfig,
        DiscoveryOrchestrator,
        DiscoveryRunContext,
    )

    orchestrator = DiscoveryOrchestrator(client, DiscoveryConfig(organization=org))
    run = await orchestrator.discover(
        DiscoveryRunContext("AzureDevOpsRepoEntityProvider", org, utcnow())
    )
    print(len(run.entities))

"""

from reposcout.discovery.errors import DiscoveryError, DiscoveryFailed
from reposcout.discovery.filters import CATALOG_INFO_PATHS, has_exclusion_marker
from reposcout.discovery.mapper import SOURCE_SYSTEM, map_repository
from reposcout.discovery.observability import (
    DiscoveryEventLogger,
    DiscoveryEventType,
    DiscoveryRunContext,
    ErrorCategory,
    categorize_error,
)
from reposcout.discovery.orchestrator import (
    DiscoveryConfig,
    DiscoveryOrchestrator,
    DiscoveryRun,
)
from reposcout.discovery.owners import (
    UNKNOWN_OWNER,
    OwnerMapping,
    OwnerMappingEntry,
    resolve_owner,
)

__all__ = [
    "CATALOG_INFO_PATHS",
    "SOURCE_SYSTEM",
    "UNKNOWN_OWNER",
    "DiscoveryConfig",
    "DiscoveryError",
    "DiscoveryEventLogger",
    "DiscoveryEventType",
    "DiscoveryFailed",
    "DiscoveryOrchestrator",
    "DiscoveryRun",
    "DiscoveryRunContext",
    "ErrorCategory",
    "OwnerMapping",
    "OwnerMappingEntry",
    "categorize_error",
    "has_exclusion_marker",
    "map_repository",
    "resolve_owner",
]
