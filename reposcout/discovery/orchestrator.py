"""Discovery orchestration across projects and repositories.

The orchestrator lists every project of the organization, then lists each
project's repositories, drops repositories that already declare catalog
metadata, resolves owners and maps the survivors to catalog entities.

Projects are processed concurrently up to ``max_concurrency``. Each project
runs inside its own task that captures any failure, so a project whose
repositories cannot be listed is logged and skipped without cancelling its
siblings. Results are reassembled in project encounter order, and
repositories keep their listing order within a project. When two
repositories normalize to the same entity name, the first one wins and the
later one is logged as a duplicate.
"""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

from .errors import DiscoveryFailed
from .filters import has_exclusion_marker
from .mapper import map_repository
from .observability import DiscoveryEventLogger
from .owners import OwnerMapping, resolve_owner

if typ.TYPE_CHECKING:
    from reposcout.azure.client import AzureDevOpsRepositoryClient
    from reposcout.azure.models import ProjectRef
    from reposcout.inventory.models import Entity

    from .observability import DiscoveryRunContext

DEFAULT_MAX_CONCURRENCY = 4


@dataclasses.dataclass(frozen=True, slots=True)
class DiscoveryConfig:
    """Inputs that stay fixed for the duration of a run."""

    organization: str
    owner_mapping: OwnerMapping = dataclasses.field(default_factory=OwnerMapping)
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    def __post_init__(self) -> None:
        """Reject non-positive concurrency limits."""
        if self.max_concurrency < 1:
            msg = f"max_concurrency must be positive, got: {self.max_concurrency}"
            raise ValueError(msg)


@dataclasses.dataclass(slots=True)
class DiscoveryRun:
    """Entities and counters produced by one discovery invocation."""

    entities: list[Entity] = dataclasses.field(default_factory=list)
    projects_processed: int = 0
    projects_failed: int = 0
    repositories_skipped: int = 0
    repositories_unmapped: int = 0
    entities_duplicated: int = 0


@dataclasses.dataclass(slots=True)
class _ProjectOutcome:
    """Per-project slice of a run, merged once every project finishes."""

    entities: list[Entity] = dataclasses.field(default_factory=list)
    failed: bool = False
    repositories_skipped: int = 0
    repositories_unmapped: int = 0


class DiscoveryOrchestrator:
    """Enumerate, filter and map every repository of an organization."""

    def __init__(
        self,
        client: AzureDevOpsRepositoryClient,
        config: DiscoveryConfig,
        *,
        event_logger: DiscoveryEventLogger | None = None,
    ) -> None:
        """Bind the orchestrator to a remote client and run configuration."""
        self._client = client
        self._config = config
        self._events = event_logger or DiscoveryEventLogger()

    async def discover(self, context: DiscoveryRunContext) -> DiscoveryRun:
        """Run one full discovery pass.

        Raises
        ------
        DiscoveryFailed
            If the project listing itself fails. Nothing is returned in that
            case, so no partial set can be committed.

        """
        try:
            projects = await self._client.list_projects()
        except Exception as exc:
            raise DiscoveryFailed(self._config.organization, str(exc)) from exc

        eligible = [project for project in projects if project.id and project.name]
        outcomes = await self._discover_projects(eligible, context)

        run = DiscoveryRun()
        seen: set[str] = set()
        for outcome in outcomes:
            if outcome.failed:
                run.projects_failed += 1
                continue
            run.projects_processed += 1
            for entity in outcome.entities:
                if entity.ref in seen:
                    self._events.log_entity_duplicated(context, entity.ref)
                    run.entities_duplicated += 1
                    continue
                seen.add(entity.ref)
                run.entities.append(entity)
            run.repositories_skipped += outcome.repositories_skipped
            run.repositories_unmapped += outcome.repositories_unmapped
        return run

    async def _discover_projects(
        self,
        projects: list[ProjectRef],
        context: DiscoveryRunContext,
    ) -> list[_ProjectOutcome]:
        """Process projects concurrently, returning outcomes in input order."""
        semaphore = asyncio.Semaphore(self._config.max_concurrency)
        outcomes: list[_ProjectOutcome] = [_ProjectOutcome() for _ in projects]

        async def _bounded(index: int, project: ProjectRef) -> None:
            async with semaphore:
                try:
                    outcomes[index] = await self._discover_project(project, context)
                except Exception as exc:  # noqa: BLE001
                    self._events.log_project_failed(
                        context, typ.cast("str", project.name), exc
                    )
                    outcomes[index] = _ProjectOutcome(failed=True)

        async with asyncio.TaskGroup() as group:
            for index, project in enumerate(projects):
                group.create_task(_bounded(index, project))

        return outcomes

    async def _discover_project(
        self,
        project: ProjectRef,
        context: DiscoveryRunContext,
    ) -> _ProjectOutcome:
        """Discover one project's repositories; failures propagate to the caller."""
        project_id = typ.cast("str", project.id)
        project_name = typ.cast("str", project.name)
        outcome = _ProjectOutcome()
        repositories = await self._client.list_repositories(project_id)

        owner = resolve_owner(project_name, self._config.owner_mapping)
        for repository in repositories:
            if repository.id and await has_exclusion_marker(
                self._client,
                repository.id,
                context=context,
                events=self._events,
            ):
                self._events.log_repository_excluded(
                    context, project_name, repository.name
                )
                outcome.repositories_skipped += 1
                continue

            entity = map_repository(
                repository, project, owner, self._config.organization
            )
            if entity is None:
                self._events.log_repository_unmapped(
                    context, project_name, repository.name
                )
                outcome.repositories_unmapped += 1
                continue
            outcome.entities.append(entity)

        return outcome
