"""Azure DevOps repository entity provider.

The provider owns the lifecycle of discovery runs for one organization. The
inventory hands it a connection via :meth:`connect`; each :meth:`run`
rediscovers every repository from scratch and commits the complete set under
the provider's stable name, so repositories that disappeared are removed by
the inventory.

Example
-------
Run discovery once against a SQL inventory::

    provider = AzureDevOpsRepoEntityProvider.from_config(load_config(path))
    await provider.connect(inventory.connection(provider.provider_name))
"""

from __future__ import annotations

import dataclasses
import typing as typ

from reposcout.azure.client import AzureDevOpsClient, AzureDevOpsConfig
from reposcout.common.time import utcnow
from reposcout.discovery.observability import DiscoveryEventLogger, DiscoveryRunContext
from reposcout.discovery.orchestrator import DiscoveryOrchestrator
from reposcout.inventory.committer import ReconciliationCommitter

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from reposcout.azure.client import AzureDevOpsRepositoryClient
    from reposcout.config import ProviderConfig
    from reposcout.discovery.orchestrator import DiscoveryRun
    from reposcout.inventory.committer import EntityProviderConnection
    from reposcout.inventory.models import MutationResult

    type ScheduleFn = cabc.Callable[[], cabc.Awaitable[None]]
    type ClientFactory = cabc.Callable[
        [ProviderConfig], tuple[AzureDevOpsRepositoryClient, ClientCloser]
    ]
    type ClientCloser = cabc.Callable[[], cabc.Awaitable[None]]

PROVIDER_NAME = "AzureDevOpsRepoEntityProvider"


class NotInitialized(RuntimeError):
    """Raised when a run is requested before the inventory connection exists."""

    def __init__(self, provider_name: str) -> None:
        """Initialise with the provider that was used too early."""
        self.provider_name = provider_name
        super().__init__(f"{provider_name} is not initialized; call connect() first")


@dataclasses.dataclass(frozen=True, slots=True)
class ProviderRunResult:
    """Outcome of a committed discovery run."""

    provider_name: str
    run: DiscoveryRun
    mutation: MutationResult

    @property
    def entity_count(self) -> int:
        """Return the number of entities committed."""
        return len(self.run.entities)


def _default_client_factory(
    config: ProviderConfig,
) -> tuple[AzureDevOpsRepositoryClient, ClientCloser]:
    client = AzureDevOpsClient(
        AzureDevOpsConfig(
            organization=config.organization,
            token=config.personal_access_token,
        )
    )
    return client, client.aclose


class AzureDevOpsRepoEntityProvider:
    """Discover Azure DevOps repositories and publish them as catalog entities."""

    def __init__(
        self,
        config: ProviderConfig,
        *,
        schedule: ScheduleFn | None = None,
        client_factory: ClientFactory | None = None,
        event_logger: DiscoveryEventLogger | None = None,
    ) -> None:
        """Configure the provider.

        Parameters
        ----------
        config
            Validated provider configuration.
        schedule
            Hook invoked by :meth:`connect`. Defaults to running once
            immediately; pass :meth:`PeriodicTaskRunner.as_schedule_fn` for
            recurring runs.
        client_factory
            Builds the remote client per run together with its close hook.
        event_logger
            Receives structured discovery events.

        """
        self._config = config
        self._client_factory = client_factory or _default_client_factory
        self._events = event_logger or DiscoveryEventLogger()
        self._schedule = schedule or self._run_once
        self._connection: EntityProviderConnection | None = None

    @classmethod
    def from_config(
        cls,
        config: ProviderConfig,
        *,
        schedule: ScheduleFn | None = None,
    ) -> AzureDevOpsRepoEntityProvider:
        """Build a provider that talks to the configured organization."""
        return cls(config, schedule=schedule)

    @property
    def provider_name(self) -> str:
        """Return the stable identity used as location key for every entity."""
        return PROVIDER_NAME

    async def connect(self, connection: EntityProviderConnection) -> None:
        """Store the inventory connection and hand control to the schedule."""
        self._connection = connection
        await self._schedule()

    async def _run_once(self) -> None:
        await self.run()

    async def run(self) -> ProviderRunResult:
        """Discover every repository and commit the full entity set.

        Raises
        ------
        NotInitialized
            If :meth:`connect` has not been called.
        DiscoveryFailed
            If projects cannot be listed; nothing is committed.
        CommitFailed
            If the inventory rejects the entity set.

        """
        if self._connection is None:
            raise NotInitialized(self.provider_name)

        context = DiscoveryRunContext(
            provider_name=self.provider_name,
            organization=self._config.organization,
            started_at=utcnow(),
        )
        self._events.log_run_started(context)

        try:
            result = await self._run_inner(self._connection, context)
        except BaseException as exc:
            self._events.log_run_failed(context, exc)
            raise

        self._events.log_run_completed(context, result.run, result.mutation)
        return result

    async def _run_inner(
        self,
        connection: EntityProviderConnection,
        context: DiscoveryRunContext,
    ) -> ProviderRunResult:
        """Discover then commit, always closing the per-run client."""
        client, close = self._client_factory(self._config)
        try:
            orchestrator = DiscoveryOrchestrator(
                client,
                self._config.discovery_config(),
                event_logger=self._events,
            )
            run = await orchestrator.discover(context)
        finally:
            await close()

        committer = ReconciliationCommitter(connection)
        mutation = await committer.commit(run.entities, self.provider_name)
        self._events.log_commit_completed(context, mutation)
        return ProviderRunResult(
            provider_name=self.provider_name, run=run, mutation=mutation
        )
