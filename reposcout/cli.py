"""Command-line entry point for Azure DevOps repository discovery."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import os
import typing as typ
from pathlib import Path

import msgspec

from reposcout.config import (
    ConfigValidationError,
    build_config_schema,
    load_config,
)
from reposcout.discovery.errors import DiscoveryFailed
from reposcout.inventory.errors import CommitFailed
from reposcout.inventory.models import FullMutation, MutationResult
from reposcout.logging import configure_logging, get_logger, log_warning
from reposcout.provider import AzureDevOpsRepoEntityProvider
from reposcout.scheduling import PeriodicTaskRunner

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from reposcout.config import ProviderConfig
    from reposcout.inventory.committer import EntityProviderConnection
    from reposcout.provider import ProviderRunResult

logger = get_logger(__name__)


class DryRunConnection:
    """Connection that accepts mutations without persisting them."""

    def __init__(self, provider_name: str) -> None:
        """Initialise an empty connection for ``provider_name``."""
        self.provider_name = provider_name
        self.mutations: list[FullMutation] = []

    async def apply_mutation(self, mutation: FullMutation) -> MutationResult:
        """Record the mutation and report every entity as created."""
        self.mutations.append(mutation)
        return MutationResult(
            provider_name=self.provider_name,
            entities_created=len(mutation.entities),
        )


@contextlib.asynccontextmanager
async def _open_connection(
    database_url: str | None, provider_name: str
) -> cabc.AsyncIterator[EntityProviderConnection]:
    if database_url is None:
        yield DryRunConnection(provider_name)
        return

    from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

    from reposcout.inventory.storage import SqlEntityInventory, init_inventory_storage

    engine = create_async_engine(database_url)
    try:
        await init_inventory_storage(engine)
        inventory = SqlEntityInventory(
            async_sessionmaker(engine, expire_on_commit=False)
        )
        yield inventory.connection(provider_name)
    finally:
        await engine.dispose()


async def _idle() -> None:
    """Schedule hook that leaves run control to the caller."""


async def run_discovery(
    config: ProviderConfig, database_url: str | None
) -> ProviderRunResult:
    """Connect a provider to the selected inventory and run it once."""
    provider = AzureDevOpsRepoEntityProvider.from_config(config, schedule=_idle)
    async with _open_connection(database_url, provider.provider_name) as connection:
        await provider.connect(connection)
        return await provider.run()


async def watch_discovery(config: ProviderConfig, database_url: str | None) -> None:
    """Run discovery on the configured schedule until interrupted."""
    runner = PeriodicTaskRunner(config.schedule, name="repository discovery")

    async def _forever() -> None:
        await runner.run_forever(provider.run)

    provider = AzureDevOpsRepoEntityProvider.from_config(config, schedule=_forever)
    async with _open_connection(database_url, provider.provider_name) as connection:
        await provider.connect(connection)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("config", type=Path, help="YAML provider configuration")
    parser.add_argument(
        "--database-url",
        default=os.environ.get("REPOSCOUT_DATABASE_URL"),
        help="SQLAlchemy async URL of the inventory; omit for a dry run",
    )
    parser.add_argument(
        "--json-out",
        type=Path,
        default=None,
        help="Optional path to write the discovered entities as JSON",
    )
    parser.add_argument(
        "--schema-out",
        type=Path,
        default=None,
        help="Optional path to write the configuration JSON Schema",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("REPOSCOUT_LOG_LEVEL", "INFO"),
        help="Log level (default INFO)",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Keep running on the configured schedule",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run repository discovery from the command line.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 when configuration or the run fails.

    """
    args = _build_parser().parse_args(argv)

    normalized_level, invalid_level = configure_logging(args.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid log level %r, falling back to %s",
            args.log_level,
            normalized_level,
        )

    if args.schema_out:
        args.schema_out.parent.mkdir(parents=True, exist_ok=True)
        schema = msgspec.json.encode(build_config_schema())
        args.schema_out.write_bytes(msgspec.json.format(schema, indent=2))

    config_path: Path = args.config
    try:
        config = load_config(config_path)
    except ConfigValidationError as exc:
        print(f"Configuration invalid in {config_path}:")
        for issue in exc.issues:
            print(f"  - {issue}")
        return 1

    if args.watch:
        asyncio.run(watch_discovery(config, args.database_url))
        return 0

    try:
        result = asyncio.run(run_discovery(config, args.database_url))
    except (DiscoveryFailed, CommitFailed) as exc:
        print(f"Discovery failed: {exc}")
        return 1

    if args.json_out:
        args.json_out.write_bytes(msgspec.json.encode(result.run.entities))

    print(
        f"discovered {result.entity_count} repositories "
        f"({result.run.projects_processed} projects / "
        f"{result.run.projects_failed} failed / "
        f"{result.run.repositories_skipped} excluded); "
        f"{result.mutation.entities_deleted} stale entities removed"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
