"""Unit tests for the catalog-info exclusion probe."""

from __future__ import annotations

import httpx
import pytest

from reposcout.azure import RemoteUnavailable, RepositoryItem
from reposcout.discovery import DiscoveryEventLogger, has_exclusion_marker
from tests.helpers.discovery_fakes import FakeAzureClient, FakeLogger, run_context


async def _probe(
    items: list[RepositoryItem] | Exception, logger: FakeLogger | None = None
) -> bool:
    client = FakeAzureClient([], root_items={"r1": items})
    return await has_exclusion_marker(
        client,
        "r1",
        context=run_context(),
        events=DiscoveryEventLogger(logger or FakeLogger()),
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/catalog-info.yaml", "/catalog-info.yml"])
async def test_root_catalog_info_excludes(path: str) -> None:
    """Either catalog-info extension at the root excludes the repository."""
    assert await _probe([RepositoryItem(path="/README.md"), RepositoryItem(path=path)])


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path",
    [
        "/docs/catalog-info.yaml",
        "/Catalog-Info.yaml",
        "/catalog-info.json",
        "/catalog-info.yaml.bak",
    ],
)
async def test_other_paths_do_not_exclude(path: str) -> None:
    """Only exact root-level names count."""
    assert not await _probe([RepositoryItem(path=path)])


@pytest.mark.asyncio
async def test_empty_repository_is_not_excluded() -> None:
    """A repository with no root entries is discovered."""
    assert not await _probe([])


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        RemoteUnavailable.http_error(404, "items of repository r1"),
        RemoteUnavailable.transport("items of repository r1", "reset"),
        httpx.ReadTimeout("slow"),
        httpx.InvalidURL("bad url"),
        ValueError("bad payload"),
        PermissionError("403"),
        RuntimeError("listing backend crashed"),
    ],
)
async def test_listing_failures_are_not_exclusion(error: Exception) -> None:
    """A failed probe keeps the repository and logs at DEBUG."""
    logger = FakeLogger()

    assert not await _probe(error, logger)

    debug = logger.messages("DEBUG")
    assert len(debug) == 1
    assert debug[0].startswith("[discovery.probe.failed]")
    assert "repository_id=r1" in debug[0]
