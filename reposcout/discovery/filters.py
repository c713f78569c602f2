"""Exclusion probe for repositories that already describe themselves."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from reposcout.azure.client import RootListing

    from .observability import DiscoveryEventLogger, DiscoveryRunContext

CATALOG_INFO_PATHS = frozenset({"/catalog-info.yaml", "/catalog-info.yml"})


async def has_exclusion_marker(
    listing: RootListing,
    repository_id: str,
    *,
    context: DiscoveryRunContext,
    events: DiscoveryEventLogger,
) -> bool:
    """Return True when the repository root holds a catalog-info file.

    Only root-level entries named exactly ``catalog-info.yaml`` or
    ``catalog-info.yml`` count. A probe that fails for any reason, whatever
    the listing raises, reports the repository as not excluded, so it is
    still discovered.
    """
    try:
        items = await listing.list_root_items(repository_id)
    except Exception as exc:  # noqa: BLE001
        events.log_probe_failed(context, repository_id, exc)
        return False

    return any(item.path in CATALOG_INFO_PATHS for item in items)
