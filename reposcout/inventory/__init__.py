"""Catalog inventory contract, committer, and SQL-backed store.

Quick examples
--------------

Commit a run's entities into a SQLite inventory::

    >>> from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
    >>> from reposcout.inventory import (
    ...     ReconciliationCommitter,
    ...     SqlEntityInventory,
    ...     init_inventory_storage,
    ... )
    >>> engine = create_async_engine("sqlite+aiosqlite:///inventory.db")
    >>> await init_inventory_storage(engine)
    >>> inventory = SqlEntityInventory(async_sessionmaker(engine))
    >>> committer = ReconciliationCommitter(inventory.connection("provider"))
    >>> await committer.commit(entities, "provider")
"""

from __future__ import annotations

from .committer import (
    EntityProviderConnection,
    ReconciliationCommitter,
    build_full_mutation,
)
from .errors import CommitFailed, InventoryError
from .models import (
    DeferredEntity,
    Entity,
    EntityLink,
    EntityMetadata,
    EntityRelation,
    EntitySpec,
    FullMutation,
    MutationResult,
    entity_from_builtins,
    entity_to_builtins,
)
from .storage import (
    InventoryEntityRecord,
    SqlEntityInventory,
    SqlProviderConnection,
    init_inventory_storage,
)

__all__ = [
    "CommitFailed",
    "DeferredEntity",
    "Entity",
    "EntityLink",
    "EntityMetadata",
    "EntityProviderConnection",
    "EntityRelation",
    "EntitySpec",
    "FullMutation",
    "InventoryEntityRecord",
    "InventoryError",
    "MutationResult",
    "ReconciliationCommitter",
    "SqlEntityInventory",
    "SqlProviderConnection",
    "build_full_mutation",
    "entity_from_builtins",
    "entity_to_builtins",
    "init_inventory_storage",
]
