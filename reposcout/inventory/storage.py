"""Relational inventory storing entities per provider.

Each provider owns the rows tagged with its name. Applying a full mutation
replaces that provider's set inside a single transaction: new entities are
inserted, changed payloads updated, and rows absent from the submission
deleted. Models keep to portable SQLAlchemy types so SQLite serves tests and
PostgreSQL serves production.
"""

from __future__ import annotations

import datetime as dt  # noqa: TC003
import typing as typ
import uuid

from sqlalchemy import JSON, DateTime, String, UniqueConstraint, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from reposcout.common.time import utcnow

from .errors import InventoryError
from .models import (
    Entity,
    FullMutation,
    MutationResult,
    entity_from_builtins,
    entity_to_builtins,
)

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

    type SessionFactory = async_sessionmaker[AsyncSession]


class Base(DeclarativeBase):
    """Base declarative class for inventory persistence."""

    metadata: typ.Any


class InventoryEntityRecord(Base):
    """Entity row owned by exactly one provider."""

    __tablename__ = "inventory_entities"
    __table_args__ = (
        UniqueConstraint("provider_name", "entity_ref", name="uq_provider_entity"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
    )
    provider_name: Mapped[str] = mapped_column(String(255), index=True)
    entity_ref: Mapped[str] = mapped_column(String(512))
    location_key: Mapped[str] = mapped_column(String(255))
    payload: Mapped[dict[str, typ.Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )


async def init_inventory_storage(engine: AsyncEngine) -> None:
    """Create inventory tables if they do not already exist.

    Examples
    --------
    >>> from sqlalchemy.ext.asyncio import create_async_engine
    >>> engine = create_async_engine("sqlite+aiosqlite:///inventory.db")
    >>> await init_inventory_storage(engine)

    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


class SqlProviderConnection:
    """Inventory connection bound to a single provider identity."""

    def __init__(self, session_factory: SessionFactory, provider_name: str) -> None:
        """Bind the connection to a session factory and provider name."""
        self._session_factory = session_factory
        self.provider_name = provider_name

    async def apply_mutation(self, mutation: FullMutation) -> MutationResult:
        """Replace this provider's entities with the mutation's entity set.

        Raises
        ------
        InventoryError
            If the database rejects the transaction; nothing is applied.

        """
        result = MutationResult(provider_name=self.provider_name)
        desired = {
            deferred.entity.ref: deferred for deferred in mutation.entities
        }

        try:
            async with self._session_factory() as session, session.begin():
                existing = await self._load_rows(session)
                for ref, deferred in desired.items():
                    payload = entity_to_builtins(deferred.entity)
                    row = existing.get(ref)
                    if row is None:
                        session.add(
                            InventoryEntityRecord(
                                provider_name=self.provider_name,
                                entity_ref=ref,
                                location_key=deferred.location_key,
                                payload=payload,
                            )
                        )
                        result.entities_created += 1
                    elif (
                        row.payload != payload
                        or row.location_key != deferred.location_key
                    ):
                        row.payload = payload
                        row.location_key = deferred.location_key
                        result.entities_updated += 1
                    else:
                        result.entities_unchanged += 1

                for ref, row in existing.items():
                    if ref not in desired:
                        await session.delete(row)
                        result.entities_deleted += 1
        except SQLAlchemyError as exc:
            raise InventoryError(self.provider_name, "Database error") from exc

        return result

    async def _load_rows(
        self, session: AsyncSession
    ) -> dict[str, InventoryEntityRecord]:
        rows = await session.scalars(
            select(InventoryEntityRecord).where(
                InventoryEntityRecord.provider_name == self.provider_name
            )
        )
        return {row.entity_ref: row for row in rows}


class SqlEntityInventory:
    """SQL-backed inventory that hands out per-provider connections."""

    def __init__(self, session_factory: SessionFactory) -> None:
        """Configure the inventory with an async session factory."""
        self._session_factory = session_factory

    def connection(self, provider_name: str) -> SqlProviderConnection:
        """Return a connection that mutates only ``provider_name``'s rows."""
        return SqlProviderConnection(self._session_factory, provider_name)

    async def list_entities(self, provider_name: str) -> list[Entity]:
        """Return the entities currently stored for a provider, ordered by ref."""
        async with self._session_factory() as session:
            rows = await session.scalars(
                select(InventoryEntityRecord)
                .where(InventoryEntityRecord.provider_name == provider_name)
                .order_by(InventoryEntityRecord.entity_ref)
            )
            return [entity_from_builtins(row.payload) for row in rows]
