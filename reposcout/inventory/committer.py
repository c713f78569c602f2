"""Full-replacement commit of discovered entities."""

from __future__ import annotations

import typing as typ

from .errors import CommitFailed
from .models import DeferredEntity, FullMutation, MutationResult

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from .models import Entity


class EntityProviderConnection(typ.Protocol):
    """Inventory handle that accepts mutations for one provider."""

    async def apply_mutation(self, mutation: FullMutation) -> MutationResult:
        """Apply a mutation, replacing the provider's previous entity set."""
        ...


def build_full_mutation(
    entities: cabc.Iterable[Entity], location_key: str
) -> FullMutation:
    """Tag every entity with ``location_key`` and wrap them in a full mutation."""
    return FullMutation(
        entities=tuple(
            DeferredEntity(entity=entity, location_key=location_key)
            for entity in entities
        )
    )


class ReconciliationCommitter:
    """Submit a run's entities as the complete set for a provider.

    The committer keeps no memory between runs; the inventory is expected to
    delete any entity previously submitted under the same provider identity
    that is absent from the new set.
    """

    def __init__(self, connection: EntityProviderConnection) -> None:
        """Bind the committer to an inventory connection."""
        self._connection = connection

    async def commit(
        self, entities: cabc.Sequence[Entity], provider_name: str
    ) -> MutationResult:
        """Submit ``entities`` as a full replacement under ``provider_name``.

        Raises
        ------
        CommitFailed
            If the inventory rejects the submission. The original error is
            chained; the call is never retried here.

        """
        mutation = build_full_mutation(entities, provider_name)
        try:
            return await self._connection.apply_mutation(mutation)
        except Exception as exc:
            raise CommitFailed(provider_name, len(entities)) from exc
