"""Errors raised while committing entities to the inventory."""

from __future__ import annotations


class InventoryError(Exception):
    """Raised when the inventory cannot apply a mutation."""

    def __init__(self, provider_name: str, reason: str) -> None:
        """Initialise with the provider identity and failure reason."""
        self.provider_name = provider_name
        self.reason = reason
        super().__init__(f"Inventory mutation failed for {provider_name}: {reason}")


class CommitFailed(RuntimeError):
    """Raised when the full entity set could not be submitted.

    The inventory must be assumed unchanged; no partial application is
    reported to callers.
    """

    def __init__(self, provider_name: str, entity_count: int) -> None:
        """Initialise with the provider identity and attempted entity count."""
        self.provider_name = provider_name
        self.entity_count = entity_count
        super().__init__(
            f"Failed to commit {entity_count} entities for provider {provider_name}"
        )
