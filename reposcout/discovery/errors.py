"""Errors specific to repository discovery."""

from __future__ import annotations


class DiscoveryError(Exception):
    """Base class for discovery errors."""


class DiscoveryFailed(DiscoveryError):
    """Raised when the project listing fails and no run result exists."""

    def __init__(self, organization: str, reason: str) -> None:
        """Initialise with the organization and failure reason."""
        self.organization = organization
        self.reason = reason
        super().__init__(f"Discovery failed for {organization}: {reason}")
