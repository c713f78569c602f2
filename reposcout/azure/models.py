"""Typed references to Azure DevOps projects and repositories."""

from __future__ import annotations

import dataclasses


@dataclasses.dataclass(frozen=True, slots=True)
class ProjectRef:
    """Remote project identity as returned by the projects endpoint.

    Both fields may be missing on the wire; the orchestrator skips projects
    without an ``id`` or ``name``.
    """

    id: str | None
    name: str | None


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryRef:
    """Remote Git repository belonging to exactly one project."""

    id: str | None
    name: str | None
    project: ProjectRef
    remote_url: str | None = None
    web_url: str | None = None

    @property
    def url(self) -> str | None:
        """Return the preferred repository URL, favouring the clone URL."""
        return self.remote_url or self.web_url or None


@dataclasses.dataclass(frozen=True, slots=True)
class RepositoryItem:
    """Single entry of a repository root listing."""

    path: str
    is_folder: bool = False
