"""Project-to-owner lookup."""

from __future__ import annotations

import dataclasses
import typing as typ

UNKNOWN_OWNER = "unknown"


@dataclasses.dataclass(frozen=True, slots=True)
class OwnerMappingEntry:
    """Single ``projectName -> owner`` pair from configuration."""

    project_name: str
    owner: str


@dataclasses.dataclass(frozen=True, slots=True)
class OwnerMapping:
    """Ordered, immutable owner lookup table loaded once per run."""

    entries: tuple[OwnerMappingEntry, ...] = ()

    @classmethod
    def from_pairs(cls, pairs: typ.Iterable[tuple[str, str]]) -> OwnerMapping:
        """Build a mapping from ``(project_name, owner)`` pairs, keeping order."""
        return cls(
            entries=tuple(
                OwnerMappingEntry(project_name=name, owner=owner)
                for name, owner in pairs
            )
        )


def resolve_owner(project_name: str, mapping: OwnerMapping) -> str:
    """Return the owner configured for ``project_name``.

    Matching is exact and case-sensitive. When a project name appears more
    than once the first entry wins. Projects without an entry resolve to
    ``"unknown"``.

    Examples
    --------
    >>> mapping = OwnerMapping.from_pairs([("Alpha", "team-alpha")])
    >>> resolve_owner("Alpha", mapping)
    'team-alpha'
    >>> resolve_owner("Beta", mapping)
    'unknown'

    """
    for entry in mapping.entries:
        if entry.project_name == project_name:
            return entry.owner
    return UNKNOWN_OWNER
