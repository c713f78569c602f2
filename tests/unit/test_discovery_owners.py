"""Unit tests for project owner resolution."""

from __future__ import annotations

import pytest

from reposcout.discovery import UNKNOWN_OWNER, OwnerMapping, resolve_owner


@pytest.fixture
def mapping() -> OwnerMapping:
    """Owner table with a duplicated project entry."""
    return OwnerMapping.from_pairs([
        ("Alpha", "team-alpha"),
        ("Beta", "team-beta"),
        ("Alpha", "team-late"),
    ])


def test_exact_match_returns_owner(mapping: OwnerMapping) -> None:
    """A configured project resolves to its owner."""
    assert resolve_owner("Beta", mapping) == "team-beta"


def test_first_entry_wins_for_duplicates(mapping: OwnerMapping) -> None:
    """Earlier entries take precedence over later duplicates."""
    assert resolve_owner("Alpha", mapping) == "team-alpha"


@pytest.mark.parametrize("project_name", ["alpha", "ALPHA", " Alpha", "Gamma", ""])
def test_unmatched_projects_resolve_to_unknown(
    mapping: OwnerMapping, project_name: str
) -> None:
    """Matching is exact and case-sensitive."""
    assert resolve_owner(project_name, mapping) == UNKNOWN_OWNER


def test_empty_mapping_resolves_to_unknown() -> None:
    """Without configuration every project is unowned."""
    assert resolve_owner("Alpha", OwnerMapping()) == "unknown"
