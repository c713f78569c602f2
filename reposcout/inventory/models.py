"""Typed catalog entity envelope and inventory mutations."""

from __future__ import annotations

import dataclasses
import typing as typ

import msgspec

DEFAULT_NAMESPACE = "default"


class EntityLink(msgspec.Struct, kw_only=True, frozen=True):
    """External link rendered alongside the entity.

    Attributes
    ----------
    url : str
        Target of the link.
    title : str
        Human-readable label.
    icon : str
        Icon identifier understood by the catalog UI.

    """

    url: str
    title: str
    icon: str


class EntityMetadata(msgspec.Struct, kw_only=True, frozen=True):
    """Identity and descriptive metadata of an entity.

    Attributes
    ----------
    name : str
        Identity key, lowercase and limited to ``[a-z0-9-]``.
    title : str
        Display name.
    description : str
        Free-text description.
    annotations : dict[str, str]
        Provenance annotations keyed by their literal names.
    tags : tuple[str, ...]
        Tag set used for filtering.
    links : tuple[EntityLink, ...]
        External links.

    """

    name: str
    title: str | None = None
    description: str | None = None
    annotations: dict[str, str] = msgspec.field(default_factory=dict)
    tags: tuple[str, ...] = ()
    links: tuple[EntityLink, ...] = ()


class EntitySpec(msgspec.Struct, kw_only=True, frozen=True):
    """Classification and ownership of a component."""

    type: str
    lifecycle: str
    owner: str


class EntityRelation(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Explicit relation from the entity to another catalog entity."""

    type: str
    target_ref: str


class Entity(msgspec.Struct, kw_only=True, frozen=True, rename="camel"):
    """Normalized catalog record describing one discovered repository."""

    metadata: EntityMetadata
    spec: EntitySpec
    api_version: str = "backstage.io/v1alpha1"
    kind: str = "Component"
    relations: tuple[EntityRelation, ...] = ()

    @property
    def ref(self) -> str:
        """Return the ``kind:namespace/name`` reference of the entity."""
        return f"{self.kind.lower()}:{DEFAULT_NAMESPACE}/{self.metadata.name}"


@dataclasses.dataclass(frozen=True, slots=True)
class DeferredEntity:
    """Entity tagged with the location key of the provider that produced it."""

    entity: Entity
    location_key: str


@dataclasses.dataclass(frozen=True, slots=True)
class FullMutation:
    """Declarative replacement of every entity previously sent by a provider."""

    entities: tuple[DeferredEntity, ...]
    type: typ.Literal["full"] = "full"


@dataclasses.dataclass(slots=True)
class MutationResult:
    """Summary of applying a full mutation to the inventory."""

    provider_name: str
    entities_created: int = 0
    entities_updated: int = 0
    entities_unchanged: int = 0
    entities_deleted: int = 0

    @property
    def entities_total(self) -> int:
        """Return the number of entities present after the mutation."""
        return self.entities_created + self.entities_updated + self.entities_unchanged


def entity_to_builtins(entity: Entity) -> dict[str, typ.Any]:
    """Convert an entity to JSON-compatible builtins using wire field names."""
    return typ.cast("dict[str, typ.Any]", msgspec.to_builtins(entity))


def entity_from_builtins(payload: dict[str, typ.Any]) -> Entity:
    """Rebuild an entity from its stored JSON representation."""
    return msgspec.convert(payload, type=Entity)
