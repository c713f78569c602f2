"""Map Azure DevOps repositories to catalog component entities.

The identity key folds the project name into the repository name
(``<project>-<repo>``), so equally named repositories in different projects
do not collide. Every discovered component is classified as a ``service``
with an ``unknown`` lifecycle and carries an explicit ``ownedBy`` relation to
its owning group.
"""

from __future__ import annotations

import typing as typ

from reposcout.common.slug import entity_name, project_repo
from reposcout.inventory.models import (
    Entity,
    EntityLink,
    EntityMetadata,
    EntityRelation,
    EntitySpec,
)

if typ.TYPE_CHECKING:
    from reposcout.azure.models import ProjectRef, RepositoryRef

SOURCE_SYSTEM = "azure-devops"
PROJECT_REPO_ANNOTATION = "azure-devops.com/project-repo"
MANAGED_BY_LOCATION_ANNOTATION = "backstage.io/managed-by-location"
MANAGED_BY_ORIGIN_LOCATION_ANNOTATION = "backstage.io/managed-by-origin-location"
COMPONENT_TYPE = "service"
COMPONENT_LIFECYCLE = "unknown"
RELATION_OWNED_BY = "ownedBy"


def managed_by_location(organization: str) -> str:
    """Return the location string recorded on every entity of an organization."""
    return f"{SOURCE_SYSTEM}:{organization}"


def map_repository(
    repository: RepositoryRef,
    project: ProjectRef,
    owner: str,
    organization: str,
) -> Entity | None:
    """Build the catalog entity for a repository, or None when it cannot be named.

    Parameters
    ----------
    repository
        Repository as listed under ``project``.
    project
        Containing project; its name drives naming, tags and annotations.
    owner
        Owner resolved for the project.
    organization
        Organization identifier written into the managed-by annotations.

    Returns
    -------
    Entity | None
        ``None`` when the repository lacks an id or name, the project lacks
        a name, or the repository has neither a remote nor a web URL.

    """
    url = repository.url
    if not repository.id or not repository.name or not project.name or not url:
        return None

    location = managed_by_location(organization)
    return Entity(
        metadata=EntityMetadata(
            name=entity_name(project.name, repository.name),
            title=repository.name,
            description=(
                f"Repository {repository.name} in Azure DevOps project {project.name}"
            ),
            annotations={
                PROJECT_REPO_ANNOTATION: project_repo(project.name, repository.name),
                MANAGED_BY_LOCATION_ANNOTATION: location,
                MANAGED_BY_ORIGIN_LOCATION_ANNOTATION: location,
            },
            tags=(SOURCE_SYSTEM, project.name.lower()),
            links=(EntityLink(url=url, title="Repository", icon="code"),),
        ),
        spec=EntitySpec(
            type=COMPONENT_TYPE,
            lifecycle=COMPONENT_LIFECYCLE,
            owner=owner,
        ),
        relations=(
            EntityRelation(type=RELATION_OWNED_BY, target_ref=f"group:{owner}"),
        ),
    )
