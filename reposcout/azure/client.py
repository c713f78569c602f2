"""Azure DevOps REST client used by repository discovery."""

from __future__ import annotations

import base64
import dataclasses
import os
import typing as typ

import httpx

from .errors import (
    AzureDevOpsConfigError,
    AzureDevOpsResponseShapeError,
    ProjectNotFound,
    RemoteUnavailable,
)
from .models import ProjectRef, RepositoryItem, RepositoryRef

API_VERSION = "7.1"
CONTINUATION_HEADER = "x-ms-continuationtoken"
TOKEN_ENV_VAR = "REPOSCOUT_AZURE_DEVOPS_TOKEN"

_PROJECT_PAGE_SIZE = 100
_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_NOT_FOUND = 404
# Azure DevOps answers 203 with an HTML sign-in page for rejected tokens.
_HTTP_NON_AUTHORITATIVE = 203


class RepositoryEnumerator(typ.Protocol):
    """Interface for listing projects and their repositories."""

    async def list_projects(self) -> list[ProjectRef]:
        """Return every project visible to the credential."""
        ...

    async def list_repositories(self, project_id: str) -> list[RepositoryRef]:
        """Return every Git repository of one project."""
        ...


class RootListing(typ.Protocol):
    """Capability to list the root entries of a repository."""

    async def list_root_items(self, repository_id: str) -> list[RepositoryItem]:
        """Return the items directly under ``/`` in the default branch."""
        ...


class AzureDevOpsRepositoryClient(RepositoryEnumerator, RootListing, typ.Protocol):
    """Combined remote capability needed by a discovery run."""


@dataclasses.dataclass(frozen=True, slots=True)
class AzureDevOpsConfig:
    """Connection settings for the Azure DevOps REST API."""

    organization: str
    token: str = dataclasses.field(repr=False)
    timeout_s: float = 30.0
    user_agent: str = "reposcout/0.1"

    @classmethod
    def from_env(cls, organization: str) -> AzureDevOpsConfig:
        """Build configuration using the ``REPOSCOUT_AZURE_DEVOPS_TOKEN`` env var."""
        token = os.environ.get(TOKEN_ENV_VAR, "").strip()
        if not token:
            raise AzureDevOpsConfigError.empty_token()
        return cls(organization=organization, token=token)

    @property
    def base_url(self) -> str:
        """Return the organization URL without a trailing slash."""
        return self.organization.rstrip("/")


def _basic_auth_header(token: str) -> str:
    """Encode a personal access token as an HTTP Basic credential."""
    encoded = base64.b64encode(f":{token}".encode()).decode("ascii")
    return f"Basic {encoded}"


def _optional_str(node: dict[str, typ.Any], key: str) -> str | None:
    value = node.get(key)
    return value if isinstance(value, str) and value else None


def _value_list(response: httpx.Response, *, field: str) -> list[dict[str, typ.Any]]:
    """Return the ``value`` array of a list response, keeping only objects."""
    try:
        payload = response.json()
    except ValueError as exc:
        raise AzureDevOpsResponseShapeError.missing(field) from exc
    if not isinstance(payload, dict):
        raise AzureDevOpsResponseShapeError.missing(field)
    values = payload.get("value")
    if not isinstance(values, list):
        raise AzureDevOpsResponseShapeError.missing(f"{field}.value")
    return [item for item in values if isinstance(item, dict)]


def _project_from_node(node: dict[str, typ.Any]) -> ProjectRef:
    return ProjectRef(id=_optional_str(node, "id"), name=_optional_str(node, "name"))


def _repository_from_node(
    node: dict[str, typ.Any], *, project_id: str
) -> RepositoryRef:
    raw_project = node.get("project")
    project = (
        _project_from_node(raw_project)
        if isinstance(raw_project, dict)
        else ProjectRef(id=project_id, name=None)
    )
    return RepositoryRef(
        id=_optional_str(node, "id"),
        name=_optional_str(node, "name"),
        project=project,
        remote_url=_optional_str(node, "remoteUrl"),
        web_url=_optional_str(node, "webUrl"),
    )


def _item_from_node(node: dict[str, typ.Any]) -> RepositoryItem | None:
    path = node.get("path")
    if not isinstance(path, str):
        return None
    return RepositoryItem(path=path, is_folder=bool(node.get("isFolder", False)))


class AzureDevOpsClient:
    """Azure DevOps REST implementation of the discovery client protocols.

    The client performs no retries; callers decide how to handle
    :class:`RemoteUnavailable` and :class:`ProjectNotFound`.
    """

    def __init__(
        self,
        config: AzureDevOpsConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        if not config.token.strip():
            raise AzureDevOpsConfigError.empty_token()
        if not config.organization.strip():
            raise AzureDevOpsConfigError.empty_organization()

        self._config = config
        self._headers = {
            "Authorization": _basic_auth_header(config.token),
            "User-Agent": config.user_agent,
            "Accept": "application/json",
        }
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=config.timeout_s)

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def list_projects(self) -> list[ProjectRef]:
        """Return all projects in the organization, following continuation tokens."""
        nodes = await self._get_all(
            f"{self._config.base_url}/_apis/projects",
            params={"$top": str(_PROJECT_PAGE_SIZE)},
            resource="projects",
        )
        return [_project_from_node(node) for node in nodes]

    async def list_repositories(self, project_id: str) -> list[RepositoryRef]:
        """Return all Git repositories for one project.

        Raises
        ------
        ProjectNotFound
            If Azure DevOps answers 404 for the project.
        RemoteUnavailable
            On transport, authentication, server or payload errors.

        """
        try:
            nodes = await self._get_all(
                f"{self._config.base_url}/{project_id}/_apis/git/repositories",
                params={},
                resource=f"repositories of project {project_id}",
            )
        except RemoteUnavailable as exc:
            if exc.status_code == _HTTP_NOT_FOUND:
                raise ProjectNotFound(project_id) from exc
            raise
        return [_repository_from_node(node, project_id=project_id) for node in nodes]

    async def list_root_items(self, repository_id: str) -> list[RepositoryItem]:
        """Return the entries one level below ``/`` of a repository."""
        response = await self._get(
            f"{self._config.base_url}/_apis/git/repositories/{repository_id}/items",
            params={"scopePath": "/", "recursionLevel": "OneLevel"},
            resource=f"items of repository {repository_id}",
        )
        nodes = _value_list(response, field="items")
        items = (_item_from_node(node) for node in nodes)
        return [item for item in items if item is not None]

    async def _get_all(
        self,
        url: str,
        *,
        params: dict[str, str],
        resource: str,
    ) -> list[dict[str, typ.Any]]:
        """Collect every page of a list endpoint.

        A continuation token seen twice would loop forever and is reported as
        a malformed response.
        """
        nodes: list[dict[str, typ.Any]] = []
        continuation: str | None = None
        seen_tokens: set[str] = set()
        while True:
            page_params = dict(params)
            if continuation is not None:
                page_params["continuationToken"] = continuation
            response = await self._get(url, params=page_params, resource=resource)
            nodes.extend(_value_list(response, field=resource))

            continuation = response.headers.get(CONTINUATION_HEADER) or None
            if continuation is None:
                return nodes
            if continuation in seen_tokens:
                raise AzureDevOpsResponseShapeError.repeated_continuation(resource)
            seen_tokens.add(continuation)

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, str],
        resource: str,
    ) -> httpx.Response:
        """Issue an authenticated GET and translate failures."""
        try:
            response = await self._client.get(
                url,
                params={**params, "api-version": API_VERSION},
                headers=self._headers,
            )
        except httpx.HTTPError as exc:
            raise RemoteUnavailable.transport(resource, exc) from exc

        status = response.status_code
        if status >= _HTTP_ERROR_STATUS_THRESHOLD or status == _HTTP_NON_AUTHORITATIVE:
            raise RemoteUnavailable.http_error(status, resource)
        return response
