"""Unit tests for the Azure DevOps REST client."""

from __future__ import annotations

import base64
import secrets
import typing as typ

import httpx
import pytest

from reposcout.azure import (
    AzureDevOpsClient,
    AzureDevOpsConfig,
    AzureDevOpsConfigError,
    AzureDevOpsResponseShapeError,
    ProjectNotFound,
    RemoteUnavailable,
)
from reposcout.azure.client import API_VERSION, CONTINUATION_HEADER, TOKEN_ENV_VAR

_TOKEN = secrets.token_hex(8)
_ORG = "https://dev.azure.com/contoso"

type Handler = typ.Callable[[httpx.Request], httpx.Response]


def _make_client(
    handler: Handler,
) -> tuple[AzureDevOpsClient, httpx.AsyncClient, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def _recording(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_recording))
    client = AzureDevOpsClient(
        AzureDevOpsConfig(organization=f"{_ORG}/", token=_TOKEN),
        http_client=http_client,
    )
    return client, http_client, requests


def _scripted(responses: list[httpx.Response]) -> Handler:
    remaining = list(responses)

    def _handler(_request: httpx.Request) -> httpx.Response:
        return remaining.pop(0)

    return _handler


def _page(values: list[dict[str, typ.Any]], token: str | None = None) -> httpx.Response:
    headers = {CONTINUATION_HEADER: token} if token else {}
    return httpx.Response(200, json={"count": len(values), "value": values}, headers=headers)


@pytest.mark.asyncio
async def test_list_projects_follows_continuation_tokens() -> None:
    """Pages are requested until no continuation token is returned."""
    client, http_client, requests = _make_client(
        _scripted([
            _page([{"id": "p1", "name": "Alpha"}], token="next-1"),
            _page([{"id": "p2", "name": "Beta"}, {"name": "NoId"}]),
        ])
    )
    try:
        projects = await client.list_projects()
    finally:
        await http_client.aclose()

    assert [(p.id, p.name) for p in projects] == [
        ("p1", "Alpha"),
        ("p2", "Beta"),
        (None, "NoId"),
    ]
    assert len(requests) == 2
    first, second = requests
    assert first.url.path == "/contoso/_apis/projects"
    assert first.url.params["api-version"] == API_VERSION
    assert first.url.params["$top"] == "100"
    assert "continuationToken" not in first.url.params
    assert second.url.params["continuationToken"] == "next-1"


@pytest.mark.asyncio
async def test_requests_use_basic_auth_with_empty_username() -> None:
    """The personal access token is sent as the Basic password."""
    client, http_client, requests = _make_client(_scripted([_page([])]))
    try:
        await client.list_projects()
    finally:
        await http_client.aclose()

    expected = base64.b64encode(f":{_TOKEN}".encode()).decode("ascii")
    assert requests[0].headers["Authorization"] == f"Basic {expected}"
    assert requests[0].headers["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_list_repositories_parses_urls_and_project() -> None:
    """Repository nodes carry ids, names, URLs and the owning project."""
    client, http_client, requests = _make_client(
        _scripted([
            _page([
                {
                    "id": "r1",
                    "name": "svc-one",
                    "remoteUrl": f"{_ORG}/Alpha/_git/svc-one",
                    "webUrl": f"{_ORG}/Alpha/_git/svc-one?web",
                    "project": {"id": "p1", "name": "Alpha"},
                },
                {"id": "r2", "name": "bare"},
            ])
        ])
    )
    try:
        repositories = await client.list_repositories("p1")
    finally:
        await http_client.aclose()

    assert requests[0].url.path == "/contoso/p1/_apis/git/repositories"
    first, second = repositories
    assert first.url == f"{_ORG}/Alpha/_git/svc-one"
    assert first.project.name == "Alpha"
    assert second.url is None
    assert second.project.id == "p1"


@pytest.mark.asyncio
async def test_list_repositories_maps_404_to_project_not_found() -> None:
    """A vanished project surfaces as ProjectNotFound."""
    client, http_client, _ = _make_client(_scripted([httpx.Response(404)]))
    try:
        with pytest.raises(ProjectNotFound) as excinfo:
            await client.list_repositories("gone")
    finally:
        await http_client.aclose()

    assert excinfo.value.project_id == "gone"
    assert isinstance(excinfo.value.__cause__, RemoteUnavailable)


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [203, 401, 403, 500, 503])
async def test_error_statuses_raise_remote_unavailable(status: int) -> None:
    """Authentication, sign-in redirects and server errors are unavailable."""
    client, http_client, _ = _make_client(
        _scripted([httpx.Response(status, text="<html>sign in</html>")])
    )
    try:
        with pytest.raises(RemoteUnavailable) as excinfo:
            await client.list_projects()
    finally:
        await http_client.aclose()

    assert excinfo.value.status_code == status


@pytest.mark.asyncio
async def test_transport_errors_raise_remote_unavailable() -> None:
    """Connection failures are reported without a status code."""

    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client, http_client, _ = _make_client(_handler)
    try:
        with pytest.raises(RemoteUnavailable) as excinfo:
            await client.list_projects()
    finally:
        await http_client.aclose()

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="not json"),
        httpx.Response(200, json=["unexpected"]),
        httpx.Response(200, json={"count": 0}),
    ],
)
async def test_malformed_payloads_raise_shape_error(response: httpx.Response) -> None:
    """Payloads without a value array are reported as schema drift."""
    client, http_client, _ = _make_client(_scripted([response]))
    try:
        with pytest.raises(AzureDevOpsResponseShapeError):
            await client.list_projects()
    finally:
        await http_client.aclose()


@pytest.mark.asyncio
async def test_list_root_items_requests_one_level_of_root() -> None:
    """The root listing asks for one level below / and keeps path entries."""
    client, http_client, requests = _make_client(
        _scripted([
            _page([
                {"path": "/", "isFolder": True},
                {"path": "/catalog-info.yaml"},
                {"path": "/src", "isFolder": True},
                {"objectId": "no-path"},
            ])
        ])
    )
    try:
        items = await client.list_root_items("r1")
    finally:
        await http_client.aclose()

    params = requests[0].url.params
    assert requests[0].url.path == "/contoso/_apis/git/repositories/r1/items"
    assert params["scopePath"] == "/"
    assert params["recursionLevel"] == "OneLevel"
    assert [(item.path, item.is_folder) for item in items] == [
        ("/", True),
        ("/catalog-info.yaml", False),
        ("/src", True),
    ]


@pytest.mark.asyncio
async def test_aclose_leaves_injected_client_open() -> None:
    """Injected HTTP clients belong to the caller."""
    client, http_client, _ = _make_client(_scripted([]))

    await client.aclose()

    assert not http_client.is_closed
    await http_client.aclose()


@pytest.mark.asyncio
async def test_aclose_closes_owned_client() -> None:
    """Clients created internally are closed by aclose."""
    client = AzureDevOpsClient(AzureDevOpsConfig(organization=_ORG, token=_TOKEN))

    await client.aclose()

    assert client._client.is_closed


def test_config_repr_hides_token() -> None:
    """The personal access token never appears in the config repr."""
    config = AzureDevOpsConfig(organization=_ORG, token=_TOKEN)

    assert _TOKEN not in repr(config)


@pytest.mark.parametrize(
    ("organization", "token"),
    [(_ORG, "  "), ("", _TOKEN)],
)
def test_client_rejects_empty_settings(organization: str, token: str) -> None:
    """Blank tokens or organizations are configuration errors."""
    with pytest.raises(AzureDevOpsConfigError):
        AzureDevOpsClient(AzureDevOpsConfig(organization=organization, token=token))


def test_config_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """from_env reads the token from the environment."""
    monkeypatch.setenv(TOKEN_ENV_VAR, f" {_TOKEN} ")

    config = AzureDevOpsConfig.from_env(_ORG)

    assert config.token == _TOKEN


def test_config_from_env_requires_token(monkeypatch: pytest.MonkeyPatch) -> None:
    """from_env fails fast when the token is missing."""
    monkeypatch.delenv(TOKEN_ENV_VAR, raising=False)

    with pytest.raises(AzureDevOpsConfigError, match="must be non-empty"):
        AzureDevOpsConfig.from_env(_ORG)


@pytest.mark.asyncio
async def test_repeated_continuation_token_is_rejected() -> None:
    """A server that hands back the same token twice cannot loop forever."""
    client, http_client, requests = _make_client(
        _scripted([
            _page([{"id": "p1", "name": "Alpha"}], token="again"),
            _page([{"id": "p2", "name": "Beta"}], token="again"),
            _page([{"id": "p3", "name": "Gamma"}], token="again"),
        ])
    )
    try:
        with pytest.raises(AzureDevOpsResponseShapeError, match="continuation"):
            await client.list_projects()
    finally:
        await http_client.aclose()

    assert len(requests) == 2
