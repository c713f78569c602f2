"""Provider configuration loading and validation.

Configuration follows the Backstage ``app-config`` layout; unrelated keys in
the same file are ignored::

    catalog:
      providers:
        azureDevOpsRepo:
          organization: https://dev.azure.com/contoso
          personalAccessToken: ${AZURE_TOKEN}
          projectOwnerMap:
            - projectName: Alpha
              owner: team-alpha
          schedule:
            frequency: {minutes: 60}
            timeout: {minutes: 50}
          maxConcurrency: 4

The personal access token may be supplied through
``REPOSCOUT_AZURE_DEVOPS_TOKEN`` instead, which takes precedence over the
file value.
"""

from __future__ import annotations

import dataclasses
import datetime as dt
import os
import typing as typ
from pathlib import Path

import msgspec
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from reposcout.azure.client import TOKEN_ENV_VAR
from reposcout.discovery.orchestrator import DEFAULT_MAX_CONCURRENCY, DiscoveryConfig
from reposcout.discovery.owners import OwnerMapping
from reposcout.scheduling import ScheduleDefinition

if typ.TYPE_CHECKING:
    import collections.abc as cabc

YAML_VERSION = (1, 2)
SCHEMA_ID = "https://reposcout.example/schemas/config.json"


class ConfigValidationError(ValueError):
    """Raised when provider configuration is missing or malformed."""

    def __init__(self, issues: list[str]) -> None:
        """Capture validation issues whilst preserving the aggregated message."""
        super().__init__("\n".join(issues))
        self.issues = issues


class Duration(msgspec.Struct, kw_only=True, forbid_unknown_fields=True):
    """Human-friendly duration made of hours, minutes and seconds."""

    hours: float = 0
    minutes: float = 0
    seconds: float = 0

    def to_timedelta(self) -> dt.timedelta:
        """Return the duration as a :class:`datetime.timedelta`."""
        return dt.timedelta(
            hours=self.hours, minutes=self.minutes, seconds=self.seconds
        )


class ScheduleSettings(msgspec.Struct, kw_only=True):
    """Cadence and timeout of recurring discovery runs."""

    frequency: Duration = msgspec.field(default_factory=lambda: Duration(minutes=60))
    timeout: Duration = msgspec.field(default_factory=lambda: Duration(minutes=50))


class ProjectOwner(msgspec.Struct, kw_only=True, rename="camel"):
    """Owner assigned to every repository of a project."""

    project_name: str
    owner: str


class AzureDevOpsRepoSettings(msgspec.Struct, kw_only=True, rename="camel"):
    """Settings of the Azure DevOps repository provider.

    Attributes
    ----------
    organization
        Organization URL, e.g. ``https://dev.azure.com/contoso``.
    personal_access_token
        Token used for HTTP Basic authentication.
    project_owner_map
        Ordered project-name to owner table.
    schedule
        Optional cadence and timeout for recurring runs.
    max_concurrency
        Number of projects processed in parallel.

    """

    organization: str
    personal_access_token: str | None = None
    project_owner_map: list[ProjectOwner] = msgspec.field(default_factory=list)
    schedule: ScheduleSettings | None = None
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY


class ProviderSettings(msgspec.Struct, kw_only=True, rename="camel"):
    """Entity providers configured under ``catalog.providers``."""

    azure_dev_ops_repo: AzureDevOpsRepoSettings


class CatalogSettings(msgspec.Struct, kw_only=True):
    """The ``catalog`` section of an app-config file."""

    providers: ProviderSettings


class AppConfig(msgspec.Struct, kw_only=True):
    """Top-level configuration document."""

    catalog: CatalogSettings


@dataclasses.dataclass(frozen=True, slots=True)
class ProviderConfig:
    """Validated configuration of one Azure DevOps repository provider."""

    organization: str
    personal_access_token: str = dataclasses.field(repr=False)
    owner_mapping: OwnerMapping = dataclasses.field(default_factory=OwnerMapping)
    schedule: ScheduleDefinition = dataclasses.field(
        default_factory=ScheduleDefinition
    )
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    def discovery_config(self) -> DiscoveryConfig:
        """Return the subset of settings the orchestrator consumes."""
        return DiscoveryConfig(
            organization=self.organization,
            owner_mapping=self.owner_mapping,
            max_concurrency=self.max_concurrency,
        )


def _validate(
    settings: AzureDevOpsRepoSettings, token: str | None
) -> tuple[list[str], ScheduleDefinition | None]:
    """Collect every configuration issue rather than stopping at the first."""
    issues: list[str] = []
    prefix = "catalog.providers.azureDevOpsRepo"

    if not settings.organization.strip():
        issues.append(f"{prefix}.organization must be non-empty")
    if not token:
        issues.append(
            f"{prefix}.personalAccessToken or {TOKEN_ENV_VAR} must be provided"
        )
    if settings.max_concurrency < 1:
        issues.append(f"{prefix}.maxConcurrency must be >= 1")

    for index, entry in enumerate(settings.project_owner_map):
        if not entry.project_name.strip():
            issues.append(f"{prefix}.projectOwnerMap[{index}].projectName is empty")
        if not entry.owner.strip():
            issues.append(f"{prefix}.projectOwnerMap[{index}].owner is empty")

    schedule = settings.schedule or ScheduleSettings()
    try:
        definition = ScheduleDefinition(
            frequency=schedule.frequency.to_timedelta(),
            timeout=schedule.timeout.to_timedelta(),
        )
    except ValueError as exc:
        issues.append(f"{prefix}.{exc}")
        definition = None

    return issues, definition


def parse_config(
    data: object, *, environ: cabc.Mapping[str, str] | None = None
) -> ProviderConfig:
    """Convert decoded YAML or JSON data into a validated provider configuration.

    Raises
    ------
    ConfigValidationError
        If the structure does not match or any value is invalid.

    """
    env = os.environ if environ is None else environ
    try:
        app_config = msgspec.convert(data, type=AppConfig)
    except msgspec.ValidationError as exc:
        raise ConfigValidationError([f"schema validation failed: {exc}"]) from exc

    settings = app_config.catalog.providers.azure_dev_ops_repo
    token = env.get(TOKEN_ENV_VAR, "").strip() or (
        (settings.personal_access_token or "").strip() or None
    )

    issues, schedule = _validate(settings, token)
    if issues or schedule is None or token is None:
        raise ConfigValidationError(issues)

    return ProviderConfig(
        organization=settings.organization.strip(),
        personal_access_token=token,
        owner_mapping=OwnerMapping.from_pairs(
            (entry.project_name, entry.owner) for entry in settings.project_owner_map
        ),
        schedule=schedule,
        max_concurrency=settings.max_concurrency,
    )


def load_config(
    path: Path | str, *, environ: cabc.Mapping[str, str] | None = None
) -> ProviderConfig:
    """Parse a YAML configuration file using a YAML 1.2 compliant loader."""
    try:
        loaded = _yaml().load(Path(path).read_text(encoding="utf-8"))
    except (OSError, YAMLError) as exc:
        raise ConfigValidationError([f"failed to parse YAML: {exc}"]) from exc

    if loaded is None:
        raise ConfigValidationError(["configuration file is empty"])

    return parse_config(loaded, environ=environ)


def build_config_schema() -> dict[str, typ.Any]:
    """Build the JSON Schema describing the configuration document."""
    schema = msgspec.json.schema(AppConfig)
    schema["$id"] = SCHEMA_ID
    return schema


def _yaml() -> YAML:
    yaml = YAML(typ="safe")
    yaml.version = YAML_VERSION
    yaml.allow_duplicate_keys = False
    return yaml
