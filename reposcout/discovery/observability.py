"""Structured logging and error categorization for discovery runs.

Events are emitted as pre-formatted femtologging messages carrying a
bracketed event type followed by ``key=value`` pairs, suitable for parsing by
log aggregators. The run context travels with every call rather than living
in a process-wide child logger.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from reposcout.azure.errors import (
    AzureDevOpsConfigError,
    AzureDevOpsResponseShapeError,
    ProjectNotFound,
    RemoteUnavailable,
)
from reposcout.common.time import seconds_since
from reposcout.inventory.errors import CommitFailed, InventoryError
from reposcout.logging import get_logger, log_debug, log_error, log_info, log_warning

from .errors import DiscoveryFailed

if typ.TYPE_CHECKING:
    import datetime as dt

    from reposcout.inventory.models import MutationResult
    from reposcout.logging import SupportsLog

    from .orchestrator import DiscoveryRun

logger = get_logger(__name__)

_HTTP_SERVER_ERROR_THRESHOLD = 500


class DiscoveryEventType(enum.StrEnum):
    """Structured log event types for discovery runs."""

    RUN_STARTED = "discovery.run.started"
    RUN_COMPLETED = "discovery.run.completed"
    RUN_FAILED = "discovery.run.failed"
    PROJECT_FAILED = "discovery.project.failed"
    REPOSITORY_EXCLUDED = "discovery.repository.excluded"
    REPOSITORY_UNMAPPED = "discovery.repository.unmapped"
    ENTITY_DUPLICATED = "discovery.entity.duplicated"
    PROBE_FAILED = "discovery.probe.failed"
    COMMIT_COMPLETED = "discovery.commit.completed"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    NOT_FOUND = "not_found"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    INVENTORY = "inventory"
    UNKNOWN = "unknown"


@dataclasses.dataclass(frozen=True, slots=True)
class DiscoveryRunContext:
    """Shared context for a single discovery run."""

    provider_name: str
    organization: str
    started_at: dt.datetime


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (ProjectNotFound, ErrorCategory.NOT_FOUND),
    (AzureDevOpsResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (AzureDevOpsConfigError, ErrorCategory.CONFIGURATION),
    (CommitFailed, ErrorCategory.INVENTORY),
    (InventoryError, ErrorCategory.INVENTORY),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alerting purposes.

    ``DiscoveryFailed`` is categorized by its cause, so a run that could not
    list projects because of a 503 reports as transient.
    """
    if isinstance(exc, DiscoveryFailed) and exc.__cause__ is not None:
        return categorize_error(exc.__cause__)

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    # Status-less RemoteUnavailable errors are connection failures.
    if isinstance(exc, RemoteUnavailable):
        if exc.status_code is None or exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD:
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    return ErrorCategory.UNKNOWN


class DiscoveryEventLogger:
    """Emit structured discovery events via femtologging.

    Success events are logged at INFO, skipped or degraded units at DEBUG or
    WARNING, and run failures at ERROR.
    """

    def __init__(self, event_logger: SupportsLog | None = None) -> None:
        """Use ``event_logger`` when given, otherwise the module logger."""
        self._logger = event_logger or logger

    def log_run_started(self, context: DiscoveryRunContext) -> None:
        """Log discovery run start."""
        log_info(
            self._logger,
            "[%s] provider=%s organization=%s started_at=%s",
            DiscoveryEventType.RUN_STARTED,
            context.provider_name,
            context.organization,
            context.started_at.isoformat(),
        )

    def log_run_completed(
        self,
        context: DiscoveryRunContext,
        run: DiscoveryRun,
        mutation: MutationResult,
    ) -> None:
        """Log a committed discovery run with its counts."""
        log_info(
            self._logger,
            "[%s] provider=%s duration_seconds=%.3f entities_discovered=%d "
            "projects_processed=%d projects_failed=%d repositories_excluded=%d "
            "repositories_unmapped=%d entities_duplicated=%d entities_deleted=%d",
            DiscoveryEventType.RUN_COMPLETED,
            context.provider_name,
            seconds_since(context.started_at),
            len(run.entities),
            run.projects_processed,
            run.projects_failed,
            run.repositories_skipped,
            run.repositories_unmapped,
            run.entities_duplicated,
            mutation.entities_deleted,
        )

    def log_run_failed(self, context: DiscoveryRunContext, error: BaseException) -> None:
        """Log a failed run with error categorization."""
        log_error(
            self._logger,
            "[%s] provider=%s duration_seconds=%.3f error_type=%s "
            "error_category=%s error_message=%s",
            DiscoveryEventType.RUN_FAILED,
            context.provider_name,
            seconds_since(context.started_at),
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_project_failed(
        self,
        context: DiscoveryRunContext,
        project_name: str,
        error: BaseException,
    ) -> None:
        """Log a project whose repositories could not be listed."""
        log_warning(
            self._logger,
            "[%s] provider=%s project=%s error_category=%s error_message=%s",
            DiscoveryEventType.PROJECT_FAILED,
            context.provider_name,
            project_name,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def log_repository_excluded(
        self,
        context: DiscoveryRunContext,
        project_name: str,
        repository_name: str | None,
    ) -> None:
        """Log a repository skipped because it declares its own catalog file."""
        log_debug(
            self._logger,
            "[%s] provider=%s project=%s repository=%s reason=catalog-info present",
            DiscoveryEventType.REPOSITORY_EXCLUDED,
            context.provider_name,
            project_name,
            repository_name,
        )

    def log_repository_unmapped(
        self,
        context: DiscoveryRunContext,
        project_name: str,
        repository_name: str | None,
    ) -> None:
        """Log a repository dropped because required fields are missing."""
        log_warning(
            self._logger,
            "[%s] provider=%s project=%s repository=%s reason=missing id, name or URL",
            DiscoveryEventType.REPOSITORY_UNMAPPED,
            context.provider_name,
            project_name,
            repository_name,
        )

    def log_entity_duplicated(
        self, context: DiscoveryRunContext, entity_ref: str
    ) -> None:
        """Log a repository dropped because its entity name is already taken."""
        log_warning(
            self._logger,
            "[%s] provider=%s entity_ref=%s reason=name collision, first kept",
            DiscoveryEventType.ENTITY_DUPLICATED,
            context.provider_name,
            entity_ref,
        )

    def log_probe_failed(
        self,
        context: DiscoveryRunContext,
        repository_id: str,
        error: BaseException,
    ) -> None:
        """Log an exclusion probe that could not complete."""
        log_debug(
            self._logger,
            "[%s] provider=%s repository_id=%s error_type=%s error_message=%s",
            DiscoveryEventType.PROBE_FAILED,
            context.provider_name,
            repository_id,
            type(error).__name__,
            str(error),
        )

    def log_commit_completed(
        self, context: DiscoveryRunContext, mutation: MutationResult
    ) -> None:
        """Log the inventory's view of the committed mutation."""
        log_info(
            self._logger,
            "[%s] provider=%s created=%d updated=%d unchanged=%d deleted=%d",
            DiscoveryEventType.COMMIT_COMPLETED,
            context.provider_name,
            mutation.entities_created,
            mutation.entities_updated,
            mutation.entities_unchanged,
            mutation.entities_deleted,
        )
