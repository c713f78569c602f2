"""Unit tests for discovery event logging and error categorization."""

from __future__ import annotations

import pytest

from reposcout.azure import (
    AzureDevOpsConfigError,
    AzureDevOpsResponseShapeError,
    ProjectNotFound,
    RemoteUnavailable,
)
from reposcout.discovery import (
    DiscoveryEventLogger,
    DiscoveryEventType,
    DiscoveryFailed,
    DiscoveryRun,
    ErrorCategory,
    categorize_error,
)
from reposcout.inventory import CommitFailed, InventoryError, MutationResult
from tests.helpers.discovery_fakes import PROVIDER, FakeLogger, run_context


def _failed_with_cause(cause: Exception) -> DiscoveryFailed:
    try:
        try:
            raise cause
        except Exception as exc:
            raise DiscoveryFailed("contoso", str(exc)) from exc
    except DiscoveryFailed as failed:
        return failed


@pytest.mark.parametrize(
    ("error", "expected"),
    [
        (RemoteUnavailable.transport("projects", "refused"), ErrorCategory.TRANSIENT),
        (RemoteUnavailable.http_error(503, "projects"), ErrorCategory.TRANSIENT),
        (RemoteUnavailable.http_error(401, "projects"), ErrorCategory.CLIENT_ERROR),
        (RemoteUnavailable.http_error(203, "projects"), ErrorCategory.CLIENT_ERROR),
        (ProjectNotFound("p1"), ErrorCategory.NOT_FOUND),
        (AzureDevOpsResponseShapeError.missing("value"), ErrorCategory.SCHEMA_DRIFT),
        (AzureDevOpsConfigError.empty_token(), ErrorCategory.CONFIGURATION),
        (CommitFailed(PROVIDER, 3), ErrorCategory.INVENTORY),
        (InventoryError(PROVIDER, "locked"), ErrorCategory.INVENTORY),
        (KeyError("surprise"), ErrorCategory.UNKNOWN),
    ],
)
def test_categorize_error(error: BaseException, expected: ErrorCategory) -> None:
    """Exceptions map to alerting categories."""
    assert categorize_error(error) == expected


def test_discovery_failed_is_categorized_by_cause() -> None:
    """A failed project listing reports the category of its cause."""
    failed = _failed_with_cause(RemoteUnavailable.http_error(500, "projects"))

    assert categorize_error(failed) == ErrorCategory.TRANSIENT


def test_discovery_failed_without_cause_is_unknown() -> None:
    """A bare DiscoveryFailed has no more specific category."""
    assert categorize_error(DiscoveryFailed("contoso", "boom")) == ErrorCategory.UNKNOWN


def test_run_completed_reports_counts() -> None:
    """Completion events carry discovery and mutation counters."""
    logger = FakeLogger()
    run = DiscoveryRun(
        projects_processed=2,
        projects_failed=1,
        repositories_skipped=3,
        repositories_unmapped=1,
    )
    mutation = MutationResult(provider_name=PROVIDER, entities_deleted=4)

    DiscoveryEventLogger(logger).log_run_completed(run_context(), run, mutation)

    ((level, message, _),) = logger.calls
    assert level == "INFO"
    assert message.startswith(f"[{DiscoveryEventType.RUN_COMPLETED}]")
    for fragment in (
        f"provider={PROVIDER}",
        "entities_discovered=0",
        "projects_processed=2",
        "projects_failed=1",
        "repositories_excluded=3",
        "repositories_unmapped=1",
        "entities_deleted=4",
    ):
        assert fragment in message


def test_run_failed_logs_error_with_category() -> None:
    """Failures are logged at ERROR with the exception attached."""
    logger = FakeLogger()
    error = RemoteUnavailable.http_error(401, "projects")

    DiscoveryEventLogger(logger).log_run_failed(run_context(), error)

    ((level, message, exc_info),) = logger.calls
    assert level == "ERROR"
    assert "error_type=RemoteUnavailable" in message
    assert "error_category=client_error" in message
    assert exc_info is error


def test_project_failed_logs_warning() -> None:
    """A failing project is a warning, not a run failure."""
    logger = FakeLogger()

    DiscoveryEventLogger(logger).log_project_failed(
        run_context(), "Beta", ProjectNotFound("p2")
    )

    ((level, message, _),) = logger.calls
    assert level == "WARNING"
    assert "project=Beta" in message
    assert "error_category=not_found" in message


def test_excluded_and_unmapped_levels() -> None:
    """Excluded repositories are DEBUG; unmapped repositories are WARNING."""
    logger = FakeLogger()
    events = DiscoveryEventLogger(logger)

    events.log_repository_excluded(run_context(), "Alpha", "svc-one")
    events.log_repository_unmapped(run_context(), "Alpha", None)

    assert [level for level, _, _ in logger.calls] == ["DEBUG", "WARNING"]
    assert "repository=svc-one" in logger.calls[0][1]
    assert "repository=None" in logger.calls[1][1]


def test_events_never_include_credentials() -> None:
    """Structured events only carry the organization, never tokens."""
    logger = FakeLogger()

    DiscoveryEventLogger(logger).log_run_started(run_context())

    ((_, message, _),) = logger.calls
    assert "organization=https://dev.azure.com/contoso" in message
    assert "token" not in message.lower()
