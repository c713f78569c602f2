"""Azure DevOps client errors."""

from __future__ import annotations


class AzureDevOpsError(RuntimeError):
    """Base class for failures talking to Azure DevOps."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)


class RemoteUnavailable(AzureDevOpsError):
    """Raised when Azure DevOps cannot be reached, authenticated or understood."""

    @classmethod
    def http_error(cls, status_code: int, resource: str) -> RemoteUnavailable:
        """Return an error for a non-2xx HTTP response."""
        return cls(
            f"Azure DevOps HTTP {status_code} for {resource}",
            status_code=status_code,
        )

    @classmethod
    def transport(cls, resource: str, reason: object) -> RemoteUnavailable:
        """Return an error for a connection-level failure."""
        return cls(f"Azure DevOps unreachable for {resource}: {reason}")


class AzureDevOpsResponseShapeError(RemoteUnavailable):
    """Raised when an Azure DevOps response is missing expected fields."""

    @classmethod
    def missing(cls, field: str) -> AzureDevOpsResponseShapeError:
        """Return an error for a missing response field."""
        return cls(f"Azure DevOps response missing expected field: {field}")

    @classmethod
    def repeated_continuation(cls, resource: str) -> AzureDevOpsResponseShapeError:
        """Return an error for a continuation token that was already followed."""
        return cls(f"Azure DevOps repeated a continuation token for {resource}")


class ProjectNotFound(AzureDevOpsError):
    """Raised when a project no longer exists or is not visible to the token."""

    def __init__(self, project_id: str) -> None:
        """Initialise with the project identifier that was not found."""
        self.project_id = project_id
        super().__init__(f"Azure DevOps project not found: {project_id}", status_code=404)


class AzureDevOpsConfigError(RuntimeError):
    """Raised when Azure DevOps client configuration is invalid."""

    @classmethod
    def empty_token(cls) -> AzureDevOpsConfigError:
        """Return an error when the personal access token is empty."""
        return cls("Azure DevOps personal access token must be non-empty")

    @classmethod
    def empty_organization(cls) -> AzureDevOpsConfigError:
        """Return an error when the organization URL is empty."""
        return cls("Azure DevOps organization URL must be non-empty")
