"""Errors raised while submitting and tracking remote operations."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cloudops.domain import ResultObject


class CloudOperationError(RuntimeError):
    """Base class for remote operation failures.

    ``operation_id`` is filled in by the service that generated the
    identifier so callers can always correlate a failure with the remote
    operation. ``stdout``/``stderr`` carry the raw server output when known.
    """

    def __init__(
        self,
        message: str,
        *,
        operation_id: str | None = None,
        stdout: str | None = None,
        stderr: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation_id = operation_id
        self.stdout = stdout
        self.stderr = stderr


class ValidationError(CloudOperationError):
    """Raised when inputs are invalid; no request has been sent."""


class FetchError(CloudOperationError):
    """Raised when an object could not be read from the object store."""

    def __init__(self, message: str, *, location: str | None = None, **kwargs: str | None) -> None:
        super().__init__(message, **kwargs)
        self.location = location


class SubmissionError(CloudOperationError):
    """Raised when the backend rejects a submission or upload."""


class FailedToStartError(CloudOperationError):
    """Raised when the status object never appeared for a submitted operation."""


class OperationFailedError(CloudOperationError):
    """Raised when the remote operation reached the ``Failed`` status.

    ``result`` holds the result object read after the failure, when one was
    available. It is read once per wait and reused by the services.
    """

    def __init__(
        self,
        message: str,
        *,
        result: ResultObject | None = None,
        **kwargs: str | None,
    ) -> None:
        super().__init__(message, **kwargs)
        self.result = result


class OperationCancelledError(CloudOperationError):
    """Raised when a wait was cancelled by the caller."""


class ToolFailureError(CloudOperationError):
    """Raised when the remote tool failed although orchestration succeeded."""

    def __init__(
        self,
        message: str,
        *,
        team_names: Sequence[str] = (),
        package_paths: Sequence[str] = (),
        **kwargs: str | None,
    ) -> None:
        super().__init__(message, **kwargs)
        self.team_names = list(team_names)
        self.package_paths = list(package_paths)


class DownloadError(CloudOperationError):
    """Raised when an artifact transfer failed; ``written`` lists files left behind."""

    def __init__(
        self,
        message: str,
        *,
        written: Sequence[Path] = (),
        **kwargs: str | None,
    ) -> None:
        super().__init__(message, **kwargs)
        self.written = list(written)


__all__ = [
    "CloudOperationError",
    "DownloadError",
    "FailedToStartError",
    "FetchError",
    "OperationCancelledError",
    "OperationFailedError",
    "SubmissionError",
    "ToolFailureError",
    "ValidationError",
]
