"""Client for remote build, codesign and publish operations."""

from .config import AppSettings
from .container import ServiceContainer, build_container
from .exceptions import (
    CloudOperationError,
    DownloadError,
    FailedToStartError,
    FetchError,
    OperationCancelledError,
    OperationFailedError,
    SubmissionError,
    ToolFailureError,
    ValidationError,
)

__all__ = [
    "AppSettings",
    "CloudOperationError",
    "DownloadError",
    "FailedToStartError",
    "FetchError",
    "OperationCancelledError",
    "OperationFailedError",
    "ServiceContainer",
    "SubmissionError",
    "ToolFailureError",
    "ValidationError",
    "build_container",
]
