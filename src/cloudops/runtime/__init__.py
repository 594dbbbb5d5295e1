"""Runtime layer exports."""

from .downloader import ArtifactPredicate, DirectoryPolicy, ResultDownloader, accept_all
from .models import OperationOutcome
from .poller import LogStep, StatusPoller, WaitOutcome, sleep_or_cancel
from .runner import OperationRuntime
from .transformed import fetch_transformed_result

__all__ = [
    "ArtifactPredicate",
    "DirectoryPolicy",
    "LogStep",
    "OperationOutcome",
    "OperationRuntime",
    "ResultDownloader",
    "StatusPoller",
    "WaitOutcome",
    "accept_all",
    "fetch_transformed_result",
    "sleep_or_cancel",
]
