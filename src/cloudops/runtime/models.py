"""Runtime execution result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from cloudops.domain import OperationHandle, ResultObject
from cloudops.utils import utc_now

from .poller import WaitOutcome


@dataclass(slots=True)
class OperationOutcome:
    """Aggregate outcome of submitting and waiting for one operation."""

    handle: OperationHandle
    result: ResultObject
    wait: WaitOutcome | None = None
    started_at: datetime = field(default_factory=utc_now)
    completed_at: datetime = field(default_factory=utc_now)


__all__ = ["OperationOutcome"]
