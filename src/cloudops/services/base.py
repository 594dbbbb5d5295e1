"""Helpers shared by the operation services."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from cloudops.domain import BuildStep, OperationId
from cloudops.events import EventSink, StepEvent
from cloudops.exceptions import CloudOperationError


@contextmanager
def tagged_errors(operation_id: OperationId) -> Iterator[None]:
    """Attach ``operation_id`` to any operation error escaping the block."""

    try:
        yield
    except CloudOperationError as exc:
        exc.operation_id = operation_id
        raise


def report_step(sink: EventSink, operation_id: OperationId, step: BuildStep, progress: int) -> None:
    sink.emit(StepEvent(operation_id=operation_id, step=step, progress=progress))


__all__ = ["report_step", "tagged_errors"]
